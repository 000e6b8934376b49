import os
import re
from enum import Enum
from typing import List, Optional

import numpy as np
from numba import njit

from solution_dna import output_length

# Weight of edges that can never be taken (self edges). Larger than any budget n.
UNREACHABLE = 2 ** 31 - 1

# Thresholds on the number of errors encoded in the filename
NEGATIVE_RANDOM_THRESHOLD = 40
POSITIVE_RANDOM_THRESHOLD = 80


class InstanceFormatError(ValueError):
    """Raised when an instance file (or its filename) does not follow the expected format."""


class ErrorType(Enum):
    NONE = 0
    NEGATIVE_RANDOM = 1
    NEGATIVE_REPEAT = 2
    POSITIVE_RANDOM = 3
    POSITIVE_WRONG_ENDING = 4

    @property
    def is_negative(self) -> bool:
        return self in (ErrorType.NEGATIVE_RANDOM, ErrorType.NEGATIVE_REPEAT)


@njit(cache=True)
def _best_match(o1: np.ndarray, o2: np.ndarray) -> int:
    """Smallest shift of o2 against o1 for which the overlapping parts agree."""
    l = o1.shape[0]
    for shift in range(1, l):
        found = True
        for j in range(l - shift):
            if o1[shift + j] != o2[j]:
                found = False
                break
        if found:
            return shift
    return l


@njit(cache=True)
def _build_weights(codes: np.ndarray, l: int, unreachable: int) -> np.ndarray:
    """
    Builds the (s + 1) x s weight matrix. Row s is the virtual start node:
    placing any fragment first costs its full length.
    """
    s = codes.shape[0]
    weights = np.empty((s + 1, s), dtype=np.int64)
    for i in range(s):
        for j in range(s):
            if i == j:
                weights[i, j] = unreachable
            else:
                weights[i, j] = _best_match(codes[i], codes[j])
    for j in range(s):
        weights[s, j] = l
    return weights


def _encode(oligonucleotides: List[str]) -> np.ndarray:
    if not oligonucleotides:
        return np.zeros((0, 0), dtype=np.uint8)
    l = len(oligonucleotides[0])
    if any(len(o) != l for o in oligonucleotides):
        raise InstanceFormatError("all oligonucleotides must have the same length")
    return np.array([np.frombuffer(o.encode('ascii'), dtype=np.uint8) for o in oligonucleotides],
                    dtype=np.uint8).reshape(len(oligonucleotides), l)


def parse_filename(name: str):
    """
    Parses `<name>.<s>[+|-]<numErrors>[...]`.

    Returns:
        (s, error_type, num_errors)
    """
    dot_pos = name.find('.')
    if dot_pos == -1:
        raise InstanceFormatError(f"unexpected filename: {name}")
    tail = name[dot_pos + 1:]
    plus_pos = tail.find('+')
    minus_pos = tail.find('-')
    if plus_pos != -1:
        sign_pos = plus_pos
    elif minus_pos != -1:
        sign_pos = minus_pos
    else:
        raise InstanceFormatError(f"unexpected filename: {name}")

    size_match = re.fullmatch(r'\d+', tail[:sign_pos])
    errors_match = re.match(r'\d+', tail[sign_pos + 1:])
    if size_match is None or errors_match is None:
        raise InstanceFormatError(f"unexpected filename: {name}")
    s = int(size_match.group(0))
    num_errors = int(errors_match.group(0))

    if plus_pos != -1:
        if num_errors >= POSITIVE_RANDOM_THRESHOLD:
            error_type = ErrorType.POSITIVE_RANDOM
        else:
            error_type = ErrorType.POSITIVE_WRONG_ENDING
    else:
        if num_errors >= NEGATIVE_RANDOM_THRESHOLD:
            error_type = ErrorType.NEGATIVE_RANDOM
        else:
            error_type = ErrorType.NEGATIVE_REPEAT
    return s, error_type, num_errors


class Instance:
    """
    A sequencing-by-hybridization instance together with its overlap graph.

    Nodes 0..s-1 are the oligonucleotides read from the spectrum, node s is the
    virtual start node. weights[i, j] is the number of characters appended to the
    output when oligonucleotide j follows i.
    """

    def __init__(self, oligonucleotides: List[str], n: int, name: str = "",
                 s: Optional[int] = None, error_type: ErrorType = ErrorType.NONE,
                 num_errors: int = 0, filepath: Optional[str] = None):
        self.oligonucleotides = list(oligonucleotides)
        self.n = n
        self.name = name
        self.filepath = filepath
        self.error_type = error_type
        self.num_errors = num_errors
        self.l = len(self.oligonucleotides[0]) if self.oligonucleotides else 0
        # s in the filename is the size of the original spectrum, not the number of lines read
        self.s = s if s is not None else len(self.oligonucleotides)

        if error_type.is_negative:
            self.best_solution_size = self.s - num_errors
        else:
            self.best_solution_size = self.s

        codes = _encode(self.oligonucleotides)
        self.weights = _build_weights(codes, self.l, UNREACHABLE)
        self.weights.setflags(write=False)

    @classmethod
    def from_file(cls, filepath: str) -> 'Instance':
        name = os.path.basename(filepath)
        s, error_type, num_errors = parse_filename(name)

        with open(filepath, 'r') as f:
            oligonucleotides = [line.strip() for line in f if line.strip()]
        if not oligonucleotides:
            raise InstanceFormatError(f"instance file {name} contains no oligonucleotides")

        l = len(oligonucleotides[0])
        return cls(oligonucleotides, n=s + l - 1, name=name, s=s,
                   error_type=error_type, num_errors=num_errors, filepath=filepath)

    @property
    def size(self) -> int:
        """Number of nodes of the graph without the start node."""
        return len(self.oligonucleotides)

    @property
    def start(self) -> int:
        return self.size

    @property
    def adj_matrix(self) -> np.ndarray:
        return self.weights[:self.size]

    def weight(self, i: int, j: int) -> int:
        return int(self.weights[i, j])

    def output_length(self, chain) -> int:
        return output_length(chain, self)

    def output(self, chain) -> str:
        """Assembles the DNA sequence described by a chain of oligonucleotide indices."""
        if len(chain) == 0:
            return ""
        parts = [self.oligonucleotides[chain[0]]]
        for v1, v2 in zip(chain[:-1], chain[1:]):
            additional = self.weight(v1, v2)
            parts.append(self.oligonucleotides[v2][self.l - additional:])
        return ''.join(parts)

    def __repr__(self):
        return f"Instance(name={self.name!r}, size={self.size}, l={self.l}, n={self.n})"
