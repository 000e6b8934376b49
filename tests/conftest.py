"""
Test bootstrap: put the `dnaseq` module directory on sys.path so the flat
modules import the same way with or without an install.
"""
import sys
from pathlib import Path

import numpy as np
import pytest

MODULES = Path(__file__).resolve().parents[1] / "dnaseq"
if str(MODULES) not in sys.path:
    sys.path.insert(0, str(MODULES))

from instance_dna import Instance  # noqa: E402

# Consecutive fragments overlap on three characters; 0 -> 1 -> 2 -> 3 -> 4 assembles "AAACGTAC".
CYCLE_FRAGMENTS = ["AAAC", "AACG", "ACGT", "CGTA", "GTAC"]


def spectrum_instance(length: int, k: int, seed: int, n=None) -> Instance:
    """Instance holding the distinct k-mers of a random DNA sequence, shuffled."""
    rng = np.random.default_rng(seed)
    dna = ''.join(rng.choice(list("ACGT"), size=length))
    kmers = list(dict.fromkeys(dna[i:i + k] for i in range(length - k + 1)))
    order = rng.permutation(len(kmers))
    return Instance([kmers[i] for i in order], n=length if n is None else n, name=f"random-{seed}")


@pytest.fixture
def cycle_instance():
    return Instance(CYCLE_FRAGMENTS, n=8, name="cycle")


@pytest.fixture
def loose_cycle_instance():
    # any ordering of the five fragments fits in this budget
    return Instance(CYCLE_FRAGMENTS, n=20, name="cycle-loose")


@pytest.fixture
def random_instance():
    return spectrum_instance(60, 6, seed=3)


@pytest.fixture
def make_spectrum_instance():
    return spectrum_instance
