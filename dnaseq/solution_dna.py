import collections
from typing import Sequence, Tuple

import numpy as np
from numba import njit


@njit(cache=True, nogil=True)
def _chain_cost_numba(chain: np.ndarray, weights: np.ndarray) -> int:
    """Sum of edge weights over consecutive pairs of the chain."""
    total = 0
    for i in range(chain.shape[0] - 1):
        total += weights[chain[i], chain[i + 1]]
    return total


def chain_cost(chain: Sequence[int], weights: np.ndarray) -> int:
    return int(_chain_cost_numba(np.asarray(chain, dtype=np.int64), weights))


def output_length(chain: Sequence[int], instance) -> int:
    """Length of the DNA sequence assembled from the chain (0 for the empty chain)."""
    if len(chain) == 0:
        return 0
    return chain_cost(chain, instance.weights) + instance.l


def is_valid(chain: Sequence[int], instance) -> bool:
    return output_length(chain, instance) <= instance.n


class RankedSolution:
    """
    A chain together with its cost.

    Solutions are ordered lexicographically: a longer chain is better, and among
    chains of the same length the one with the lower cost is better.
    """

    __slots__ = ('chain', 'cost')

    def __init__(self, chain: Sequence[int], cost: int):
        self.chain = tuple(int(v) for v in chain)
        self.cost = int(cost)

    @classmethod
    def from_chain(cls, chain: Sequence[int], instance) -> 'RankedSolution':
        return cls(chain, chain_cost(chain, instance.weights))

    @property
    def key(self) -> Tuple[int, int]:
        return len(self.chain), -self.cost

    def __gt__(self, other: 'RankedSolution') -> bool:
        return self.key > other.key

    def __lt__(self, other: 'RankedSolution') -> bool:
        return self.key < other.key

    def __len__(self):
        return len(self.chain)

    def __repr__(self):
        return f"RankedSolution(len={len(self.chain)}, cost={self.cost})"


# --- Tabu history strategies ---
# Both keep the `capacity` most recently added chains and answer membership by
# exact sequence equality.

class ScanTabuList:
    """Tabu history answering membership by a linear scan over the stored chains."""

    def __init__(self, capacity: int = None):
        self.capacity = capacity
        self._chains = collections.deque(maxlen=capacity)

    def add(self, chain: Sequence[int]):
        self._chains.append(tuple(chain))

    def __contains__(self, chain) -> bool:
        chain = tuple(chain)
        for visited in self._chains:
            if visited == chain:
                return True
        return False

    def __len__(self):
        return len(self._chains)


class HashedTabuList:
    """Tabu history with O(1) membership, keyed by the chain tuple."""

    def __init__(self, capacity: int = None):
        self.capacity = capacity
        self._order = collections.deque()
        self._counts = collections.Counter()

    def add(self, chain: Sequence[int]):
        chain = tuple(chain)
        self._order.append(chain)
        self._counts[chain] += 1
        if self.capacity is not None and len(self._order) > self.capacity:
            oldest = self._order.popleft()
            self._counts[oldest] -= 1
            if self._counts[oldest] == 0:
                del self._counts[oldest]

    def __contains__(self, chain) -> bool:
        return tuple(chain) in self._counts

    def __len__(self):
        return len(self._order)


TABU_STRATEGIES = {
    'hashed': HashedTabuList,
    'scan': ScanTabuList,
}


def make_tabu_list(strategy: str, capacity: int = None):
    if strategy not in TABU_STRATEGIES:
        raise ValueError(f"unknown tabu strategy: {strategy}")
    return TABU_STRATEGIES[strategy](capacity)
