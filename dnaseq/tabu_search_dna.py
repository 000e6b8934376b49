from typing import List, Optional, Sequence

import numpy as np
from numba import njit

from solution_dna import RankedSolution, _chain_cost_numba, make_tabu_list, output_length

# Default search settings
TABU_SIZE = 30
NUM_ITERATIONS = 100
MIN_SEGMENT = 2


class InvalidInput(ValueError):
    """Raised when the starting chain cannot be used by the local search."""


# --- Numba JIT Compiled Functions ---
# Neighbourhood costs are recomputed from scratch for every candidate.

@njit(cache=True)
def _insertion_costs(chain: np.ndarray, missing: np.ndarray, weights: np.ndarray) -> np.ndarray:
    """costs[a, pos] = cost of the chain with missing[a] inserted before position pos."""
    m = chain.shape[0]
    costs = np.empty((missing.shape[0], m + 1), dtype=np.int64)
    candidate = np.empty(m + 1, dtype=np.int64)
    for a in range(missing.shape[0]):
        for pos in range(m + 1):
            candidate[:pos] = chain[:pos]
            candidate[pos] = missing[a]
            candidate[pos + 1:] = chain[pos:]
            costs[a, pos] = _chain_cost_numba(candidate, weights)
    return costs


@njit(cache=True)
def _reversal_costs(chain: np.ndarray, k: int, weights: np.ndarray) -> np.ndarray:
    """costs[i, j] = cost of the chain with chain[i:j] reversed, -1 where j - i < k."""
    m = chain.shape[0]
    costs = np.full((m + 1, m + 1), -1, dtype=np.int64)
    candidate = np.empty(m, dtype=np.int64)
    for i in range(m + 1):
        for j in range(i + k, m + 1):
            candidate[:] = chain
            candidate[i:j] = chain[i:j][::-1]
            costs[i, j] = _chain_cost_numba(candidate, weights)
    return costs


class LocalSearch:
    """
    Tabu search improving a chain of oligonucleotides.

    Insertion moves add an unused oligonucleotide anywhere in the chain. Only when no
    insertion is admissible, segment reversals reorder the chain to gain room in the
    length budget. A move is admissible when the resulting chain fits in n and was
    not visited recently.
    """

    def __init__(self, instance, chain: Sequence[int], tabu_strategy: str = 'hashed', verbose: bool = False):
        self.instance = instance
        self.tabu_strategy = tabu_strategy
        self.verbose = verbose
        self.weights = instance.weights

        chain = [int(v) for v in chain]
        if len(set(chain)) != len(chain):
            raise InvalidInput("chain contains repeated oligonucleotides")
        if any(v < 0 or v >= instance.size for v in chain):
            raise InvalidInput("chain contains indices outside of the instance")

        self.current_solution = RankedSolution.from_chain(chain, instance)
        if self._output_length(self.current_solution) > instance.n:
            raise InvalidInput(f"chain of output length {self._output_length(self.current_solution)} "
                               f"exceeds the budget {instance.n}")
        self.best_solution = self.current_solution
        self.tabu_list = make_tabu_list(tabu_strategy)

    def _output_length(self, solution: RankedSolution) -> int:
        if len(solution.chain) == 0:
            return 0
        return solution.cost + self.instance.l

    def _admissible(self, chain: tuple, cost: int) -> bool:
        return (len(chain) == 0 or cost + self.instance.l <= self.instance.n) and chain not in self.tabu_list

    def _best_insertion(self) -> Optional[RankedSolution]:
        chain = self.current_solution.chain
        used = set(chain)
        missing = np.array([v for v in range(self.instance.size) if v not in used], dtype=np.int64)
        if missing.shape[0] == 0:
            return None
        costs = _insertion_costs(np.array(chain, dtype=np.int64), missing, self.weights)

        best = None
        for a in range(missing.shape[0]):
            for pos in range(len(chain) + 1):
                cost = int(costs[a, pos])
                if cost + self.instance.l > self.instance.n:
                    continue
                candidate = chain[:pos] + (int(missing[a]),) + chain[pos:]
                if candidate in self.tabu_list:
                    continue
                solution = RankedSolution(candidate, cost)
                if best is None or solution > best:
                    best = solution
        return best

    def _best_reversal(self, k: int) -> Optional[RankedSolution]:
        chain = self.current_solution.chain
        m = len(chain)
        if m < k:
            return None
        costs = _reversal_costs(np.array(chain, dtype=np.int64), k, self.weights)

        best = None
        for i in range(m + 1):
            for j in range(i + k, m + 1):
                cost = int(costs[i, j])
                candidate = chain[:i] + chain[i:j][::-1] + chain[j:]
                if not self._admissible(candidate, cost):
                    continue
                solution = RankedSolution(candidate, cost)
                if best is None or solution > best:
                    best = solution
        return best

    def get_best_neighbour(self, k: int) -> Optional[RankedSolution]:
        neighbour = self._best_insertion()
        if neighbour is None:
            neighbour = self._best_reversal(k)
        return neighbour

    def run(self, tabu_size: int = TABU_SIZE, num_iterations: int = NUM_ITERATIONS,
            k: int = MIN_SEGMENT) -> List[int]:
        """
        Args:
            tabu_size: number of recently visited chains that cannot be revisited.
            num_iterations: maximum number of moves.
            k: minimal length of a reversed segment.
        Returns:
            The best chain found.
        """
        assert tabu_size > 0 and k > 0
        self.tabu_list = make_tabu_list(self.tabu_strategy, tabu_size)
        self.tabu_list.add(self.current_solution.chain)

        for iteration in range(num_iterations):
            neighbour = self.get_best_neighbour(k)
            if neighbour is None:
                if self.verbose:
                    print(f"Iter {iteration + 1}: No admissible moves found. Stopping search.")
                break

            self.current_solution = neighbour
            self.tabu_list.add(neighbour.chain)

            if self.current_solution > self.best_solution:
                self.best_solution = self.current_solution
                if self.verbose:
                    print(f"Iter {iteration + 1}: New best: {len(self.best_solution.chain)} oligonucleotides, "
                          f"output length {self._output_length(self.best_solution)}")

        assert output_length(self.best_solution.chain, self.instance) <= self.instance.n
        return list(self.best_solution.chain)
