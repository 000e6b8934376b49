import concurrent.futures
from typing import List, NamedTuple, Optional

import numpy as np
from numba import njit

# Default colony settings
ITERATIONS = 100
ANTS = 30
ALPHA = 1.0
BETA = 2.0
EVAPORATION = 0.1

# Pheromone never drops below this value, so every entry stays strictly positive.
PHEROMONE_FLOOR = np.finfo(np.float64).tiny


class ACOParameters(NamedTuple):
    iterations: int = ITERATIONS
    ants: int = ANTS
    alpha: float = ALPHA
    beta: float = BETA
    evaporation: float = EVAPORATION


@njit(cache=True, nogil=True)
def _walk_ant(weights: np.ndarray, pheromone: np.ndarray, n: int,
              alpha: float, beta: float, draws: np.ndarray) -> np.ndarray:
    """
    Builds the path of a single ant, starting at the virtual start node.

    Args:
        weights: (s + 1, s) overlap weights, row s is the start node.
        pheromone: (s + 1, s) pheromone matrix as it stood at the start of the iteration.
        n: length budget.
        draws: s uniform numbers in [0, 1), one per step of the ant.
    Returns:
        The visited oligonucleotide indices in order.
    """
    s = weights.shape[1]
    visited = np.zeros(s, dtype=np.bool_)
    feasible = np.zeros(s, dtype=np.bool_)
    attraction = np.zeros(s, dtype=np.float64)
    path = np.empty(s, dtype=np.int64)
    steps = 0
    length = 0
    current = s

    while True:
        total = 0.0
        last_feasible = -1
        for v in range(s):
            feasible[v] = False
            attraction[v] = 0.0
            if visited[v]:
                continue
            distance = weights[current, v]
            if length + distance > n:
                continue
            feasible[v] = True
            attraction[v] = pheromone[current, v] ** alpha * (1.0 / distance) ** beta
            total += attraction[v]
            last_feasible = v

        if last_feasible == -1:
            break

        # roulette wheel
        next_vertex = -1
        remaining = draws[steps] * total
        for v in range(s):
            if not feasible[v]:
                continue
            remaining -= attraction[v]
            if remaining < 0.0:
                next_vertex = v
                break
        if next_vertex == -1:
            # rounding left the wheel unspent
            next_vertex = last_feasible

        path[steps] = next_vertex
        steps += 1
        length += weights[current, next_vertex]
        visited[next_vertex] = True
        current = next_vertex

    return path[:steps]


@njit(cache=True)
def _decode(weights: np.ndarray, pheromone: np.ndarray, n: int) -> np.ndarray:
    """Greedy walk following the strongest pheromone trail among feasible edges."""
    s = weights.shape[1]
    visited = np.zeros(s, dtype=np.bool_)
    path = np.empty(s, dtype=np.int64)
    steps = 0
    length = 0
    current = s

    while True:
        next_vertex = -1
        for v in range(s):
            if visited[v] or length + weights[current, v] > n:
                continue
            if next_vertex == -1 or pheromone[current, v] > pheromone[current, next_vertex]:
                next_vertex = v
        if next_vertex == -1:
            break

        path[steps] = next_vertex
        steps += 1
        length += weights[current, next_vertex]
        visited[next_vertex] = True
        current = next_vertex

    return path[:steps]


class AntColony:
    """
    Ant colony construction heuristic for the sequencing-by-hybridization problem.

    Every iteration sends `ants` ants from the virtual start node through the overlap
    graph. An ant keeps extending its path while the assembled sequence fits in the
    budget n. Longer paths deposit more pheromone. After the last iteration the
    result is decoded greedily from the pheromone matrix.
    """

    def __init__(self, instance, parameters: ACOParameters = ACOParameters(),
                 rng: Optional[np.random.Generator] = None, workers: int = 1,
                 deposit_normalization: Optional[float] = None, verbose: bool = False):
        """
        Args:
            instance: Instance providing the (s + 1, s) weight matrix, l and n.
            parameters: colony settings.
            rng: generator used to draw the ants' random numbers.
            workers: number of threads simulating ants of the same iteration.
            deposit_normalization: divisor of the deposited pheromone; defaults to n.
            verbose: print progress.
        """
        assert parameters.iterations >= 0 and parameters.ants > 0, "iterations and ants must be positive"
        assert 0.0 <= parameters.evaporation < 1.0, "evaporation must be in [0, 1)"
        assert workers > 0

        self.instance = instance
        self.parameters = parameters
        self.rng = rng if rng is not None else np.random.default_rng()
        self.workers = workers
        self.verbose = verbose

        self.weights = instance.weights
        self.n = int(instance.n)
        self.size = self.weights.shape[1]
        self.deposit_normalization = float(deposit_normalization) if deposit_normalization else float(max(self.n, 1))

        if self.weights.shape != (self.size + 1, self.size):
            raise ValueError(f"weight matrix of shape {self.weights.shape} has no start row")
        self.pheromone = np.ones((self.size + 1, self.size), dtype=np.float64)

    def run(self) -> List[int]:
        for i in range(self.parameters.iterations):
            self.iteration()
            if self.verbose:
                print(f"ant colony: {i + 1} / {self.parameters.iterations}")

        result = self.decode()
        if self.verbose:
            print(f"pheromone:{self.pheromone_to_string()}")
            print(f"ant colony result: {len(result)} oligonucleotides")
        return result

    def _generate_paths(self) -> List[np.ndarray]:
        # Every ant gets its own row of random numbers, drawn before any ant moves.
        draws = self.rng.random((self.parameters.ants, self.size))
        pheromone = self.pheromone
        p = self.parameters

        if self.workers == 1:
            return [_walk_ant(self.weights, pheromone, self.n, p.alpha, p.beta, draws[a])
                    for a in range(p.ants)]

        with concurrent.futures.ThreadPoolExecutor(max_workers=self.workers) as executor:
            futures = [executor.submit(_walk_ant, self.weights, pheromone, self.n, p.alpha, p.beta, draws[a])
                       for a in range(p.ants)]
            # leaving the executor waits for every ant
        return [future.result() for future in futures]

    def deposit(self, paths: List[np.ndarray]) -> np.ndarray:
        """Pheromone deposited by the given paths, edges from the start node included."""
        deposited = np.zeros_like(self.pheromone)
        for path in paths:
            if len(path) == 0:
                continue
            amount = len(path) / self.deposit_normalization
            sources = np.concatenate(([self.size], path[:-1]))
            np.add.at(deposited, (sources, path), amount)
        return deposited

    def iteration(self) -> np.ndarray:
        """
        Runs one iteration of the colony and returns the deposited pheromone.

        The live pheromone matrix is only updated after every ant finished.
        """
        paths = self._generate_paths()
        deposited = self.deposit(paths)

        self.pheromone *= (1.0 - self.parameters.evaporation)
        self.pheromone += deposited
        np.maximum(self.pheromone, PHEROMONE_FLOOR, out=self.pheromone)
        return deposited

    def decode(self) -> List[int]:
        return [int(v) for v in _decode(self.weights, self.pheromone, self.n)]

    def pheromone_to_string(self) -> str:
        rows = []
        for row in self.pheromone:
            rows.append(''.join(f"{value:15.3f}" for value in row))
        return '\n' + '\n'.join(rows) + '\n'
