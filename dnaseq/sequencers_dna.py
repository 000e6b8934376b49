from typing import List, Optional, Protocol, Sequence, Tuple

import numpy as np

from aco_dna import ACOParameters, AntColony
from tabu_search_dna import LocalSearch, MIN_SEGMENT, NUM_ITERATIONS, TABU_SIZE


class Sequencer(Protocol):
    """Anything that assembles an instance and reports how many oligonucleotides it used."""

    name: str

    def run(self, instance) -> int:
        ...


class ReferenceSequencer:
    """Reports the known optimal number of oligonucleotides derived from the instance file name."""

    name = "Reference Sequencer"

    def run(self, instance) -> int:
        return instance.best_solution_size


class AntColonySequencer:
    name = "Ant Colony Sequencer"

    def __init__(self, parameters: ACOParameters = ACOParameters(), seed: Optional[int] = None,
                 workers: int = 1, verbose: bool = False):
        self.parameters = parameters
        self.seed = seed
        self.workers = workers
        self.verbose = verbose

    def solve(self, instance) -> List[int]:
        colony = AntColony(instance, self.parameters, rng=np.random.default_rng(self.seed),
                           workers=self.workers, verbose=self.verbose)
        return colony.run()

    def run(self, instance) -> int:
        return len(self.solve(instance))


class HybridSequencer:
    """Ant colony construction refined by tabu search."""

    name = "Ant Colony + Tabu Search Sequencer"

    def __init__(self, parameters: ACOParameters = ACOParameters(), seed: Optional[int] = None,
                 workers: int = 1, tabu_size: int = TABU_SIZE, num_iterations: int = NUM_ITERATIONS,
                 k: int = MIN_SEGMENT, tabu_strategy: str = 'hashed', verbose: bool = False):
        self.construction = AntColonySequencer(parameters, seed=seed, workers=workers, verbose=verbose)
        self.tabu_size = tabu_size
        self.num_iterations = num_iterations
        self.k = k
        self.tabu_strategy = tabu_strategy
        self.verbose = verbose

    def solve(self, instance) -> List[int]:
        initial = self.construction.solve(instance)
        search = LocalSearch(instance, initial, tabu_strategy=self.tabu_strategy, verbose=self.verbose)
        return search.run(self.tabu_size, self.num_iterations, self.k)

    def run(self, instance) -> int:
        return len(self.solve(instance))


def accuracy(used: int, instance) -> float:
    return used / instance.s if instance.s else 0.0


def run_test(sequencer: Sequencer, instances: Sequence) -> List[Tuple[str, float]]:
    """Runs one sequencer on every instance and prints the fraction of the spectrum it used."""
    print(f"##### RUNNING TEST ON: {sequencer.name} #####")
    rows = []
    for instance in instances:
        acc = accuracy(sequencer.run(instance), instance)
        print(f"{instance.name}:\t{acc:.3f}")
        rows.append((instance.name, acc))
    return rows


def run_comparison(s1: Sequencer, s2: Sequencer, instances: Sequence) -> List[Tuple[str, float, float, float]]:
    print(f"##### RUNNING COMPARISON BETWEEN: {s1.name} AND {s2.name} #####")
    rows = []
    for instance in instances:
        acc1 = accuracy(s1.run(instance), instance)
        acc2 = accuracy(s2.run(instance), instance)
        diff = acc2 - acc1
        print(f"{instance.name}:\t{acc1:.3f}\t{acc2:.3f}\t{diff:.3f}")
        rows.append((instance.name, acc1, acc2, diff))
    return rows
