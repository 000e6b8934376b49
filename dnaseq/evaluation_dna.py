from __future__ import annotations
import argparse
import concurrent.futures
import csv
import os
import threading
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from tqdm import tqdm

from aco_dna import ACOParameters, ALPHA, ANTS, BETA, EVAPORATION, ITERATIONS
from instance_dna import Instance
from sequencers_dna import (AntColonySequencer, HybridSequencer, ReferenceSequencer, Sequencer, accuracy,
                            run_comparison, run_test)
from tabu_search_dna import MIN_SEGMENT, NUM_ITERATIONS, TABU_SIZE

__all__ = ['DNAEvaluation', 'load_instances', 'main']


def load_instances(paths: Sequence[str], num_threads: int = 4) -> List[Instance]:
    """
    Loads instance files in parallel, one task per file.

    A file that cannot be parsed is reported and skipped; it never stops the other files
    from loading. The returned instances follow the order of `paths`.
    """
    loaded: List[Tuple[int, Instance]] = []
    lock = threading.Lock()

    def _load(index: int, path: str):
        print(f"Loading {path}")
        instance = Instance.from_file(path)
        with lock:
            loaded.append((index, instance))

    with concurrent.futures.ThreadPoolExecutor(max_workers=num_threads) as executor:
        future_to_path = {executor.submit(_load, i, path): path for i, path in enumerate(paths)}
        for future in concurrent.futures.as_completed(future_to_path):
            try:
                future.result()
            except (OSError, ValueError) as exc:
                print(f"Skipping {future_to_path[future]}: {exc}")

    loaded.sort(key=lambda item: item[0])
    return [instance for _, instance in loaded]


class DNAEvaluation:
    """
    Evaluator for the sequencing-by-hybridization heuristics.
    It loads every instance file of a directory, runs the sequencers on them in parallel
    and writes the results to a CSV file.
    """

    def __init__(self,
                 sequencers: List[Sequencer],
                 instance_dir: str = "./tests",
                 num_threads: int = 4,
                 output_csv_path: str = 'dna_results.csv'):
        """
        Args:
            sequencers (List[Sequencer]): sequencers to evaluate.
            instance_dir (str): directory holding the instance files.
            num_threads (int): number of threads loading files and running sequencers.
            output_csv_path (str): path to write the final results CSV file.
        """
        if not os.path.isdir(instance_dir):
            raise FileNotFoundError(f"Instance directory not found at: {instance_dir}")

        self.sequencers = sequencers
        self.num_threads = num_threads
        self.output_csv_path = output_csv_path

        paths = sorted(os.path.join(instance_dir, entry) for entry in os.listdir(instance_dir))
        paths = [path for path in paths if os.path.isfile(path)]
        self._instances = load_instances(paths, num_threads)

        print(f"Loaded {len(self._instances)} instances.")
        print(f"Sequencers to be evaluated: {[s.name for s in self.sequencers]}")

    @property
    def instances(self) -> List[Instance]:
        return self._instances

    def _run_single(self, instance: Instance, sequencer: Sequencer) -> Tuple[str, str, Any, Any, float]:
        """
        Worker function running one sequencer on one instance.
        Returns (instance_name, sequencer_name, used, accuracy, execution_time).
        """
        try:
            solve_start_time = time.time()
            used = sequencer.run(instance)
            solve_time = time.time() - solve_start_time
            return instance.name, sequencer.name, used, accuracy(used, instance), solve_time
        except Exception as e:
            print(f"Runtime error in {sequencer.name} on {instance.name}: {e}")
            return instance.name, sequencer.name, 'runtime_error', 'runtime_error', 0.0

    def evaluate(self) -> List[Dict[str, Any]]:
        start_time = time.time()

        # 1. One task per (instance, sequencer) pair
        tasks = [(instance, sequencer) for instance in self._instances for sequencer in self.sequencers]

        # 2. Run them on the thread pool
        flat_results = []
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.num_threads) as executor:
            futures = [executor.submit(self._run_single, instance, sequencer) for instance, sequencer in tasks]
            for future in tqdm(concurrent.futures.as_completed(futures), total=len(futures),
                               desc="Evaluating Sequencers"):
                flat_results.append(future.result())

        # 3. Aggregate into one row per instance, preserving instance order
        results_by_instance: Dict[str, Dict[str, Any]] = {}
        for instance_name, sequencer_name, used, acc, solve_time in flat_results:
            row = results_by_instance.setdefault(instance_name, {'instance_name': instance_name})
            row[f"{sequencer_name}_used"] = used
            row[f"{sequencer_name}_accuracy"] = acc
            row[f"{sequencer_name}_time"] = solve_time

        ordered_results = [results_by_instance[instance.name] for instance in self._instances
                           if instance.name in results_by_instance]

        self.write_results_to_csv(ordered_results)

        total_time = time.time() - start_time
        print(f"\nEvaluation finished in {total_time:.2f} seconds.")
        return ordered_results

    def write_results_to_csv(self, results_data: List[Dict[str, Any]]):
        if not results_data:
            print("No results to write.")
            return

        headers = ['instance_name']
        for sequencer in self.sequencers:
            headers.extend([f"{sequencer.name}_used", f"{sequencer.name}_accuracy", f"{sequencer.name}_time"])

        with open(self.output_csv_path, 'w', newline='') as csvfile:
            writer = csv.DictWriter(csvfile, fieldnames=headers, restval='N/A')
            writer.writeheader()
            writer.writerows(results_data)
        print(f"Successfully wrote results to '{self.output_csv_path}'")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Evaluate SBH heuristics on a directory of instances.")
    parser.add_argument('instance_dir')
    parser.add_argument('-o', '--output', default='dna_results.csv')
    parser.add_argument('-j', '--threads', type=int, default=4)
    parser.add_argument('-i', '--iterations', type=int, default=ITERATIONS)
    parser.add_argument('-a', '--ants', type=int, default=ANTS)
    parser.add_argument('--alpha', type=float, default=ALPHA)
    parser.add_argument('--beta', type=float, default=BETA)
    parser.add_argument('--evaporation', type=float, default=EVAPORATION)
    parser.add_argument('--ant-workers', type=int, default=1)
    parser.add_argument('--tabu-size', type=int, default=TABU_SIZE)
    parser.add_argument('--tabu-iterations', type=int, default=NUM_ITERATIONS)
    parser.add_argument('-k', '--min-segment', type=int, default=MIN_SEGMENT)
    parser.add_argument('--tabu-strategy', choices=['hashed', 'scan'], default='hashed')
    parser.add_argument('--seed', type=int, default=None)
    parser.add_argument('--compare', action='store_true',
                        help="print the comparison against the reference sequencer")
    parser.add_argument('-v', '--verbose', action='store_true')
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    parameters = ACOParameters(args.iterations, args.ants, args.alpha, args.beta, args.evaporation)
    reference = ReferenceSequencer()
    colony = AntColonySequencer(parameters, seed=args.seed, workers=args.ant_workers, verbose=args.verbose)
    hybrid = HybridSequencer(parameters, seed=args.seed, workers=args.ant_workers, tabu_size=args.tabu_size,
                             num_iterations=args.tabu_iterations, k=args.min_segment,
                             tabu_strategy=args.tabu_strategy, verbose=args.verbose)

    evaluator = DNAEvaluation([reference, colony, hybrid], instance_dir=args.instance_dir,
                              num_threads=args.threads, output_csv_path=args.output)
    evaluator.evaluate()

    if args.compare:
        run_test(hybrid, evaluator.instances)
        run_comparison(reference, hybrid, evaluator.instances)
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
