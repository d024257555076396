#!/usr/bin/env python3
"""
Run the synthetic benchmark suite.

Usage:
    python -m permutation_importance.benchmarks.run_benchmarks
    python -m permutation_importance.benchmarks.run_benchmarks --quick
    python -m permutation_importance.benchmarks.run_benchmarks --repetitions 20 --max-workers 8

Outputs:
    - <output-dir>/scenario_results.csv - One row per scenario and method
    - <output-dir>/summary.txt - Aggregated performance table
"""

import argparse
import sys
from concurrent.futures import ProcessPoolExecutor, as_completed

from .reporting import create_performance_table, save_results
from .synthetic_suite import aggregate_results, create_scenario_grid, run_single_scenario


def select_scenarios(quick: bool = False):
    """Full grid, or only the small low-noise regression scenarios with --quick."""
    scenarios = create_scenario_grid()
    if quick:
        scenarios = [
            s for s in scenarios
            if s['n'] == 200 and s['sigma_epsilon'] == 0.1 and s['task_type'] == 'regression'
        ]
    return scenarios


def run_benchmarks(scenarios, n_repetitions: int, random_state: int, max_workers: int):
    """Run scenarios in a process pool and return their results in scenario order."""
    results = []

    with ProcessPoolExecutor(max_workers=max_workers) as executor:
        future_to_scenario = {
            executor.submit(
                run_single_scenario,
                scenario,
                n_repetitions=n_repetitions,
                random_state_base=random_state,
                verbose=True
            ): scenario
            for scenario in scenarios
        }

        for completed, future in enumerate(as_completed(future_to_scenario), 1):
            results.append(future.result())
            print(f"[{completed}/{len(scenarios)}] Scenario completed", flush=True)

    return sorted(results, key=lambda r: r['scenario']['scenario_id'])


def main(argv=None):
    """Run the benchmark suite."""
    parser = argparse.ArgumentParser(
        description="Benchmark permutation importance on synthetic data with known ground truth"
    )
    parser.add_argument(
        '--output-dir',
        type=str,
        default='results/benchmarks',
        help='Directory to save results (default: results/benchmarks)'
    )
    parser.add_argument(
        '--repetitions',
        type=int,
        default=10,
        help='Repetitions per scenario (default: 10)'
    )
    parser.add_argument(
        '--max-workers',
        type=int,
        default=4,
        help='Parallel worker processes (default: 4)'
    )
    parser.add_argument(
        '--random-state',
        type=int,
        default=42,
        help='Base random seed for reproducibility (default: 42)'
    )
    parser.add_argument(
        '--quick',
        action='store_true',
        help='Run only small, low-noise regression scenarios'
    )

    args = parser.parse_args(argv)
    if args.repetitions < 1 or args.max_workers < 1:
        parser.error("--repetitions and --max-workers must be positive")

    scenarios = select_scenarios(args.quick)

    print("\n" + "=" * 70)
    print("PERMUTATION IMPORTANCE BENCHMARKS")
    print("=" * 70)
    print(f"Scenarios: {len(scenarios)} x {args.repetitions} repetitions")
    print(f"Workers: {args.max_workers}")
    print(f"Output directory: {args.output_dir}")
    print()

    try:
        results = run_benchmarks(scenarios, args.repetitions, args.random_state, args.max_workers)
        summary = aggregate_results(results)
        save_results(results, summary, args.output_dir)
    except Exception as e:
        print(f"\nError during benchmarks: {e}")
        import traceback
        traceback.print_exc()
        return 1

    print()
    print(create_performance_table(summary))
    print(f"\nResults saved to: {args.output_dir}/")
    return 0


if __name__ == "__main__":
    sys.exit(main())
