"""
Benchmark suite for validating the permutation importance estimator.

Synthetic data with known ground truth, a scenario grid, a scenario runner
and reporting helpers. Run the whole suite with
``python -m permutation_importance.benchmarks.run_benchmarks``.
"""

from .synthetic_suite import (
    generate_linear_data,
    generate_friedman_data,
    create_scenario_grid,
    run_single_scenario,
    aggregate_results
)
from .reporting import create_performance_table, results_to_frame, save_results

__all__ = [
    'generate_linear_data',
    'generate_friedman_data',
    'create_scenario_grid',
    'run_single_scenario',
    'aggregate_results',
    'create_performance_table',
    'results_to_frame',
    'save_results'
]
