"""
Reporting utilities for benchmarks.

Formats aggregated benchmark results as plain-text tables and flattens
per-scenario results into a DataFrame for CSV export.
"""

import pandas as pd
from pathlib import Path
from typing import Dict, List, Optional

from .synthetic_suite import METHODS

METHOD_LABELS = {
    'full': 'Permutation (full)',
    'subsample': 'Permutation (50%)',
    'sklearn': 'sklearn',
}


def create_performance_table(results: Dict, save_path: Optional[str] = None) -> str:
    """
    Create a formatted performance table.

    Parameters
    ----------
    results : Dict
        Aggregated results from aggregate_results()
    save_path : str or None, default=None
        If provided, save table to this text file

    Returns
    -------
    table_str : str
        Formatted table string

    Examples
    --------
    >>> from permutation_importance.benchmarks import aggregate_results
    >>> summary = aggregate_results(scenario_results)
    >>> print(create_performance_table(summary))
    """
    lines = []
    lines.append("=" * 88)
    lines.append("Performance Comparison")
    lines.append("=" * 88)
    lines.append(
        f"{'Method':<22} {'Ground-truth cor':<18} {'Max score diff':<18} "
        f"{'Noise mass':<14} {'Time (ms)':<14}"
    )
    lines.append("-" * 88)

    for method in METHODS:
        row = results[method]
        lines.append(
            f"{METHOD_LABELS[method]:<22} {row['ground_truth_cor']:<18} "
            f"{row['max_score_diff']:<18} {row['noise_mass']:<14} {row['time_ms']:<14}"
        )

    lines.append("=" * 88)

    table_str = "\n".join(lines)

    if save_path:
        with open(save_path, 'w') as f:
            f.write(table_str)

    return table_str


def results_to_frame(scenario_results: List[Dict]) -> pd.DataFrame:
    """
    Flatten run_single_scenario() outputs into one row per (scenario, method).

    Scenario keys become columns alongside the method's aggregated metrics.
    """
    rows = []
    for result in scenario_results:
        for method in METHODS:
            row = dict(result['scenario'])
            row['method'] = method
            row.update(result[method])
            rows.append(row)

    frame = pd.DataFrame(rows)
    if not frame.empty:
        frame = frame.sort_values(['scenario_id', 'method']).reset_index(drop=True)
    return frame


def save_results(
    scenario_results: List[Dict],
    summary: Dict,
    output_dir: str
) -> Path:
    """
    Write scenario results (CSV) and the summary table (text) to output_dir.

    Returns
    -------
    output_path : Path
        The created output directory
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    results_to_frame(scenario_results).to_csv(output_path / 'scenario_results.csv', index=False)
    create_performance_table(summary, save_path=str(output_path / 'summary.txt'))

    return output_path
