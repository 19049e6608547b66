"""
Reporting helpers for fitted regression models.
"""

import json
from pathlib import Path
from typing import Dict

import pandas as pd


def save_metrics(metrics: Dict, output_path: Path) -> None:
    """
    Save metrics dict to JSON file.

    Args:
        metrics: Metrics dictionary
        output_path: Output JSON path
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w') as f:
        json.dump(metrics, f, indent=2, default=float)

    print(f"Saved metrics -> {output_path}")


def print_model_summary(stats: Dict, coefficients: pd.DataFrame, name: str) -> None:
    """
    Print formatted summary of a fitted model.

    Args:
        stats: Output of ``regression.model_stats``
        coefficients: Output of ``regression.coefficient_table``
        name: Model name for the header
    """
    print(f"\n{'='*60}")
    print(f"{name.upper()} REGRESSION")
    print(f"{'='*60}")
    print(f"Outcome: {stats['outcome']}")
    print(f"Observations: {stats['n_obs']:,}")
    print(f"R-squared: {stats['r_squared']:.3f} (adj. {stats['adj_r_squared']:.3f})")
    print(f"F-statistic: {stats['f_statistic']:.3f} (p = {stats['f_pvalue']:.3g})")

    significant = coefficients[coefficients['p_value'] < 0.05]
    print(f"\nSignificant terms (p < 0.05): {len(significant)} of {len(coefficients)}")
    for _, row in significant.iterrows():
        print(f"  {row['term']}: {row['estimate']:.4f} (p = {row['p_value']:.3g})")
