"""
COVID-19 Time Series Report CLI for US states and countries.
"""

import sys
sys.path.append('.')

import argparse
import pandas as pd
from pathlib import Path

from opendata_reports import config
from opendata_reports.fetch import load_covid_sources
from opendata_reports.preprocessing import clean_covid, rollup_regions
from opendata_reports.features import (
    add_daily_counts,
    find_monotonicity_violations,
    region_summary,
    add_per_thousand,
    assign_population_group,
)
from opendata_reports.model import config as model_config
from opendata_reports.model import regression
from opendata_reports.model.eval import save_metrics, print_model_summary


# name -> (region columns, population group quantiles)
SCOPES = {
    'us': (config.US_REGION, config.TERCILES),
    'global': (config.GLOBAL_REGION, config.QUINTILES),
}


def fit_covid_model(
    summary: pd.DataFrame,
    name: str,
    output_dir: Path,
    save_model: bool = False
) -> dict:
    """
    Fit deaths per thousand on cases per thousand and population group.

    Args:
        summary: Per-region summary with rates and pop_group
        name: Scope name ('us' or 'global')
        output_dir: Scope output directory
        save_model: Whether to save the fitted bundle with joblib

    Returns:
        Dict with 'coefficients', 'stats' and 'predictions'
    """
    spec = model_config.COVID_MODEL
    bundle = regression.fit_ols(
        summary, spec['outcome'], spec['numeric_cols'], spec['categorical_cols']
    )

    complete = summary[spec['numeric_cols'] + spec['categorical_cols']].notna().all(axis=1)
    predictions = regression.predict(bundle, summary[complete])

    coefficients = regression.coefficient_table(bundle)
    stats = regression.model_stats(bundle)
    print_model_summary(stats, coefficients, f"covid {name}")

    coefficients.to_csv(output_dir / "model_coefficients.csv", index=False)
    save_metrics(stats, output_dir / "model_stats.json")

    if save_model:
        regression.save_bundle(bundle, output_dir / "models" / f"covid_{name}_ols.joblib")

    return {'coefficients': coefficients, 'stats': stats, 'predictions': predictions}


def run_scope(
    series: pd.DataFrame,
    name: str,
    output_dir: Path,
    save_model: bool = False
) -> dict:
    """
    Aggregate and model one rolled-up series (US states or countries).

    Args:
        series: Long series at the scope's region level
        name: Scope name, a key of SCOPES
        output_dir: Report output directory
        save_model: Whether to save the fitted regression bundle

    Returns:
        Dict with 'series', 'violations', 'summary', 'cut_points' and 'model'
    """
    region_cols, probs = SCOPES[name]
    scope_dir = output_dir / name
    scope_dir.mkdir(parents=True, exist_ok=True)

    print("\n" + "="*60)
    print(f"COVID-19 {name.upper()}")
    print("="*60)

    series = add_daily_counts(series, region_cols)
    print(f"✓ Series: {len(series):,} rows, {series.groupby(region_cols, dropna=False).ngroups:,} regions")

    violations = find_monotonicity_violations(series, region_cols)
    if len(violations) > 0:
        print(f"Warning: {len(violations):,} cumulative counts lower than an earlier date")
        violations.to_csv(scope_dir / "monotonicity_violations.csv", index=False)
    else:
        print("✓ Cumulative counts are non-decreasing")

    summary = add_per_thousand(region_summary(series, region_cols))
    summary, cuts = assign_population_group(summary, probs)
    print(f"✓ Population cut-points: {[round(c) for c in cuts]}")

    series.to_parquet(scope_dir / "series.parquet", index=False)

    model = None
    print("\nFitting regression...")
    try:
        model = fit_covid_model(summary, name, scope_dir, save_model=save_model)
        pred_col = f"pred_{model_config.COVID_MODEL['outcome']}"
        summary[pred_col] = model['predictions']
    except regression.RankDeficientDesignError as e:
        print(f"Error: {e}")

    summary.to_csv(scope_dir / "region_summary.csv", index=False)

    return {
        'series': series,
        'violations': violations,
        'summary': summary,
        'cut_points': cuts,
        'model': model,
    }


def run_report(
    sources: dict | None = None,
    output_dir: Path = config.OUTPUT_DIR / "covid",
    save_model: bool = False
) -> dict:
    """
    Run the COVID-19 report end to end.

    Args:
        sources: Optional source overrides (see ``fetch.load_covid_sources``)
        output_dir: Output directory
        save_model: Whether to save the fitted regression bundles

    Returns:
        Dict keyed by scope name with the outputs of ``run_scope``
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    print("\nLoading time series...")
    raw = load_covid_sources(sources)
    for key, df in raw.items():
        print(f"✓ {key}: {len(df):,} rows x {df.shape[1]:,} columns")

    print("\nReshaping time series...")
    us, global_ = clean_covid(raw)
    print(f"✓ US: {len(us):,} county rows, global: {len(global_):,} province rows")

    us = rollup_regions(us, config.US_REGION)
    global_ = rollup_regions(global_, config.GLOBAL_REGION)

    return {
        'us': run_scope(us, 'us', output_dir, save_model=save_model),
        'global': run_scope(global_, 'global', output_dir, save_model=save_model),
    }


def main():
    parser = argparse.ArgumentParser(description="COVID-19 time series report")
    parser.add_argument('--us_cases', type=str, default=None,
                       help='URL or path of the US confirmed cases CSV')
    parser.add_argument('--us_deaths', type=str, default=None,
                       help='URL or path of the US deaths CSV')
    parser.add_argument('--global_cases', type=str, default=None,
                       help='URL or path of the global confirmed cases CSV')
    parser.add_argument('--global_deaths', type=str, default=None,
                       help='URL or path of the global deaths CSV')
    parser.add_argument('--lookup', type=str, default=None,
                       help='URL or path of the UID/ISO/FIPS population lookup CSV')
    parser.add_argument('--output_dir', type=str, default=str(config.OUTPUT_DIR / "covid"),
                       help='Output directory for tables and metrics')
    parser.add_argument('--save_model', action='store_true',
                       help='Save the fitted regression bundles')

    args = parser.parse_args()

    sources = {
        key: getattr(args, key)
        for key in ['us_cases', 'us_deaths', 'global_cases', 'global_deaths', 'lookup']
        if getattr(args, key)
    }

    print("="*60)
    print("COVID-19 TIME SERIES REPORT")
    print("="*60)
    print(f"Source overrides: {sources or 'none'}")
    print(f"Output: {args.output_dir}")

    run_report(sources, Path(args.output_dir), save_model=args.save_model)

    print("\n" + "="*60)
    print("✓ REPORT COMPLETE")
    print("="*60)
    print(f"Tables saved to: {args.output_dir}")


if __name__ == '__main__':
    main()
