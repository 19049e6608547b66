"""
NYPD Shooting Incident Report CLI.
"""

import sys
sys.path.append('.')

import argparse
import pandas as pd
from pathlib import Path

from opendata_reports import config
from opendata_reports.fetch import load_shootings
from opendata_reports.preprocessing import clean_shootings, add_time_features
from opendata_reports.features import summarize_incidents
from opendata_reports.model import config as model_config
from opendata_reports.model import regression
from opendata_reports.model.eval import save_metrics, print_model_summary


def fit_shootings_model(df: pd.DataFrame, output_dir: Path, save_model: bool = False) -> dict:
    """
    Fit the incidents-per-bucket regression and write its outputs.

    Args:
        df: Cleaned incidents with time features
        output_dir: Output directory
        save_model: Whether to save the fitted bundle with joblib

    Returns:
        Dict with 'summary' (modeled table with predictions), 'coefficients' and 'stats'
    """
    spec = model_config.SHOOTINGS_MODEL
    summary = summarize_incidents(df, spec['group_by'])

    bundle = regression.fit_ols(
        summary, spec['outcome'], spec['numeric_cols'], spec['categorical_cols']
    )
    summary[f"pred_{spec['outcome']}"] = regression.predict(bundle, summary)

    coefficients = regression.coefficient_table(bundle)
    stats = regression.model_stats(bundle)
    print_model_summary(stats, coefficients, 'shootings')

    coefficients.to_csv(output_dir / "model_coefficients.csv", index=False)
    summary.to_csv(output_dir / "model_predictions.csv", index=False)
    save_metrics(stats, output_dir / "model_stats.json")

    if save_model:
        regression.save_bundle(bundle, output_dir / "models" / "shootings_ols.joblib")

    return {'summary': summary, 'coefficients': coefficients, 'stats': stats}


def run_report(source: str, output_dir: Path, save_model: bool = False) -> dict:
    """
    Run the shootings report end to end.

    Args:
        source: URL or path of the incident CSV
        output_dir: Output directory for tables and metrics
        save_model: Whether to save the fitted regression bundle

    Returns:
        Dict with the cleaned incidents, each summary table and the model outputs
        (None when the model could not be fitted)
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    print("\nLoading incidents...")
    raw = load_shootings(source)
    print(f"✓ Loaded {len(raw):,} records")

    print("\nCleaning incidents...")
    df = add_time_features(clean_shootings(raw))
    print(f"✓ Cleaned {len(df):,} records, {df['fatal'].sum():,} fatal")
    df.to_parquet(output_dir / "shootings_clean.parquet", index=False)

    tables = {'incidents': df}

    print("\nBuilding summaries...")
    summaries_dir = output_dir / "summaries"
    summaries_dir.mkdir(parents=True, exist_ok=True)
    for name, by in config.SHOOTINGS_SUMMARIES.items():
        summary = summarize_incidents(df, by)
        summary.to_csv(summaries_dir / f"{name}.csv", index=False)
        tables[name] = summary
        print(f"✓ {name}: {len(summary):,} rows")

    print("\nFitting regression...")
    try:
        tables['model'] = fit_shootings_model(df, output_dir, save_model=save_model)
    except regression.RankDeficientDesignError as e:
        print(f"Error: {e}")
        tables['model'] = None

    return tables


def main():
    parser = argparse.ArgumentParser(description="NYPD shooting incident report")
    parser.add_argument('--source', type=str, default=config.SHOOTINGS_URL,
                       help='URL or path of the NYPD shooting incident CSV')
    parser.add_argument('--output_dir', type=str, default=str(config.OUTPUT_DIR / "shootings"),
                       help='Output directory for tables and metrics')
    parser.add_argument('--save_model', action='store_true',
                       help='Save the fitted regression bundle')

    args = parser.parse_args()

    print("="*60)
    print("NYPD SHOOTING INCIDENT REPORT")
    print("="*60)
    print(f"Source: {args.source}")
    print(f"Output: {args.output_dir}")

    tables = run_report(args.source, Path(args.output_dir), save_model=args.save_model)

    print("\n" + "="*60)
    print("✓ REPORT COMPLETE")
    print("="*60)
    print(f"Tables saved to: {args.output_dir}")
    if tables['model'] is None:
        print("Regression outputs skipped (model could not be fitted)")


if __name__ == '__main__':
    main()
