"""Aggregations for the NYPD shooting and COVID-19 reports.

This module builds the grouped summary tables consumed by the report pipelines and
regression models: incident counts and fatal ratios per categorical bucket, per-region
maxima of cumulative COVID-19 series, per-thousand rates, daily differences, cumulative
monotonicity checks and quantile-based population groups.
"""

import numpy as np
import pandas as pd

from . import config


def summarize_incidents(df: pd.DataFrame, by: list[str]) -> pd.DataFrame:
    """Count incidents and fatal incidents per combination of ``by``.

    Only combinations present in the data are returned; absent combinations are
    not zero-filled.

    Args:
        df: Cleaned incidents with a boolean ``fatal`` column.
        by: Grouping columns (e.g. ``['hour']`` or ``['boro', 'vic_age_group']``).

    Returns:
        DataFrame with ``by`` plus incidents, fatal, fatal_ratio and share of all incidents.
    """
    summary = (
        df.groupby(by, observed=True, dropna=False)
        .agg(incidents=("fatal", "size"), fatal=("fatal", "sum"))
        .reset_index()
    )
    summary["fatal"] = summary["fatal"].astype(np.int64)
    summary["fatal_ratio"] = summary["fatal"] / summary["incidents"]
    summary["share"] = summary["incidents"] / summary["incidents"].sum()
    return summary


def region_summary(df: pd.DataFrame, region_cols: list[str]) -> pd.DataFrame:
    """Summarise a cumulative series per region.

    Cases, deaths and population are running totals, so the summary takes the
    maximum observed across dates rather than the sum.

    Args:
        df: Long series with cases, deaths and population.
        region_cols: Region identifier columns.

    Returns:
        One row per region.
    """
    return (
        df.groupby(region_cols, dropna=False)
        .agg(cases=("cases", "max"), deaths=("deaths", "max"), population=("population", "max"))
        .reset_index()
    )


def add_per_thousand(df: pd.DataFrame) -> pd.DataFrame:
    """Add per-thousand-population case and death rates and deaths per case.

    Rates are only computed for rows with positive cases and a positive population;
    other rows are kept with missing rates.

    Args:
        df: Table with cases, deaths and population.

    Returns:
        Table with cases_per_thou, deaths_per_thou and deaths_per_case.
    """
    df = df.copy()
    valid = (df["cases"] > 0) & (df["population"] > 0)

    df["cases_per_thou"] = (config.PER_THOUSAND * df["cases"] / df["population"]).where(valid)
    df["deaths_per_thou"] = (config.PER_THOUSAND * df["deaths"] / df["population"]).where(valid)
    df["deaths_per_case"] = (df["deaths"] / df["cases"].where(df["cases"] > 0)).astype(float)
    return df


def add_daily_counts(df: pd.DataFrame, region_cols: list[str]) -> pd.DataFrame:
    """Derive per-day new cases and deaths by differencing cumulative counts.

    The first date of each region keeps its cumulative value.

    Args:
        df: Long series with cases and deaths.
        region_cols: Region identifier columns.

    Returns:
        Series sorted by region and date with new_cases and new_deaths.
    """
    df = df.sort_values(region_cols + ["date"], kind="stable").reset_index(drop=True)
    grouped = df.groupby(region_cols, dropna=False)
    for col in config.COUNT_COLUMNS:
        df[f"new_{col}"] = grouped[col].diff().fillna(df[col]).astype(np.int64)
    return df


def find_monotonicity_violations(
    df: pd.DataFrame, region_cols: list[str], value_cols: list[str] | None = None
) -> pd.DataFrame:
    """Find dates where a cumulative counter drops below an earlier value.

    Args:
        df: Long series.
        region_cols: Region identifier columns.
        value_cols: Cumulative columns to check. Defaults to cases and deaths.

    Returns:
        DataFrame with region columns, date, metric, value and prior_max, one row per
        violation. Empty when the series is monotone.
    """
    if value_cols is None:
        value_cols = config.COUNT_COLUMNS
    df = df.sort_values(region_cols + ["date"], kind="stable").reset_index(drop=True)
    grouped = df.groupby(region_cols, dropna=False)
    keys = [df[c] for c in region_cols]

    violations = []
    for col in value_cols:
        prior_max = grouped[col].cummax().groupby(keys, dropna=False).shift()
        flagged = df.loc[df[col] < prior_max, region_cols + ["date", col]]
        flagged = flagged.rename(columns={col: "value"})
        flagged["metric"] = col
        flagged["prior_max"] = prior_max[flagged.index]
        violations.append(flagged)

    columns = region_cols + ["date", "metric", "value", "prior_max"]
    return pd.concat(violations, ignore_index=True)[columns]


def quantile_cut_points(values: pd.Series, probs: tuple[float, ...]) -> np.ndarray:
    """Exact empirical quantiles of the known values.

    Uses linear interpolation between order statistics (numpy's default method).

    Args:
        values: Numeric values; missing values are ignored.
        probs: Quantile probabilities in (0, 1), increasing.

    Returns:
        Array of cut-points, one per probability.

    Raises:
        ValueError: If there are no known values.
    """
    known = np.sort(pd.to_numeric(values).dropna().to_numpy(dtype=float))
    if len(known) == 0:
        raise ValueError("Cannot compute quantiles without any known values")
    return np.quantile(known, probs)


def assign_population_group(
    df: pd.DataFrame, probs: tuple[float, ...], column: str = "population"
) -> tuple[pd.DataFrame, np.ndarray]:
    """Assign each row to a population size group from quantile cut-points.

    Group ``i`` (1-based) is the lowest bucket whose upper cut-point is >= the
    value; values above the last cut-point fall in the top group. Cut-points are
    computed fresh from ``df``. Rows with missing population are kept with no group.

    Args:
        df: Per-region summary.
        probs: Quantile probabilities, e.g. ``config.TERCILES``.
        column: Column to partition on.

    Returns:
        Tuple of (DataFrame with an ordered categorical ``pop_group``, cut-points).
    """
    df = df.copy()
    cuts = quantile_cut_points(df[column], probs)

    known = df[column].notna()
    groups = np.searchsorted(cuts, df.loc[known, column].to_numpy(dtype=float), side="left") + 1
    assigned = pd.Series([None] * len(df), index=df.index, dtype=object)
    assigned[known] = [int(g) for g in groups]

    df["pop_group"] = pd.Categorical(
        assigned, categories=list(range(1, len(probs) + 2)), ordered=True
    )
    return df, cuts
