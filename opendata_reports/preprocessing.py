"""
Data Preprocessing Module for the NYPD shooting and COVID-19 reports

This module contains functions for cleaning the raw incident export (column selection,
date/time parsing, sentinel handling, age group cleaning) and for tidying the wide
COVID-19 time series into long per-region, per-date rows joined with population.
"""

import numpy as np
import pandas as pd

from . import config
from .utils import merge_on_keys, pivot_longer


# =============================================================================
# SHOOTINGS
# =============================================================================


def normalize_nulls(series: pd.Series) -> pd.Series:
    """
    Unify null marker strings and true missing values into missing values.

    Parameters
    ----------
    series : pd.Series
        Raw text column

    Returns
    -------
    pd.Series
        Stripped string column where '(null)', empty and missing cells are <NA>
    """
    values = series.astype("string").str.strip()
    return values.mask(values.isin(config.NULL_MARKERS))


def fill_sentinel(series: pd.Series, sentinel: str) -> pd.Series:
    """Replace null markers and missing values with ``sentinel``."""
    return normalize_nulls(series).fillna(sentinel)


def clean_age_group(series: pd.Series) -> pd.Series:
    """
    Clean an age group column into an ordered categorical.

    Null markers become UNKNOWN. Of the remaining distinct values, only tokens
    containing one of '-', '<' or '+' are kept; anything else (e.g. '1022') is
    an entry error that cannot be corrected and is folded into UNKNOWN.

    Parameters
    ----------
    series : pd.Series
        Raw age group column

    Returns
    -------
    pd.Series
        Ordered categorical with the standard age bands, any other valid tokens, then UNKNOWN
    """
    values = fill_sentinel(series, config.UNKNOWN)

    distinct = values[values != config.UNKNOWN].unique()
    valid = [v for v in distinct if any(ch in v for ch in config.AGE_GROUP_TOKEN_CHARS)]
    values = values.where(values.isin(valid), config.UNKNOWN)

    standard = [lvl for lvl in config.AGE_GROUP_LEVELS if lvl != config.UNKNOWN]
    extra = sorted(set(valid) - set(standard))
    levels = standard + extra + [config.UNKNOWN]

    return pd.Series(
        pd.Categorical(values.astype(object), categories=levels, ordered=True),
        index=series.index,
        name=series.name,
    )


def parse_flag(series: pd.Series) -> pd.Series:
    """
    Parse a true/false text column into booleans.

    Raises
    ------
    ValueError
        If any value is not 'true' or 'false' (case-insensitive), including missing values
    """
    flags = series.astype(str).str.strip().str.lower().map({"true": True, "false": False})
    bad = flags.isna()
    if bad.any():
        bad_values = sorted(series[bad].astype(str).unique())[:5]
        raise ValueError(f"Unrecognised flag values in '{series.name}': {bad_values}")
    return flags.astype(bool)


def parse_dates(series: pd.Series, date_format: str) -> pd.Series:
    """
    Strictly parse a date column; missing or malformed values abort the run.

    Raises
    ------
    ValueError
        If any value is missing or does not match ``date_format``
    """
    parsed = pd.to_datetime(series, format=date_format)
    if parsed.isna().any():
        raise ValueError(f"Missing values in date column '{series.name}'")
    return parsed


def clean_shootings(df: pd.DataFrame) -> pd.DataFrame:
    """
    Clean the raw NYPD shooting incident export.

    Performs the following operations:
    1. Drop identification keys, coordinates and free-text location fields
    2. Select and rename the analytic columns to snake case
    3. Parse occur_date (month/day/year) and occur_time (time of day as a Timedelta)
    4. Parse the statistical murder flag into the boolean ``fatal``
    5. Age groups -> cleaned ordered categorical (malformed tokens -> UNKNOWN)
    6. Sex -> 'U' when missing, race and borough -> 'UNKNOWN' when missing
    7. Precinct and jurisdiction code -> nullable integers

    Parameters
    ----------
    df : pd.DataFrame
        Raw incident table as read by ``fetch.load_shootings``

    Returns
    -------
    pd.DataFrame
        Cleaned incident records

    Raises
    ------
    KeyError
        If required columns are missing
    ValueError
        If a date, time or flag value cannot be parsed
    """
    df = df.drop(columns=[c for c in config.SHOOTINGS_DROP_COLUMNS if c in df.columns])

    missing = [c for c in config.SHOOTINGS_COLUMNS if c not in df.columns]
    if missing:
        raise KeyError(f"Missing shooting incident columns: {missing}")

    df = df[list(config.SHOOTINGS_COLUMNS)].rename(columns=config.SHOOTINGS_COLUMNS)

    df["occur_date"] = parse_dates(df["occur_date"], config.SHOOTINGS_DATE_FORMAT)
    times = parse_dates(df["occur_time"], config.SHOOTINGS_TIME_FORMAT)
    df["occur_time"] = times - times.dt.normalize()

    df["fatal"] = parse_flag(df["fatal"])

    for col in config.AGE_GROUP_COLUMNS:
        df[col] = clean_age_group(df[col])

    for col in config.SEX_COLUMNS:
        df[col] = fill_sentinel(df[col], config.UNKNOWN_SEX)

    for col in config.RACE_COLUMNS + config.UNKNOWN_CATEGORICAL_COLUMNS:
        df[col] = fill_sentinel(df[col], config.UNKNOWN)

    for col in config.ID_COLUMNS:
        df[col] = pd.to_numeric(normalize_nulls(df[col])).astype("Int64")

    return df.reset_index(drop=True)


def add_time_features(df: pd.DataFrame) -> pd.DataFrame:
    """
    Create derived date and time-of-day features.

    Creates the following features:
    - hour: hour of day (0-23)
    - time_slot: start of the 15-minute slot as 'HH:MM'
    - weekday: ordered categorical Monday..Sunday
    - year: calendar year of occur_date

    Parameters
    ----------
    df : pd.DataFrame
        Cleaned incidents with occur_date (datetime) and occur_time (Timedelta)

    Returns
    -------
    pd.DataFrame
        Dataframe with the time features added
    """
    df = df.copy()

    minutes = (df["occur_time"].dt.total_seconds() // 60).astype(int)
    slot = minutes // config.TIME_SLOT_MINUTES * config.TIME_SLOT_MINUTES

    df["hour"] = minutes // 60
    slot_hours = (slot // 60).astype(str).str.zfill(2)
    slot_minutes = (slot % 60).astype(str).str.zfill(2)
    df["time_slot"] = slot_hours + ":" + slot_minutes
    df["weekday"] = pd.Categorical(
        df["occur_date"].dt.day_name(), categories=config.WEEKDAYS, ordered=True
    )
    df["year"] = df["occur_date"].dt.year

    return df


# =============================================================================
# COVID-19
# =============================================================================


def rename_covid_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Rename JHU headers (both the US and global spellings) to snake case."""
    return df.rename(columns=config.COVID_RENAME)


def coerce_counts(df: pd.DataFrame, columns: list[str]) -> pd.DataFrame:
    """
    Coerce cumulative count columns to integers, missing counts becoming zero.

    Raises
    ------
    ValueError
        If a count is not numeric
    """
    df = df.copy()
    for col in columns:
        df[col] = pd.to_numeric(df[col]).fillna(0).astype(np.int64)
    return df


def merge_cases_deaths(cases: pd.DataFrame, deaths: pd.DataFrame, keys: list[str]) -> pd.DataFrame:
    """
    Outer-join long case and death tables on region keys and date.

    A date present in only one metric's source still appears, with the other
    metric defaulted to zero.

    Parameters
    ----------
    cases : pd.DataFrame
        Long table with keys, date and cases
    deaths : pd.DataFrame
        Long table with keys, date and deaths
    keys : list of str
        Region identifier columns

    Returns
    -------
    pd.DataFrame
        One row per (region, date) with integer cases and deaths
    """
    merged = merge_on_keys(
        cases[keys + ["date", "cases"]],
        deaths[keys + ["date", "deaths"]],
        keys + ["date"],
        how="outer",
    )
    merged = coerce_counts(merged, config.COUNT_COLUMNS)
    return merged.sort_values(keys + ["date"], kind="stable").reset_index(drop=True)


def join_population(df: pd.DataFrame, lookup: pd.DataFrame, keys: list[str]) -> pd.DataFrame:
    """
    Left-join population from the UID/ISO/FIPS lookup table onto a long series.

    Rows whose region has no population stay in the table with a missing population.

    Parameters
    ----------
    df : pd.DataFrame
        Long case/death table
    lookup : pd.DataFrame
        Raw lookup table (JHU headers)
    keys : list of str
        Region identifier columns shared by both tables

    Returns
    -------
    pd.DataFrame
        Input rows with a float ``population`` column
    """
    lookup = rename_covid_columns(lookup)
    for key in keys:
        if key not in lookup.columns:
            lookup[key] = pd.NA

    # Coarser keys must only match lookup rows that are themselves at that level
    finer = [c for c in config.US_KEYS if c not in keys and c in lookup.columns]
    for col in finer:
        lookup = lookup[lookup[col].isna()]

    lookup = lookup[keys + ["population"]].drop_duplicates(subset=keys, keep="first").copy()
    lookup["population"] = pd.to_numeric(lookup["population"]).astype(float)

    return merge_on_keys(df, lookup, keys, how="left")


def tidy_covid_series(
    cases_wide: pd.DataFrame,
    deaths_wide: pd.DataFrame,
    lookup: pd.DataFrame,
    cases_id_cols: list[str],
    deaths_id_cols: list[str],
    keys: list[str],
) -> pd.DataFrame:
    """
    Reshape a pair of wide case/death tables into one long table with population.

    Parameters
    ----------
    cases_wide, deaths_wide : pd.DataFrame
        Raw wide tables (one column per date)
    lookup : pd.DataFrame
        Raw population lookup table
    cases_id_cols, deaths_id_cols : list of str
        Declared non-date columns of each table (after renaming)
    keys : list of str
        Region identifier columns

    Returns
    -------
    pd.DataFrame
        Columns ``keys + ['date', 'cases', 'deaths', 'population']``
    """
    cases = pivot_longer(rename_covid_columns(cases_wide), cases_id_cols, "cases")
    deaths = pivot_longer(rename_covid_columns(deaths_wide), deaths_id_cols, "deaths")

    series = merge_cases_deaths(cases, deaths, keys)
    return join_population(series, lookup, keys)


def tidy_us(cases_wide: pd.DataFrame, deaths_wide: pd.DataFrame, lookup: pd.DataFrame) -> pd.DataFrame:
    """County-level US series."""
    return tidy_covid_series(
        cases_wide,
        deaths_wide,
        lookup,
        config.US_ID_COLUMNS,
        config.US_DEATHS_ID_COLUMNS,
        config.US_KEYS,
    )


def tidy_global(
    cases_wide: pd.DataFrame, deaths_wide: pd.DataFrame, lookup: pd.DataFrame
) -> pd.DataFrame:
    """Province/country-level global series."""
    return tidy_covid_series(
        cases_wide,
        deaths_wide,
        lookup,
        config.GLOBAL_ID_COLUMNS,
        config.GLOBAL_ID_COLUMNS,
        config.GLOBAL_KEYS,
    )


def clean_covid(sources: dict[str, pd.DataFrame]) -> tuple[pd.DataFrame, pd.DataFrame]:
    """
    Tidy the four raw COVID-19 tables.

    Parameters
    ----------
    sources : dict
        Raw tables keyed as returned by ``fetch.load_covid_sources``

    Returns
    -------
    tuple of pd.DataFrame
        (US county-level series, global province-level series)
    """
    us = tidy_us(sources["us_cases"], sources["us_deaths"], sources["lookup"])
    global_ = tidy_global(sources["global_cases"], sources["global_deaths"], sources["lookup"])
    return us, global_


def rollup_regions(df: pd.DataFrame, region_cols: list[str]) -> pd.DataFrame:
    """
    Sum county/province rows up to ``region_cols`` for each date.

    Population is summed with ``min_count=1`` so a region without any known
    population stays missing rather than becoming zero.

    Parameters
    ----------
    df : pd.DataFrame
        Long series with cases, deaths and population
    region_cols : list of str
        Region level to aggregate to

    Returns
    -------
    pd.DataFrame
        One row per (region, date)
    """
    grouped = df.groupby(region_cols + ["date"], dropna=False)
    rolled = grouped[config.COUNT_COLUMNS].sum()
    rolled["population"] = grouped["population"].sum(min_count=1)
    return rolled.reset_index()
