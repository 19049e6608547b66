"""Public dataset loaders.

This module reads the NYPD shooting incident export and the JHU CSSE COVID-19
time series (plus the UID/ISO/FIPS population lookup) into DataFrames.

Sources are read once per run with pandas' default CSV conventions. Nothing is
cached or retried: if a source is unreachable the underlying I/O error
propagates to the caller.
"""

from typing import Optional

import pandas as pd

from . import config


def load_csv(source: str, **read_csv_kwargs) -> pd.DataFrame:
    """Read a CSV table from a URL or local path.

    Args:
        source: URL or filesystem path of the CSV file.
        **read_csv_kwargs: Extra keyword arguments passed to ``pd.read_csv``.

    Returns:
        DataFrame with one row per source record.

    Raises:
        FileNotFoundError, urllib.error.URLError: If the source cannot be read.
    """
    return pd.read_csv(source, **read_csv_kwargs)


def load_shootings(source: str = config.SHOOTINGS_URL) -> pd.DataFrame:
    """Load the raw NYPD shooting incident export.

    Every column is read as text; typing happens in
    ``preprocessing.clean_shootings``.

    Args:
        source: URL or path of the incident CSV. Defaults to the NYC Open Data export.

    Returns:
        Raw, untyped incident table.
    """
    return load_csv(source, dtype=str)


def load_covid_sources(sources: Optional[dict[str, str]] = None) -> dict[str, pd.DataFrame]:
    """Load the four COVID-19 time series and the population lookup table.

    Args:
        sources: Optional overrides keyed by ``us_cases``, ``us_deaths``,
            ``global_cases``, ``global_deaths`` and ``lookup``. Missing keys
            fall back to the JHU CSSE URLs in config.

    Returns:
        Dict of raw DataFrames with the same keys.
    """
    locations = dict(config.COVID_URLS)
    locations["lookup"] = config.POPULATION_LOOKUP_URL
    if sources:
        unknown = set(sources) - set(locations)
        if unknown:
            raise KeyError(f"Unknown COVID source keys: {sorted(unknown)}")
        locations.update(sources)

    frames = {}
    for name, location in locations.items():
        frames[name] = load_csv(location)
    return frames
