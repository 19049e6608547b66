"""
Reshaping helpers shared by the report pipelines.
Provides an explicit wide-to-long unpivot over declared identifier columns, its inverse,
and a keyed merge that treats missing optional key parts as equal.
"""

import pandas as pd

from . import config


def pivot_longer(
    df: pd.DataFrame,
    id_cols: list[str],
    value_name: str,
    date_format: str = config.COVID_DATE_FORMAT,
) -> pd.DataFrame:
    """
    Unpivot a wide table (one column per date) into one row per (entity, date).

    Every column not listed in ``id_cols`` must be a date header in ``date_format``.
    A new identifier column in the source therefore fails loudly instead of being
    read as a date.

    Args:
        df: Wide DataFrame.
        id_cols: Declared non-date identifier columns.
        value_name: Name of the value column in the output.
        date_format: strftime format of the date headers.

    Returns:
        Long DataFrame with ``id_cols + ['date', value_name]``, ordered by source row then date.

    Raises:
        KeyError: If a declared identifier column is missing.
        ValueError: If a non-identifier column header is not a date.
    """
    missing = [c for c in id_cols if c not in df.columns]
    if missing:
        raise KeyError(f"Identifier columns not found: {missing}")

    date_cols = [c for c in df.columns if c not in id_cols]
    parsed = pd.to_datetime(
        pd.Series([str(c) for c in date_cols], dtype=object), format=date_format, errors="coerce"
    )
    not_dates = [c for c, d in zip(date_cols, parsed) if pd.isna(d)]
    if not_dates:
        raise ValueError(f"Columns are neither declared identifiers nor dates: {not_dates}")

    long = df.reset_index(drop=True).melt(
        id_vars=id_cols,
        value_vars=date_cols,
        var_name="date",
        value_name=value_name,
        ignore_index=False,
    )
    long["date"] = pd.to_datetime(long["date"].map(dict(zip(date_cols, parsed))))
    long = long.rename_axis("row").sort_values(["row", "date"], kind="stable")

    return long.reset_index(drop=True)


def pivot_wider(
    df: pd.DataFrame,
    id_cols: list[str],
    value_name: str,
    date_format: str = config.COVID_DATE_FORMAT,
) -> pd.DataFrame:
    """
    Inverse of ``pivot_longer``: one column per date, headers formatted with ``date_format``.

    Args:
        df: Long DataFrame with ``id_cols``, ``date`` and ``value_name``.
        id_cols: Identifier columns forming the row key.
        value_name: Column holding the values to spread.
        date_format: strftime format for the date headers.

    Returns:
        Wide DataFrame.
    """
    wide = df.set_index(id_cols + ["date"])[value_name].unstack("date")
    wide.columns = [d.strftime(date_format) for d in wide.columns]
    return wide.reset_index()


def merge_on_keys(
    left: pd.DataFrame, right: pd.DataFrame, keys: list[str], how: str = "left"
) -> pd.DataFrame:
    """
    Merge on ``keys``, matching missing key parts (e.g. no province) to each other.

    Args:
        left: Left DataFrame.
        right: Right DataFrame.
        keys: Join columns.
        how: Merge type passed to ``pd.DataFrame.merge``.

    Returns:
        Merged DataFrame with missing key parts restored as missing values.
    """
    left = left.copy()
    right = right.copy()
    # datetime keys never carry the empty marker
    text_keys = [k for k in keys if not pd.api.types.is_datetime64_any_dtype(left[k])]
    for key in text_keys:
        left[key] = left[key].astype(object).where(left[key].notna(), "")
        right[key] = right[key].astype(object).where(right[key].notna(), "")

    merged = left.merge(right, on=keys, how=how)

    for key in text_keys:
        merged[key] = merged[key].mask(merged[key] == "")

    return merged
