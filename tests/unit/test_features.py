"""
Tests of `opendata_reports.features`
"""

import numpy as np
import pandas as pd
import pytest

from opendata_reports import config
from opendata_reports.features import (
    add_daily_counts,
    add_per_thousand,
    assign_population_group,
    find_monotonicity_violations,
    quantile_cut_points,
    region_summary,
    summarize_incidents,
)
from opendata_reports.utils import pivot_longer


def series(region, cases, deaths=None, start="2020-01-01"):
    deaths = deaths if deaths is not None else [0] * len(cases)
    return pd.DataFrame(
        {
            "region": region,
            "date": pd.date_range(start, periods=len(cases), freq="D"),
            "cases": cases,
            "deaths": deaths,
            "population": 1000.0,
        }
    )


def test_summarize_incidents():
    df = pd.DataFrame(
        {
            "boro": ["BRONX", "BRONX", "BRONX", "QUEENS"],
            "fatal": [True, False, False, True],
        }
    )

    res = summarize_incidents(df, ["boro"])

    assert res["boro"].tolist() == ["BRONX", "QUEENS"]
    assert res["incidents"].tolist() == [3, 1]
    assert res["fatal"].tolist() == [1, 1]
    assert res["fatal_ratio"].tolist() == pytest.approx([1 / 3, 1.0])
    assert res["share"].tolist() == pytest.approx([0.75, 0.25])


def test_summarize_incidents_no_zero_fill():
    df = pd.DataFrame(
        {
            "vic_age_group": pd.Categorical(["<18", "25-44"], categories=config.AGE_GROUP_LEVELS),
            "boro": ["BRONX", "QUEENS"],
            "fatal": [False, True],
        }
    )

    res = summarize_incidents(df, ["vic_age_group", "boro"])

    assert len(res) == 2
    assert res["vic_age_group"].tolist() == ["<18", "25-44"]


def test_region_summary_takes_max_not_sum():
    wide = pd.DataFrame({"region": ["A"], "01/01/20": [0], "01/02/20": [5]})
    long = pivot_longer(wide, ["region"], "cases")
    assert long["region"].tolist() == ["A", "A"]
    assert long["date"].tolist() == [pd.Timestamp("2020-01-01"), pd.Timestamp("2020-01-02")]
    assert long["cases"].tolist() == [0, 5]

    long["deaths"] = [0, 2]
    long["population"] = [100.0, 100.0]

    res = region_summary(long, ["region"])

    assert res.loc[0, "cases"] == 5
    assert res.loc[0, "deaths"] == 2
    assert res.loc[0, "population"] == 100.0


def test_region_summary_matches_max_cumulative_deaths():
    df = pd.concat([series("A", [1, 2, 3], [0, 1, 4]), series("B", [2, 2, 9], [1, 1, 1])])

    res = region_summary(df, ["region"]).set_index("region")

    for region, group in df.groupby("region"):
        assert res.loc[region, "deaths"] == group["deaths"].max()


def test_add_per_thousand_excludes_non_positive_cases():
    df = pd.DataFrame(
        {
            "cases": [50, 0, 10],
            "deaths": [5, 0, 1],
            "population": [10000.0, 10000.0, np.nan],
        }
    )

    res = add_per_thousand(df)

    assert len(res) == 3
    assert res.loc[0, "cases_per_thou"] == pytest.approx(5.0)
    assert res.loc[0, "deaths_per_thou"] == pytest.approx(0.5)
    assert res.loc[0, "deaths_per_case"] == pytest.approx(0.1)
    assert res[["cases_per_thou", "deaths_per_thou"]].iloc[1:].isna().all().all()
    assert np.isnan(res.loc[1, "deaths_per_case"])
    assert res.loc[2, "deaths_per_case"] == pytest.approx(0.1)


def test_add_daily_counts():
    df = pd.concat([series("A", [0, 5, 7], [0, 1, 1]), series("B", [3, 5, 5])])

    res = add_daily_counts(df, ["region"])

    assert res["new_cases"].tolist() == [0, 5, 2, 3, 2, 0]
    assert res["new_deaths"].tolist() == [0, 1, 0, 0, 0, 0]


def test_find_monotonicity_violations():
    df = pd.concat([series("A", [1, 3, 2, 4]), series("B", [1, 2, 3, 4])])

    res = find_monotonicity_violations(df, ["region"])

    assert len(res) == 1
    assert res.loc[0, "region"] == "A"
    assert res.loc[0, "date"] == pd.Timestamp("2020-01-03")
    assert res.loc[0, "metric"] == "cases"
    assert res.loc[0, "value"] == 2
    assert res.loc[0, "prior_max"] == 3


def test_find_monotonicity_violations_missing_region_key():
    df = pd.concat(
        [
            series(np.nan, [4, 2, 5]),
            series("B", [1, 6, 7]),
            series(np.nan, [1, 1], start="2020-01-04"),
        ]
    )

    res = find_monotonicity_violations(df, ["region"])

    assert len(res) == 3
    assert res["region"].isna().all()
    assert res["date"].tolist() == list(pd.to_datetime(["2020-01-02", "2020-01-04", "2020-01-05"]))
    assert res["value"].tolist() == [2, 1, 1]
    assert res["prior_max"].tolist() == [4, 5, 5]


def test_find_monotonicity_violations_monotone():
    res = find_monotonicity_violations(series("A", [1, 1, 2], [0, 0, 1]), ["region"])

    assert res.empty
    assert list(res.columns) == ["region", "date", "metric", "value", "prior_max"]


def test_quantile_cut_points_ignores_missing():
    res = quantile_cut_points(pd.Series([1.0, np.nan, 3.0]), (0.5,))

    np.testing.assert_allclose(res, [2.0])


def test_quantile_cut_points_no_values():
    with pytest.raises(ValueError, match="without any known values"):
        quantile_cut_points(pd.Series([np.nan]), (0.5,))


@pytest.mark.parametrize(
    "probs, exp_sizes",
    (
        pytest.param(config.TERCILES, [33, 34, 33], id="terciles"),
        pytest.param(config.QUINTILES, [20, 20, 20, 20, 20], id="quintiles"),
    ),
)
def test_assign_population_group_partition(probs, exp_sizes):
    df = pd.DataFrame({"population": np.arange(1, 101, dtype=float)})

    res, cuts = assign_population_group(df, probs)

    assert res["pop_group"].notna().all()
    assert res["pop_group"].value_counts().sort_index().tolist() == exp_sizes

    groups = res["pop_group"].astype(int).to_numpy()
    for group in range(1, len(probs) + 2):
        values = res.loc[groups == group, "population"]
        if group <= len(cuts):
            assert (values <= cuts[group - 1]).all()
        if group > 1:
            assert (values > cuts[group - 2]).all()


def test_assign_population_group_value_on_cut_point_goes_low():
    df = pd.DataFrame({"population": [1.0, 2.0, 3.0, 4.0, 5.0]})

    res, cuts = assign_population_group(df, (0.5,))

    np.testing.assert_allclose(cuts, [3.0])
    assert res["pop_group"].tolist() == [1, 1, 1, 2, 2]


def test_assign_population_group_missing_population():
    df = pd.DataFrame({"population": [10.0, np.nan, 30.0, 20.0]})

    res, _ = assign_population_group(df, config.TERCILES)

    assert len(res) == 4
    assert pd.isna(res.loc[1, "pop_group"])
    assert res["pop_group"].cat.categories.tolist() == [1, 2, 3]
    assert res.loc[[0, 3, 2], "pop_group"].tolist() == [1, 2, 3]
