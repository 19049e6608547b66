"""
Tests of the COVID-19 reshaping and joins in `opendata_reports.preprocessing`
"""

import numpy as np
import pandas as pd
import pytest

from opendata_reports.preprocessing import (
    clean_covid,
    coerce_counts,
    join_population,
    merge_cases_deaths,
    rollup_regions,
    tidy_global,
    tidy_us,
)

KEYS = ["province_state", "country_region"]


def us_wide(rows, dates, with_population=False):
    records = []
    for i, (county, state, values, population) in enumerate(rows):
        record = {
            "UID": 84000000 + i,
            "iso2": "US",
            "iso3": "USA",
            "code3": 840,
            "FIPS": 1000.0 + i,
            "Admin2": county,
            "Province_State": state,
            "Country_Region": "US",
            "Lat": 32.5,
            "Long_": -86.6,
            "Combined_Key": f"{county}, {state}, US",
        }
        if with_population:
            record["Population"] = population
        record.update(dict(zip(dates, values)))
        records.append(record)
    return pd.DataFrame(records)


def global_wide(rows, dates):
    records = []
    for province, country, values in rows:
        record = {"Province/State": province, "Country/Region": country, "Lat": 1.0, "Long": 2.0}
        record.update(dict(zip(dates, values)))
        records.append(record)
    return pd.DataFrame(records)


def lookup_table(rows):
    return pd.DataFrame(
        [
            {
                "UID": i,
                "Admin2": county,
                "Province_State": state,
                "Country_Region": country,
                "Population": population,
            }
            for i, (county, state, country, population) in enumerate(rows)
        ]
    )


def test_merge_cases_deaths_outer_join_defaults_to_zero():
    dates = pd.to_datetime(["2020-01-22", "2020-01-23", "2020-01-24"])
    cases = pd.DataFrame({"province_state": ["S"] * 3, "country_region": ["X"] * 3, "date": dates, "cases": [1, 2, 3]})
    deaths = pd.DataFrame(
        {"province_state": ["S"] * 2, "country_region": ["X"] * 2, "date": dates[:2], "deaths": [0, 1]}
    )

    res = merge_cases_deaths(cases, deaths, KEYS)

    assert res["date"].tolist() == list(dates)
    assert res["cases"].tolist() == [1, 2, 3]
    assert res["deaths"].tolist() == [0, 1, 0]
    assert res["deaths"].dtype == np.int64


def test_coerce_counts_unparsable():
    with pytest.raises(ValueError):
        coerce_counts(pd.DataFrame({"cases": ["1", "two"]}), ["cases"])


def test_join_population_keeps_unmatched_rows():
    series = pd.DataFrame(
        {
            "province_state": [np.nan, np.nan],
            "country_region": ["X", "Nowhere"],
            "date": pd.to_datetime(["2020-01-22", "2020-01-22"]),
            "cases": [1, 2],
            "deaths": [0, 0],
        }
    )
    lookup = lookup_table(
        [
            (np.nan, np.nan, "X", 5000),
            (np.nan, np.nan, "Nowhere", np.nan),
        ]
    )

    res = join_population(series, lookup, KEYS)

    assert len(res) == 2
    assert res["population"].tolist()[0] == 5000
    assert np.isnan(res["population"].tolist()[1])


def test_join_population_coarse_keys_ignore_county_rows():
    series = pd.DataFrame(
        {
            "province_state": ["Alabama"],
            "country_region": ["US"],
            "date": pd.to_datetime(["2020-01-22"]),
            "cases": [1],
            "deaths": [0],
        }
    )
    lookup = lookup_table(
        [
            ("Autauga", "Alabama", "US", 55869),
            (np.nan, "Alabama", "US", 4903185),
            ("Baldwin", "Alabama", "US", 223234),
        ]
    )

    res = join_population(series, lookup, KEYS)

    assert len(res) == 1
    assert res.loc[0, "population"] == 4903185


def test_tidy_us():
    dates = ["1/22/20", "1/23/20"]
    cases = us_wide([("Autauga", "Alabama", [0, 5], None), ("Baldwin", "Alabama", [1, 3], None)], dates)
    deaths = us_wide(
        [("Autauga", "Alabama", [0, 1], 55869), ("Baldwin", "Alabama", [0, 0], 223234)],
        dates,
        with_population=True,
    )
    lookup = lookup_table(
        [
            ("Autauga", "Alabama", "US", 55869),
            ("Baldwin", "Alabama", "US", 223234),
            (np.nan, "Alabama", "US", 4903185),
        ]
    )

    res = tidy_us(cases, deaths, lookup)

    assert list(res.columns) == ["county", "province_state", "country_region", "date", "cases", "deaths", "population"]
    assert len(res) == 4
    autauga = res[res["county"] == "Autauga"]
    assert autauga["cases"].tolist() == [0, 5]
    assert autauga["deaths"].tolist() == [0, 1]
    assert autauga["population"].tolist() == [55869, 55869]


def test_tidy_us_undeclared_column():
    dates = ["1/22/20"]
    cases = us_wide([("Autauga", "Alabama", [0], None)], dates)
    cases["Source"] = "state dashboard"
    deaths = us_wide([("Autauga", "Alabama", [0], 55869)], dates, with_population=True)

    with pytest.raises(ValueError, match="Source"):
        tidy_us(cases, deaths, lookup_table([]))


def test_tidy_global_missing_province():
    dates = ["1/22/20", "1/23/20"]
    cases = global_wide([(np.nan, "X", [1, 2]), ("P", "Y", [0, 4])], dates)
    deaths = global_wide([(np.nan, "X", [0, 1]), ("P", "Y", [0, 0])], dates)
    lookup = lookup_table([(np.nan, np.nan, "X", 1000), (np.nan, "P", "Y", 2000)])

    res = tidy_global(cases, deaths, lookup)

    x = res[res["country_region"] == "X"]
    assert x["province_state"].isna().all()
    assert x["cases"].tolist() == [1, 2]
    assert x["population"].tolist() == [1000, 1000]
    assert res.loc[res["country_region"] == "Y", "population"].tolist() == [2000, 2000]


def test_clean_covid_returns_us_and_global():
    dates = ["1/22/20"]
    sources = {
        "us_cases": us_wide([("Autauga", "Alabama", [3], None)], dates),
        "us_deaths": us_wide([("Autauga", "Alabama", [1], 55869)], dates, with_population=True),
        "global_cases": global_wide([(np.nan, "X", [7])], dates),
        "global_deaths": global_wide([(np.nan, "X", [2])], dates),
        "lookup": lookup_table([("Autauga", "Alabama", "US", 55869), (np.nan, np.nan, "X", 1000)]),
    }

    us, global_ = clean_covid(sources)

    assert us[["cases", "deaths", "population"]].values.tolist() == [[3, 1, 55869]]
    assert global_[["cases", "deaths", "population"]].values.tolist() == [[7, 2, 1000]]


def test_rollup_regions():
    date = pd.Timestamp("2020-01-22")
    df = pd.DataFrame(
        {
            "county": ["A", "B", "C"],
            "province_state": ["S", "S", "T"],
            "country_region": ["US", "US", "US"],
            "date": [date] * 3,
            "cases": [1, 2, 4],
            "deaths": [0, 1, 1],
            "population": [100.0, np.nan, np.nan],
        }
    )

    res = rollup_regions(df, KEYS)

    assert res["cases"].tolist() == [3, 4]
    assert res["deaths"].tolist() == [1, 1]
    assert res["population"].tolist()[0] == 100.0
    assert np.isnan(res["population"].tolist()[1])
