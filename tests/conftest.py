"""
Shared fixtures for the report tests
"""

import pandas as pd
import pytest

BASE_INCIDENT = {
    "INCIDENT_KEY": "228798151",
    "OCCUR_DATE": "01/06/2020",
    "OCCUR_TIME": "19:36:00",
    "BORO": "BRONX",
    "LOC_OF_OCCUR_DESC": "OUTSIDE",
    "PRECINCT": "44",
    "JURISDICTION_CODE": "0",
    "LOC_CLASSFCTN_DESC": "STREET",
    "LOCATION_DESC": "(null)",
    "STATISTICAL_MURDER_FLAG": "false",
    "PERP_AGE_GROUP": "25-44",
    "PERP_SEX": "M",
    "PERP_RACE": "BLACK",
    "VIC_AGE_GROUP": "18-24",
    "VIC_SEX": "M",
    "VIC_RACE": "BLACK",
    "X_COORD_CD": "1007314",
    "Y_COORD_CD": "241257",
    "Latitude": "40.809",
    "Longitude": "-73.920",
    "Lon_Lat": "POINT (-73.920 40.809)",
}


@pytest.fixture
def make_incidents():
    """Factory building a raw incident table, one row per dict of column overrides."""

    def _make(*overrides):
        return pd.DataFrame([{**BASE_INCIDENT, **o} for o in overrides], dtype=object)

    return _make
