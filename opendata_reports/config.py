"""
Configuration settings for the NYPD shooting and COVID-19 reports.

This module contains all configuration parameters for data fetching, cleaning,
aggregation and modeling of the two public datasets.
"""

from pathlib import Path


# =============================================================================
# PROJECT PATHS
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent
OUTPUT_DIR = PROJECT_ROOT / "output"


# =============================================================================
# DATA SOURCES
# =============================================================================

# NYPD Shooting Incident Data (Historic), NYC Open Data export
SHOOTINGS_URL = "https://data.cityofnewyork.us/api/views/833y-fsy8/rows.csv?accessType=DOWNLOAD"

# JHU CSSE COVID-19 time series
JHU_BASE_URL = (
    "https://raw.githubusercontent.com/CSSEGISandData/COVID-19/master/"
    "csse_covid_19_data/csse_covid_19_time_series/"
)
COVID_URLS = {
    "us_cases": JHU_BASE_URL + "time_series_covid19_confirmed_US.csv",
    "us_deaths": JHU_BASE_URL + "time_series_covid19_deaths_US.csv",
    "global_cases": JHU_BASE_URL + "time_series_covid19_confirmed_global.csv",
    "global_deaths": JHU_BASE_URL + "time_series_covid19_deaths_global.csv",
}
POPULATION_LOOKUP_URL = (
    "https://raw.githubusercontent.com/CSSEGISandData/COVID-19/master/"
    "csse_covid_19_data/UID_ISO_FIPS_LookUp_Table.csv"
)


# =============================================================================
# SENTINELS
# =============================================================================

UNKNOWN = "UNKNOWN"
UNKNOWN_SEX = "U"
NULL_MARKERS = ["(null)", ""]

# A well-formed age group token contains at least one of these characters
AGE_GROUP_TOKEN_CHARS = ("-", "<", "+")
AGE_GROUP_LEVELS = ["<18", "18-24", "25-44", "45-64", "65+", UNKNOWN]


# =============================================================================
# SHOOTINGS SCHEMA
# =============================================================================

SHOOTINGS_DATE_FORMAT = "%m/%d/%Y"
SHOOTINGS_TIME_FORMAT = "%H:%M:%S"

# Identification keys, coordinates and free-text location fields
SHOOTINGS_DROP_COLUMNS = [
    "INCIDENT_KEY",
    "LOC_OF_OCCUR_DESC",
    "LOC_CLASSFCTN_DESC",
    "LOCATION_DESC",
    "X_COORD_CD",
    "Y_COORD_CD",
    "Latitude",
    "Longitude",
    "Lon_Lat",
]

SHOOTINGS_COLUMNS = {
    "OCCUR_DATE": "occur_date",
    "OCCUR_TIME": "occur_time",
    "BORO": "boro",
    "PRECINCT": "precinct",
    "JURISDICTION_CODE": "jurisdiction_code",
    "STATISTICAL_MURDER_FLAG": "fatal",
    "PERP_AGE_GROUP": "perp_age_group",
    "PERP_SEX": "perp_sex",
    "PERP_RACE": "perp_race",
    "VIC_AGE_GROUP": "vic_age_group",
    "VIC_SEX": "vic_sex",
    "VIC_RACE": "vic_race",
}

AGE_GROUP_COLUMNS = ["perp_age_group", "vic_age_group"]
SEX_COLUMNS = ["perp_sex", "vic_sex"]
RACE_COLUMNS = ["perp_race", "vic_race"]
UNKNOWN_CATEGORICAL_COLUMNS = ["boro"]
ID_COLUMNS = ["precinct", "jurisdiction_code"]

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
TIME_SLOT_MINUTES = 15

# Summary tables written by the shootings report: name -> grouping columns
SHOOTINGS_SUMMARIES = {
    "by_hour": ["hour"],
    "by_time_slot": ["time_slot"],
    "by_weekday": ["weekday"],
    "by_year": ["year"],
    "by_boro": ["boro"],
    "by_vic_age_group": ["vic_age_group"],
    "by_perp_age_group": ["perp_age_group"],
    "by_boro_hour": ["boro", "hour"],
    "by_vic_sex_race": ["vic_sex", "vic_race"],
}


# =============================================================================
# COVID SCHEMA
# =============================================================================

# Header format of the per-date columns in the wide JHU tables (e.g. 1/22/20)
COVID_DATE_FORMAT = "%m/%d/%y"

COVID_RENAME = {
    "Province_State": "province_state",
    "Province/State": "province_state",
    "Country_Region": "country_region",
    "Country/Region": "country_region",
    "Admin2": "county",
    "Population": "population",
}

# Non-date columns of each wide table, after renaming
US_ID_COLUMNS = [
    "UID",
    "iso2",
    "iso3",
    "code3",
    "FIPS",
    "county",
    "province_state",
    "country_region",
    "Lat",
    "Long_",
    "Combined_Key",
]
US_DEATHS_ID_COLUMNS = US_ID_COLUMNS + ["population"]
GLOBAL_ID_COLUMNS = ["province_state", "country_region", "Lat", "Long"]

US_KEYS = ["county", "province_state", "country_region"]
GLOBAL_KEYS = ["province_state", "country_region"]

US_REGION = ["province_state", "country_region"]
GLOBAL_REGION = ["country_region"]

COUNT_COLUMNS = ["cases", "deaths"]

# Quantile probabilities for population size groups
TERCILES = (0.33, 0.67)
QUINTILES = (0.2, 0.4, 0.6, 0.8)

PER_THOUSAND = 1000
