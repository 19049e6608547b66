"""
Regression model definitions for the two reports.
"""

# Shootings: incident counts per (hour, borough, weekday) bucket
SHOOTINGS_MODEL = {
    "group_by": ["hour", "boro", "weekday"],
    "outcome": "incidents",
    "numeric_cols": ["hour"],
    "categorical_cols": ["boro", "weekday"],
}

# COVID-19: per-region deaths per thousand on cases per thousand and population group
COVID_MODEL = {
    "outcome": "deaths_per_thou",
    "numeric_cols": ["cases_per_thou"],
    "categorical_cols": ["pop_group"],
}
