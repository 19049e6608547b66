"""NYPD Shooting and COVID-19 Reports Package.

This package provides tools for fetching, cleaning, aggregating and modeling the NYPD
shooting incident export and the JHU CSSE COVID-19 time series.
"""

__version__ = "0.1.0"
