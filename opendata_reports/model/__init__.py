"""
Model module for the NYPD shooting and COVID-19 reports.

This module provides the OLS regression used to describe the aggregated tables.
"""

from . import config
from .regression import (
    RankDeficientDesignError,
    fit_ols,
    predict,
    coefficient_table,
    model_stats,
    save_bundle,
    load_bundle,
)

__all__ = [
    'config',
    'RankDeficientDesignError',
    'fit_ols',
    'predict',
    'coefficient_table',
    'model_stats',
    'save_bundle',
    'load_bundle',
]
