"""
Regression Model: ordinary least squares on one numeric and several categorical predictors.
"""

import numpy as np
import pandas as pd
import statsmodels.api as sm
from sklearn.compose import ColumnTransformer
from sklearn.preprocessing import OneHotEncoder
from typing import Dict, List, Optional
import joblib
from pathlib import Path


class RankDeficientDesignError(ValueError):
    """Raised when the design matrix does not have full column rank."""


def categorical_levels(df: pd.DataFrame, categorical_cols: List[str]) -> Dict[str, list]:
    """
    Levels of each categorical predictor.

    Declared categories of a pandas categorical are kept even when unobserved;
    other columns use their sorted observed values.
    """
    levels = {}
    for col in categorical_cols:
        if isinstance(df[col].dtype, pd.CategoricalDtype):
            levels[col] = list(df[col].cat.categories)
        else:
            levels[col] = sorted(df[col].dropna().unique())
    return levels


def build_design(
    X: pd.DataFrame,
    numeric_cols: List[str],
    categorical_cols: List[str],
    levels: Dict[str, list],
    transformer: Optional[ColumnTransformer] = None
) -> tuple[pd.DataFrame, ColumnTransformer]:
    """
    Build the design matrix: constant, numerics as-is, one dummy per non-reference level.

    Args:
        X: Predictor DataFrame
        numeric_cols: Numeric predictor names
        categorical_cols: Categorical predictor names
        levels: Levels per categorical predictor (first level is the reference)
        transformer: Pre-fitted transformer (fit new one if None)

    Returns:
        Tuple of (design DataFrame with a 'const' column, transformer)

    Raises:
        ValueError: If a categorical value is not one of the known levels
    """
    X = X[numeric_cols + categorical_cols].copy()
    for col in categorical_cols:
        X[col] = X[col].astype(object)

    if transformer is None:
        transformers = []
        if numeric_cols:
            transformers.append(('num', 'passthrough', numeric_cols))
        if categorical_cols:
            transformers.append((
                'cat',
                OneHotEncoder(
                    categories=[levels[c] for c in categorical_cols],
                    drop='first',
                    sparse_output=False,
                    handle_unknown='error'
                ),
                categorical_cols
            ))
        transformer = ColumnTransformer(transformers, remainder='drop', verbose_feature_names_out=False)
        values = transformer.fit_transform(X)
    else:
        values = transformer.transform(X)

    feature_names = list(transformer.get_feature_names_out())
    design = pd.DataFrame(np.asarray(values, dtype=float), columns=feature_names, index=X.index)
    design = sm.add_constant(design, has_constant='add')

    return design, transformer


def check_full_rank(design: pd.DataFrame) -> None:
    """
    Fail on a rank-deficient design matrix instead of silently dropping columns.

    Raises:
        RankDeficientDesignError: If rank < number of columns
    """
    rank = np.linalg.matrix_rank(design.to_numpy())
    if rank < design.shape[1]:
        empty = [c for c in design.columns if c != 'const' and not design[c].any()]
        constant = [c for c in design.columns if c != 'const' and design[c].nunique() == 1 and c not in empty]
        raise RankDeficientDesignError(
            f"Design matrix is rank deficient (rank {rank} < {design.shape[1]} columns); "
            f"columns without observations: {empty}; zero-variance columns: {constant}"
        )


def fit_ols(
    df: pd.DataFrame,
    outcome: str,
    numeric_cols: List[str],
    categorical_cols: List[str]
) -> Dict:
    """
    Fit an OLS model of ``outcome`` on numeric and dummy-coded categorical predictors.

    Rows with a missing outcome or predictor are excluded. No regularisation,
    cross-validation or outlier handling is applied.

    Args:
        df: Input DataFrame
        outcome: Outcome column
        numeric_cols: Numeric predictor columns
        categorical_cols: Categorical predictor columns

    Returns:
        Bundle dict with 'model', 'transformer', 'outcome', 'numeric_cols',
        'categorical_cols', 'levels', 'exog_names', 'n_obs'

    Raises:
        RankDeficientDesignError: If the design matrix is rank deficient, e.g. a
            categorical level with no rows or a zero-variance predictor
    """
    data = df[[outcome] + numeric_cols + categorical_cols].dropna()
    if data.empty:
        raise RankDeficientDesignError("Design matrix has no rows")

    levels = categorical_levels(data, categorical_cols)

    design, transformer = build_design(data, numeric_cols, categorical_cols, levels)
    check_full_rank(design)

    y = data[outcome].astype(float)
    results = sm.OLS(y, design).fit()

    bundle = {
        'model': results,
        'transformer': transformer,
        'outcome': outcome,
        'numeric_cols': list(numeric_cols),
        'categorical_cols': list(categorical_cols),
        'levels': levels,
        'exog_names': list(results.model.exog_names),
        'n_obs': int(results.nobs),
    }

    return bundle


def predict(bundle: Dict, df: pd.DataFrame) -> pd.Series:
    """
    Fitted outcome values for predictor rows.

    Args:
        bundle: Bundle from ``fit_ols``
        df: DataFrame with the predictor columns

    Returns:
        Series of predictions aligned to ``df.index``

    Raises:
        ValueError: If a categorical predictor has a level unseen at fit time
    """
    design, _ = build_design(
        df,
        bundle['numeric_cols'],
        bundle['categorical_cols'],
        bundle['levels'],
        transformer=bundle['transformer']
    )
    design = design.reindex(columns=bundle['exog_names'])
    preds = bundle['model'].predict(design)
    return pd.Series(np.asarray(preds), index=df.index, name=f"pred_{bundle['outcome']}")


def coefficient_table(bundle: Dict) -> pd.DataFrame:
    """Estimates with standard errors, t statistics and p-values per term."""
    results = bundle['model']
    return pd.DataFrame({
        'term': results.params.index,
        'estimate': results.params.values,
        'std_error': results.bse.values,
        't_value': results.tvalues.values,
        'p_value': results.pvalues.values,
    })


def model_stats(bundle: Dict) -> Dict:
    """Goodness-of-fit statistics as plain floats (JSON serialisable)."""
    results = bundle['model']
    return {
        'outcome': bundle['outcome'],
        'r_squared': float(results.rsquared),
        'adj_r_squared': float(results.rsquared_adj),
        'f_statistic': float(results.fvalue),
        'f_pvalue': float(results.f_pvalue),
        'aic': float(results.aic),
        'bic': float(results.bic),
        'n_obs': bundle['n_obs'],
    }


def save_bundle(bundle: Dict, output_path: Path) -> None:
    """Save regression bundle to disk."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    joblib.dump(bundle, output_path)
    print(f"Saved regression model -> {output_path}")


def load_bundle(input_path: Path) -> Dict:
    """Load regression bundle from disk."""
    bundle = joblib.load(input_path)
    print(f"Loaded regression model <- {input_path}")
    return bundle
