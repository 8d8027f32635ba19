"""
Build (y, X) model inputs from a tabular dataset.

X always carries an explicit Intercept column of ones as its first column; the
column names are the covariate name → index mapping the coefficients refer to.
Categorical (incl. ordered) and text columns are dummy-coded against their first
level, so a 4-level vehicle-age factor contributes 3 columns.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np
import pandas as pd

from core.schema import INTERCEPT_COLUMN
from core.utils import require_columns


def _is_categorical(s: pd.Series) -> bool:
    # bool counts as numeric to pandas; text may be object or the str/string dtype
    return (
        isinstance(s.dtype, pd.CategoricalDtype)
        or pd.api.types.is_bool_dtype(s)
        or not pd.api.types.is_numeric_dtype(s)
    )



def build_design_matrix(
    df: pd.DataFrame,
    response: str | Sequence[str],
    covariates: Sequence[str],
) -> Tuple[np.ndarray, pd.DataFrame]:
    """
    Returns
    -------
    (y, X)
    y: float array of shape (n, D), always 2-D, even for a single response
    X: DataFrame with columns [Intercept, <numeric covariates / dummies...>]
    """
    responses: List[str] = [response] if isinstance(response, str) else list(response)
    require_columns(df, responses + list(covariates))

    y = df[responses].to_numpy(dtype=float)

    parts = [pd.Series(1.0, index=df.index, name=INTERCEPT_COLUMN)]
    for col in covariates:
        s = df[col]
        if _is_categorical(s):
            dummies = pd.get_dummies(s, prefix=col, prefix_sep=": ", drop_first=True, dtype=float)
            parts.extend(dummies[c] for c in dummies.columns)
        else:
            parts.append(pd.to_numeric(s, errors="raise").astype(float).rename(col))

    X = pd.concat(parts, axis=1)
    return y, X
