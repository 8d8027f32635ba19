"""
Join an empirical frequency table with model-predicted tables and score the gaps.

Every table has the key column `outcome` and one value column named after its
source. Tables are inner-joined on `outcome` one after another, and each model
gets a pct_error_<model> column right after its own values:

    pct_error = round((predicted - empirical) / empirical * 100, 2)

Rows keep the empirical table's order (0, 1, 2, ..., overflow bucket last).
"""

from __future__ import annotations

from typing import Optional

import numpy as np
import pandas as pd

from core.errors import EmptyJoinError
from core.schema import OUTCOME_COLUMN, PCT_ERROR_PREFIX
from core.utils import pct_error, value_column


def _keyed(table: pd.DataFrame) -> pd.DataFrame:
    out = table.copy()
    out[OUTCOME_COLUMN] = out[OUTCOME_COLUMN].astype(object)
    return out


def compare_distributions(
    empirical: pd.DataFrame,
    *model_tables: pd.DataFrame,
    decimals: int = 2,
) -> pd.DataFrame:
    """
    Parameters
    ----------
    empirical : frequency table of observed relative frequencies
    *model_tables : one frequency table per model (e.g. GLM, LRMoE)
    decimals : rounding of the pct_error columns

    Returns
    -------
    DataFrame: outcome, <empirical>, <model_1>, pct_error_<model_1>, <model_2>, ...
    """
    emp_col = value_column(empirical)
    out = _keyed(empirical)

    for table in model_tables:
        col = value_column(table)
        if col in out.columns:
            raise ValueError(f"Duplicate source name '{col}' in comparison.")
        out = out.merge(_keyed(table), on=OUTCOME_COLUMN, how="inner", sort=False)
        out[f"{PCT_ERROR_PREFIX}{col}"] = pct_error(out[col], out[emp_col], decimals)

    if out.empty:
        raise EmptyJoinError(
            "No outcome value is shared by the empirical table and every model table."
        )
    return out.reset_index(drop=True)


def model_columns(comparison: pd.DataFrame):
    """Names of the model sources in a comparison table, in join order."""
    return [
        c[len(PCT_ERROR_PREFIX):]
        for c in comparison.columns
        if c.startswith(PCT_ERROR_PREFIX)
    ]


def summarize_comparison(
    comparison: pd.DataFrame,
    *,
    empirical_name: Optional[str] = None,
) -> pd.DataFrame:
    """
    One row per model: worst absolute pct error and total variation distance
    0.5 * sum |predicted - empirical| over the joined buckets.
    """
    emp_col = empirical_name if empirical_name is not None else comparison.columns[1]
    rows = []
    for model in model_columns(comparison):
        diff = comparison[model].to_numpy(dtype=float) - comparison[emp_col].to_numpy(dtype=float)
        pct = comparison[f"{PCT_ERROR_PREFIX}{model}"].to_numpy(dtype=float)
        rows.append({
            "Model": model,
            "Max |pct error|": float(np.nanmax(np.abs(pct))),
            "Total variation": float(0.5 * np.abs(diff).sum()),
        })
    return pd.DataFrame(rows)
