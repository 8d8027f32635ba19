from __future__ import annotations

from typing import List, Tuple

# Four bounds per response dimension, in the order a fitting routine consumes them.
INTERVAL_FIELDS: Tuple[str, ...] = ("tl", "yl", "yu", "tu")

INTERCEPT_COLUMN = "Intercept"

# Key column shared by every frequency table (empirical, model, benchmark).
OUTCOME_COLUMN = "outcome"
PCT_ERROR_PREFIX = "pct_error_"


def interval_columns(dimension: int) -> List[str]:
    """Column names for 1-based response dimension `dimension`: tl_d, yl_d, yu_d, tu_d."""
    return [f"{field}_{dimension}" for field in INTERVAL_FIELDS]


def all_interval_columns(n_dims: int) -> List[str]:
    cols: List[str] = []
    for d in range(1, n_dims + 1):
        cols.extend(interval_columns(d))
    return cols
