"""
Core package — schema definitions, configuration, errors, and shared utilities.
No business logic lives here.
"""

from .schema import INTERVAL_FIELDS, INTERCEPT_COLUMN, OUTCOME_COLUMN, interval_columns
from .config import ComparisonConfig, FitOptions
from .errors import DimensionMismatch, ShapeMismatch, EmptyJoinError
from .utils import require_columns, pct_error, frequency_table

__all__ = [
    "INTERVAL_FIELDS",
    "INTERCEPT_COLUMN",
    "OUTCOME_COLUMN",
    "interval_columns",
    "ComparisonConfig",
    "FitOptions",
    "DimensionMismatch",
    "ShapeMismatch",
    "EmptyJoinError",
    "require_columns",
    "pct_error",
    "frequency_table",
]
