"""
Data quality validation for interval-encoded responses before they go to a fit.

encode() already guarantees the bound ordering; these checks are for tables that
arrive from elsewhere (saved datasets, hand-built blocks, other tooling):
- Missing tl/yl/yu/tu columns
- Bounds out of order (tl <= yl <= yu <= tu broken)
- Null bounds
- Covariate rows that do not line up with the responses
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
import pandas as pd

from core.schema import INTERCEPT_COLUMN, INTERVAL_FIELDS, interval_columns


@dataclass
class ValidationResult:
    """Collects all validation warnings/errors for an encoded dataset."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def summary(self) -> str:
        lines = []
        if self.errors:
            lines.append(f"ERRORS ({len(self.errors)}):")
            for e in self.errors:
                lines.append(f"  ✗ {e}")
        if self.warnings:
            lines.append(f"WARNINGS ({len(self.warnings)}):")
            for w in self.warnings:
                lines.append(f"  ⚠ {w}")
        if not lines:
            lines.append("✓ All checks passed.")
        return "\n".join(lines)


def validate_intervals(
    intervals: pd.DataFrame,
    *,
    covariates: Optional[pd.DataFrame] = None,
) -> ValidationResult:
    """
    Run all validation checks on an interval table (tl_d, yl_d, yu_d, tu_d columns).
    Returns a ValidationResult with errors (blocking) and warnings (informational).
    """
    result = ValidationResult()

    n_fields = len(INTERVAL_FIELDS)
    if len(intervals.columns) == 0 or len(intervals.columns) % n_fields != 0:
        result.errors.append(
            f"Expected a multiple of {n_fields} bound columns, got {len(intervals.columns)}."
        )
        return result
    n_dims = len(intervals.columns) // n_fields

    # --- Schema checks ---
    expected = [c for d in range(1, n_dims + 1) for c in interval_columns(d)]
    missing = [c for c in expected if c not in intervals.columns]
    if missing:
        result.errors.append(f"Missing required columns: {missing}")
        return result  # can't continue without columns

    n = len(intervals)
    if n == 0:
        result.errors.append("Interval table is empty (0 rows).")
        return result

    # --- Bounds, per dimension ---
    for d in range(1, n_dims + 1):
        tl_c, yl_c, yu_c, tu_c = interval_columns(d)
        b = intervals[[tl_c, yl_c, yu_c, tu_c]].apply(pd.to_numeric, errors="coerce")

        n_null = int(b.isna().any(axis=1).sum())
        if n_null > 0:
            result.errors.append(f"Dimension {d}: {n_null} rows have null/unparseable bounds.")

        ordered = (
            (b[tl_c] <= b[yl_c]) & (b[yl_c] <= b[yu_c]) & (b[yu_c] <= b[tu_c])
        )
        n_bad = int((~ordered & b.notna().all(axis=1)).sum())
        if n_bad > 0:
            result.errors.append(
                f"Dimension {d}: {n_bad} rows violate tl <= yl <= yu <= tu."
            )

        n_censored = int((b[yl_c] < b[yu_c]).sum())
        if n_censored == n:
            result.warnings.append(
                f"Dimension {d}: every observation is censored; no exact values to anchor a fit."
            )

        n_neg = int((b[yl_c] < 0).sum())
        if n_neg > 0:
            result.warnings.append(
                f"Dimension {d}: {n_neg} rows have negative lower bounds; check units."
            )

    # --- Covariates ---
    if covariates is not None:
        if len(covariates) != n:
            result.errors.append(
                f"Covariates have {len(covariates)} rows, intervals have {n}."
            )
        elif not covariates.index.equals(intervals.index):
            result.warnings.append("Covariate and interval row labels differ.")

        if INTERCEPT_COLUMN in covariates.columns:
            icpt = pd.to_numeric(covariates[INTERCEPT_COLUMN], errors="coerce")
            if not np.allclose(icpt.to_numpy(dtype=float), 1.0):
                result.errors.append(f"{INTERCEPT_COLUMN} column is not identically 1.")
        else:
            result.warnings.append(f"No '{INTERCEPT_COLUMN}' covariate column found.")

    return result
