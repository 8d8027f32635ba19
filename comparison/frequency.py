"""
Empirical frequency tables — the observed side of every comparison.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import pandas as pd

from core.utils import bucket_labels, frequency_table


def empirical_frequency(
    values,
    *,
    max_value: int = 3,
    name: str = "Empirical",
    overflow_label: Optional[str] = None,
) -> pd.DataFrame:
    """
    Relative frequencies of the counts 0..max_value plus an overflow bucket
    holding everything above max_value.

    Returns
    -------
    DataFrame with columns [outcome, <name>], outcome = 0, 1, ..., max_value, "<max_value+1>+".
    """
    if max_value < 0:
        raise ValueError(f"max_value must be >= 0, got {max_value}")
    arr = np.asarray(values, dtype=float).ravel()
    arr = arr[~np.isnan(arr)]
    if len(arr) == 0:
        raise ValueError("Cannot build an empirical frequency table from zero observations.")

    label = overflow_label if overflow_label is not None else f"{max_value + 1}+"
    n = len(arr)
    freqs = [np.sum(arr == i) / n for i in range(max_value + 1)]
    freqs.append(np.sum(arr > max_value) / n)
    return frequency_table(bucket_labels(max_value, label), freqs, name)


def empirical_pmf(
    values,
    support: Sequence[float],
    *,
    name: str = "Empirical",
) -> pd.DataFrame:
    """Share of observations exactly equal to each support point (no overflow bucket)."""
    arr = np.asarray(values, dtype=float).ravel()
    if len(arr) == 0:
        raise ValueError("Cannot build an empirical pmf from zero observations.")
    support = list(support)
    probs = [np.sum(arr == s) / len(arr) for s in support]
    return frequency_table(support, probs, name)
