"""
Per-expert moments of a fitted mixture.

Two fits of the same data can land on the same solution with the classes in a
different order (label switching) or on a genuinely different local optimum;
lining up the expert means/variances side by side shows which one it is.
"""

from __future__ import annotations

from typing import Dict

import pandas as pd

from models.mixture import FittedModelSummary


def expert_moments(summary: FittedModelSummary) -> pd.DataFrame:
    """
    Returns
    -------
    DataFrame with one row per (class, dimension): class, dimension, expert, mean, variance
    """
    rows = []
    for k in range(summary.n_classes):
        for d in range(summary.n_dims):
            expert = summary.experts.cell(k, d)
            rows.append({
                "class": k + 1,
                "dimension": d + 1,
                "expert": type(expert).__name__,
                "mean": float(expert.mean()),
                "variance": float(expert.variance()),
            })
    return pd.DataFrame(rows)


def compare_expert_moments(fits: Dict[str, FittedModelSummary]) -> pd.DataFrame:
    """Stack expert_moments() of several fits with a `fit` column naming each."""
    frames = []
    for label, summary in fits.items():
        df = expert_moments(summary)
        df.insert(0, "fit", label)
        frames.append(df)
    return pd.concat(frames, ignore_index=True)
