from __future__ import annotations

from typing import Iterable, List, Sequence, Union

import numpy as np
import pandas as pd

from .schema import OUTCOME_COLUMN


def require_columns(df: pd.DataFrame, cols: Iterable[str]) -> None:
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")


def pct_error(predicted, empirical, decimals: int = 2) -> np.ndarray:
    """
    round((predicted - empirical) / empirical * 100, decimals), vectorized.

    Rounding is np.round: the value is scaled by 10**decimals, rounded half to
    even, and scaled back. Exact halves therefore go to the even neighbour
    (12.5 -> 12, 37.5 -> 38 at decimals=0), and a half that is not exactly
    representable in binary follows its scaled float value.
    """
    predicted = np.asarray(predicted, dtype=float)
    empirical = np.asarray(empirical, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        raw = (predicted - empirical) / empirical * 100.0
    return np.round(raw, decimals)


def bucket_labels(max_value: int, overflow_label: str) -> List[Union[int, str]]:
    """Outcome keys 0..max_value followed by the overflow bucket label."""
    return list(range(max_value + 1)) + [overflow_label]


def frequency_table(
    labels: Sequence[Union[int, str]],
    values: Sequence[float],
    name: str,
) -> pd.DataFrame:
    """Build a two-column frequency table: `outcome` key plus one value column named `name`."""
    if len(labels) != len(values):
        raise ValueError(
            f"Got {len(labels)} outcome labels but {len(values)} values for '{name}'."
        )
    return pd.DataFrame({
        OUTCOME_COLUMN: pd.Series(list(labels), dtype=object),
        name: np.asarray(values, dtype=float),
    })


def value_column(table: pd.DataFrame) -> str:
    """Return the single non-key column of a frequency table."""
    require_columns(table, [OUTCOME_COLUMN])
    cols = [c for c in table.columns if c != OUTCOME_COLUMN]
    if len(cols) != 1:
        raise ValueError(
            f"Frequency table must have exactly one value column besides "
            f"'{OUTCOME_COLUMN}', got {cols}"
        )
    return cols[0]
