"""
Encode raw responses into the four-bound censoring/truncation representation.

Every observation of every response dimension becomes (tl, yl, yu, tu):

  tl  left-truncation level   — the value is only ever seen when it is > tl
  yl  lower censoring bound   — equal to yu when the value is known exactly
  yu  upper censoring bound   — +inf for pure right-censoring
  tu  right-truncation level  — the value is only ever seen when it is <= tu

Truncation REMOVES rows (an out-of-window value never makes it into the sample),
censoring only WIDENS bounds. With several response dimensions a row is kept only
when it is inside the window of every dimension, and the one retained-index set is
applied to the covariates and to each dimension so everything stays row-aligned.

Typical regimes (one encode() call each, glued together with concat_encoded()):
  - complete data:            TruncationRule(),            CensoringRule()
  - left-truncated at 5:      TruncationRule(lower=5.0),   CensoringRule()
  - policy limit at 100:      TruncationRule(),            CensoringRule(cap=100.0)
  - reported before day 365:  TruncationRule(upper=lambda t_acc: 365.0 - t_acc)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from core.errors import DimensionMismatch
from core.schema import INTERVAL_FIELDS, all_interval_columns, interval_columns

logger = logging.getLogger(__name__)

Bound = Union[None, float, Callable[[np.ndarray], np.ndarray]]


@dataclass(frozen=True)
class ResponseInterval:
    """One observation of one response dimension."""
    tl: float
    yl: float
    yu: float
    tu: float

    @property
    def is_exact(self) -> bool:
        return self.yl == self.yu

    @property
    def is_right_censored(self) -> bool:
        return bool(np.isinf(self.yu))

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.tl, self.yl, self.yu, self.tu)


def _resolve_bound(
    bound: Bound,
    n: int,
    auxiliary: Optional[np.ndarray],
    default: float,
) -> np.ndarray:
    if bound is None:
        return np.full(n, default, dtype=float)
    if callable(bound):
        if auxiliary is None:
            raise ValueError("Truncation bound is a function of an auxiliary covariate, "
                             "but no auxiliary values were supplied.")
        out = np.asarray(bound(auxiliary), dtype=float)
        return np.broadcast_to(out, (n,)).astype(float)
    return np.full(n, float(bound), dtype=float)


@dataclass(frozen=True)
class TruncationRule:
    """
    Observation window (tl, tu] for one response dimension.

    Each bound is None (not truncated on that side), a constant, or a function
    of an auxiliary per-observation covariate (e.g. accident time → remaining
    reporting window). An untruncated lower side is emitted as tl = 0, or as
    the value itself for negative values, and never drops a row.
    """
    lower: Bound = None
    upper: Bound = None

    def window(
        self,
        values: np.ndarray,
        auxiliary: Optional[np.ndarray] = None,
    ) -> Tuple[np.ndarray, np.ndarray]:
        n = len(values)
        tl = _resolve_bound(self.lower, n, auxiliary, default=0.0)
        tu = _resolve_bound(self.upper, n, auxiliary, default=np.inf)
        if self.lower is None:
            tl = np.fmin(tl, values)
        return tl, tu

    def keep(self, values: np.ndarray, tl: np.ndarray, tu: np.ndarray) -> np.ndarray:
        """Boolean mask of values inside the window; NaN values are never kept."""
        with np.errstate(invalid="ignore"):
            mask = values <= tu
            if self.lower is not None:
                mask &= values > tl
        return mask


@dataclass(frozen=True)
class CensoringRule:
    """
    Censoring bounds (yl, yu) for one response dimension.

    cap       values beyond it are recorded as (cap, +inf); a value equal to the
              cap is treated as exact unless inclusive=True (censor at >= cap)
    width     optional interval censoring: value v is recorded as the bin
              [floor(v / width) * width, that + width)
    """
    cap: float = np.inf
    inclusive: bool = False
    width: Optional[float] = None

    def __post_init__(self) -> None:
        if self.width is not None and not self.width > 0:
            raise ValueError(f"Censoring bin width must be positive, got {self.width}")

    def bounds(
        self,
        values: np.ndarray,
        tl: np.ndarray,
        tu: np.ndarray,
    ) -> Tuple[np.ndarray, np.ndarray]:
        values = np.asarray(values, dtype=float)
        if self.width is not None:
            yl = np.floor(values / self.width) * self.width
            yu = yl + self.width
        else:
            yl = values.copy()
            yu = values.copy()

        censored = values >= self.cap if self.inclusive else values > self.cap
        yl = np.where(censored, self.cap, yl)
        yu = np.where(censored, np.inf, yu)

        # keep tl <= yl <= yu <= tu even when a cap or bin edge falls outside the window
        yl = np.minimum(np.maximum(yl, tl), tu)
        yu = np.minimum(np.maximum(yu, yl), tu)
        return yl, yu


@dataclass(frozen=True)
class EncodedDataset:
    """
    Covariates and interval-encoded responses after truncation filtering.

    `covariates` and `intervals` share the same index: the labels of the raw
    rows that survived, in their original order.
    """
    covariates: pd.DataFrame
    intervals: pd.DataFrame

    @property
    def n_obs(self) -> int:
        return len(self.intervals)

    @property
    def n_dims(self) -> int:
        return len(self.intervals.columns) // len(INTERVAL_FIELDS)

    @property
    def retained_index(self) -> np.ndarray:
        return self.intervals.index.to_numpy()

    def dimension(self, dim: int = 0) -> pd.DataFrame:
        """Bounds of one (0-based) response dimension with plain tl/yl/yu/tu columns."""
        if not 0 <= dim < self.n_dims:
            raise DimensionMismatch(f"Response dimension {dim} out of range for {self.n_dims} dims.")
        out = self.intervals[interval_columns(dim + 1)].copy()
        out.columns = list(INTERVAL_FIELDS)
        return out

    def interval(self, row: int, dim: int = 0) -> ResponseInterval:
        """Interval of the row at position `row` (not label)."""
        tl, yl, yu, tu = self.intervals[interval_columns(dim + 1)].iloc[row].to_numpy(dtype=float)
        return ResponseInterval(tl=float(tl), yl=float(yl), yu=float(yu), tu=float(tu))

    def to_matrix(self) -> np.ndarray:
        """(n, 4D) bound matrix: tl, yl, yu, tu for dimension 1, then dimension 2, ..."""
        return self.intervals.to_numpy(dtype=float)

    @property
    def is_exact(self) -> bool:
        """True when nothing is censored or truncated, i.e. bounds carry no extra information."""
        for d in range(self.n_dims):
            b = self.dimension(d)
            if not (
                (b["yl"] == b["yu"]).all()
                and np.isinf(b["tu"]).all()
                and (b["tl"] <= 0).all()
            ):
                return False
        return True


def _as_response_matrix(values) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    if arr.ndim == 1:
        arr = arr.reshape(-1, 1)
    if arr.ndim != 2:
        raise DimensionMismatch(f"Responses must be 1-D or 2-D, got shape {arr.shape}")
    return arr


def _per_dimension(rule, default, n_dims: int, what: str) -> List:
    if rule is None:
        return [default] * n_dims
    if isinstance(rule, (TruncationRule, CensoringRule)):
        return [rule] * n_dims
    rules = list(rule)
    if len(rules) != n_dims:
        raise DimensionMismatch(
            f"Got {len(rules)} {what} rules for {n_dims} response dimensions."
        )
    return [default if r is None else r for r in rules]


def encode(
    values,
    covariates,
    truncation: Union[None, TruncationRule, Sequence[Optional[TruncationRule]]] = None,
    censoring: Union[None, CensoringRule, Sequence[Optional[CensoringRule]]] = None,
    *,
    auxiliary=None,
) -> EncodedDataset:
    """
    Encode a batch of raw responses into interval form.

    Parameters
    ----------
    values : array-like, shape (n,) or (n, D)
        Fully observed (simulated or raw) response values.
    covariates : pd.DataFrame or array-like, shape (n, P)
        Covariate rows aligned with `values`.
    truncation, censoring :
        One rule applied to every dimension, or a sequence with one rule per
        dimension (None entries fall back to the defaults).
    auxiliary : array-like, shape (n,), optional
        Per-observation input for callable truncation bounds.

    Returns
    -------
    EncodedDataset with only the rows whose value lies inside the truncation
    window of every dimension.
    """
    y = _as_response_matrix(values)
    if not isinstance(covariates, pd.DataFrame):
        covariates = pd.DataFrame(np.asarray(covariates, dtype=float))

    n, n_dims = y.shape
    if len(covariates) != n:
        raise DimensionMismatch(
            f"Responses have {n} rows but covariates have {len(covariates)} rows."
        )
    aux = None
    if auxiliary is not None:
        aux = np.asarray(auxiliary, dtype=float)
        if len(aux) != n:
            raise DimensionMismatch(
                f"Auxiliary covariate has {len(aux)} rows, expected {n}."
            )

    trunc_rules = _per_dimension(truncation, TruncationRule(), n_dims, "truncation")
    cens_rules = _per_dimension(censoring, CensoringRule(), n_dims, "censoring")

    # Pass 1: windows and one combined keep-mask across all dimensions
    windows = []
    keep = np.ones(n, dtype=bool)
    for d in range(n_dims):
        tl, tu = trunc_rules[d].window(y[:, d], aux)
        keep &= trunc_rules[d].keep(y[:, d], tl, tu)
        windows.append((tl, tu))

    retained = np.flatnonzero(keep)
    if len(retained) < n:
        logger.debug(f"Truncation dropped {n - len(retained)} of {n} observations")

    # Pass 2: censoring bounds on the retained rows only
    columns = {}
    for d in range(n_dims):
        tl, tu = windows[d][0][retained], windows[d][1][retained]
        yl, yu = cens_rules[d].bounds(y[retained, d], tl, tu)
        for name, arr in zip(interval_columns(d + 1), (tl, yl, yu, tu)):
            columns[name] = arr

    kept_covariates = covariates.iloc[retained]
    intervals = pd.DataFrame(columns, index=kept_covariates.index)
    intervals = intervals[all_interval_columns(n_dims)]
    return EncodedDataset(covariates=kept_covariates, intervals=intervals)


def exact_dataset(values, covariates) -> EncodedDataset:
    """Encode a complete sample: no truncation, no censoring."""
    return encode(values, covariates)


def concat_encoded(parts: Sequence[EncodedDataset]) -> EncodedDataset:
    """
    Stack encoded blocks (one per truncation/censoring regime) in the given order.

    Blocks built from disjoint row ranges of the same raw batch keep their
    original row labels, so the result is ordered like the raw batch.
    """
    parts = list(parts)
    if not parts:
        raise ValueError("Nothing to concatenate.")
    n_dims = parts[0].n_dims
    cov_cols = list(parts[0].covariates.columns)
    for p in parts[1:]:
        if p.n_dims != n_dims:
            raise DimensionMismatch(
                f"Cannot concatenate blocks with {n_dims} and {p.n_dims} response dimensions."
            )
        if list(p.covariates.columns) != cov_cols:
            raise DimensionMismatch("Cannot concatenate blocks with different covariate columns.")

    return EncodedDataset(
        covariates=pd.concat([p.covariates for p in parts]),
        intervals=pd.concat([p.intervals for p in parts]),
    )
