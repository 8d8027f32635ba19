"""
Mixture predictions: weight every class expert by its latent-class prior.

For one response dimension and evaluation points x_1..x_m:

  f_i(x) = sum_k pi_ik * f_k(x | exposure_i)      per observation
  f(x)   = mean_i f_i(x)                          population level

Exposure multiplies the expert's rate parameter (Poisson lambda, NB size, ...)
before the density is evaluated; it never multiplies the density itself.

Bucket tables (0, 1, ..., m, "m+1+") evaluate the pmf exactly on 0..m and take the
overflow bucket as 1 - sum, so a table always sums to 1. A negative overflow
(badly misspecified tail) is clipped to 0 and reported as a warning, not raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import pandas as pd

from core.errors import DimensionMismatch, ShapeMismatch
from core.utils import bucket_labels, frequency_table
from distributions.experts import ExpertTable

from .latent_class import LogitCoefficients, predict_class_priors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FittedModelSummary:
    """
    A fitted mixture-of-experts regression, as handed back by a fitting routine.
    Read-only here; the fit diagnostics are optional.
    """
    coefficients: LogitCoefficients
    experts: ExpertTable
    loglik: Optional[float] = None
    aic: Optional[float] = None
    bic: Optional[float] = None
    n_iter: Optional[int] = None

    def __post_init__(self) -> None:
        _check_classes(self.coefficients, self.experts)

    @property
    def n_classes(self) -> int:
        return self.coefficients.n_classes

    @property
    def n_dims(self) -> int:
        return self.experts.n_dims


@dataclass
class MixturePrediction:
    """Mixture density/pmf at `points`, averaged over observations."""
    points: np.ndarray
    values: np.ndarray                               # shape (m,)
    per_observation: Optional[np.ndarray] = None     # shape (n, m), on request

    def to_frame(self, name: str = "density") -> pd.DataFrame:
        return pd.DataFrame({"point": self.points, name: self.values})


def _check_classes(coefficients: LogitCoefficients, experts: ExpertTable) -> None:
    if experts.n_classes != coefficients.n_classes:
        raise ShapeMismatch(
            f"Expert table has {experts.n_classes} classes, coefficients imply "
            f"{coefficients.n_classes}."
        )


def _check_nonempty(n_obs: int) -> None:
    if n_obs == 0:
        raise DimensionMismatch("No observations to average over (empty covariate batch).")


def _check_exposure(exposure, n_obs: int) -> Optional[np.ndarray]:
    if exposure is None:
        return None
    expo = np.asarray(exposure, dtype=float).ravel()
    if len(expo) != n_obs:
        raise ShapeMismatch(f"Exposure has {len(expo)} entries for {n_obs} observations.")
    return expo


def predict_density(
    covariates,
    coefficients: LogitCoefficients,
    experts: ExpertTable,
    points,
    *,
    dimension: int = 0,
    exposure=None,
    per_observation: bool = False,
) -> MixturePrediction:
    """
    Class-prior-weighted density (or pmf) of one response dimension.

    Parameters
    ----------
    covariates : pd.DataFrame or array-like, shape (n, P)
    coefficients : LogitCoefficients
    experts : ExpertTable with the same number of classes as `coefficients`
    points : array-like of evaluation points
    dimension : 0-based response dimension
    exposure : array-like, shape (n,), optional: rate multiplier per observation
    per_observation : also return the (n, m) matrix of per-observation values
    """
    _check_classes(coefficients, experts)
    column = experts.column(dimension)
    priors = predict_class_priors(covariates, coefficients)
    n_obs = priors.shape[0]
    _check_nonempty(n_obs)
    expo = _check_exposure(exposure, n_obs)
    pts = np.atleast_1d(np.asarray(points, dtype=float))

    if expo is None:
        # (K, m): expert densities do not depend on the observation
        dens = np.vstack([np.broadcast_to(e.density(pts), pts.shape) for e in column])
        values = priors.mean(axis=0) @ dens
        mix = priors @ dens if per_observation else None
    else:
        mix = np.zeros((n_obs, len(pts)))
        for k, expert in enumerate(column):
            scaled = expert.rescale(expo[:, None])
            mix += priors[:, [k]] * np.broadcast_to(scaled.density(pts), mix.shape)
        values = mix.mean(axis=0)
        if not per_observation:
            mix = None

    return MixturePrediction(points=pts, values=values, per_observation=mix)


def predict_mean(
    covariates,
    coefficients: LogitCoefficients,
    experts: ExpertTable,
    *,
    dimension: int = 0,
    exposure=None,
) -> np.ndarray:
    """Per-observation mixture mean sum_k pi_ik * E[Y | class k, exposure_i], shape (n,)."""
    _check_classes(coefficients, experts)
    column = experts.column(dimension)
    priors = predict_class_priors(covariates, coefficients)
    _check_nonempty(priors.shape[0])
    expo = _check_exposure(exposure, priors.shape[0])

    means = np.empty_like(priors)
    for k, expert in enumerate(column):
        scaled = expert if expo is None else expert.rescale(expo)
        means[:, k] = np.broadcast_to(scaled.mean(), (priors.shape[0],))
    return (priors * means).sum(axis=1)


def overflow_bucket_table(
    point_probs,
    name: str,
    *,
    overflow_label: Optional[str] = None,
) -> pd.DataFrame:
    """
    Frequency table for buckets 0..m plus an overflow bucket equal to 1 - sum.

    Any clipping of a negative overflow is listed in `table.attrs["warnings"]`.
    """
    probs = np.asarray(point_probs, dtype=float)
    max_value = len(probs) - 1
    label = overflow_label if overflow_label is not None else f"{max_value + 1}+"

    warnings: List[str] = []
    overflow = 1.0 - probs.sum()
    if overflow < 0:
        msg = (
            f"{name}: derived probability of bucket '{label}' is {overflow:.3e} < 0; "
            f"clipped to 0 (tail likely misspecified)."
        )
        logger.warning(msg)
        warnings.append(msg)
        overflow = 0.0

    table = frequency_table(bucket_labels(max_value, label), np.append(probs, overflow), name)
    table.attrs["warnings"] = warnings
    return table


def predict_bucket_probabilities(
    covariates,
    coefficients: LogitCoefficients,
    experts: ExpertTable,
    *,
    max_value: int = 3,
    dimension: int = 0,
    exposure=None,
    name: str = "LRMoE",
    overflow_label: Optional[str] = None,
) -> pd.DataFrame:
    """
    Population-level pmf table over 0..max_value and an overflow bucket.

    Returns
    -------
    DataFrame with columns [outcome, <name>], outcome = 0, 1, ..., max_value, "<max_value+1>+".
    """
    if max_value < 0:
        raise ValueError(f"max_value must be >= 0, got {max_value}")
    pred = predict_density(
        covariates,
        coefficients,
        experts,
        np.arange(max_value + 1),
        dimension=dimension,
        exposure=exposure,
    )
    return overflow_bucket_table(pred.values, name, overflow_label=overflow_label)
