"""
Benchmark claim-count model — a Poisson regression (GLM) used as the yardstick.

Fitting the GLM happens elsewhere; here it is only consumed through
`predict(covariates, offset) -> rate`, with log(exposure) as the offset, and
turned into the same bucket table the mixture produces so both can be compared
against the empirical frequencies.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy import stats

from core.errors import DimensionMismatch, ShapeMismatch

from .mixture import overflow_bucket_table


class RateModel(Protocol):
    def predict(self, covariates, offset=None) -> np.ndarray: ...


@dataclass(frozen=True)
class LogLinearRateModel:
    """
    Fitted Poisson GLM with log link: rate = exp(X @ coef + offset).

    `covariate_names`, when given, selects and orders DataFrame columns.
    """
    coef: np.ndarray
    covariate_names: Optional[Tuple[str, ...]] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "coef", np.asarray(self.coef, dtype=float).ravel())
        if self.covariate_names is not None:
            names = tuple(self.covariate_names)
            if len(names) != len(self.coef):
                raise DimensionMismatch(
                    f"{len(names)} covariate names for {len(self.coef)} coefficients."
                )
            object.__setattr__(self, "covariate_names", names)

    def predict(self, covariates, offset=None) -> np.ndarray:
        if isinstance(covariates, pd.DataFrame) and self.covariate_names is not None:
            X = covariates[list(self.covariate_names)].to_numpy(dtype=float)
        else:
            X = np.atleast_2d(np.asarray(covariates, dtype=float))
        if X.shape[1] != len(self.coef):
            raise DimensionMismatch(
                f"Covariate rows have length {X.shape[1]}, model expects {len(self.coef)}."
            )
        eta = X @ self.coef
        if offset is not None:
            eta = eta + np.asarray(offset, dtype=float)
        return np.exp(eta)


def predict_benchmark_distribution(
    model: RateModel,
    covariates,
    exposure: Optional[Sequence[float]] = None,
    *,
    max_value: int = 3,
    name: str = "GLM",
    overflow_label: Optional[str] = None,
) -> pd.DataFrame:
    """
    Population-level Poisson pmf table of a rate model.

    Each observation contributes Poisson(rate_i) probabilities for 0..max_value;
    they are averaged over observations and the overflow bucket is 1 - sum.
    """
    if max_value < 0:
        raise ValueError(f"max_value must be >= 0, got {max_value}")
    n_obs = len(covariates)
    if n_obs == 0:
        raise DimensionMismatch("No observations to average over (empty covariate batch).")
    offset = None
    if exposure is not None:
        expo = np.asarray(exposure, dtype=float).ravel()
        if len(expo) != n_obs:
            raise ShapeMismatch(f"Exposure has {len(expo)} entries for {n_obs} observations.")
        offset = np.log(expo)

    rate = np.asarray(model.predict(covariates, offset=offset), dtype=float).ravel()
    if len(rate) != n_obs:
        raise ShapeMismatch(f"Benchmark returned {len(rate)} rates for {n_obs} observations.")

    counts = np.arange(max_value + 1)
    probs = stats.poisson.pmf(counts[None, :], rate[:, None]).mean(axis=0)
    return overflow_bucket_table(probs, name, overflow_label=overflow_label)
