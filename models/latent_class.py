"""
Latent-class prior probabilities from covariates (multinomial logit gating).

For K classes and P covariates the gating model has K-1 free coefficient rows.
The reference class has an implicit all-zero row, so its score is always 0:

  s_ref = 0
  s_k   = beta_k . x                  for every other class k
  pi_k  = exp(s_k) / sum_j exp(s_j)

The maximum score is subtracted before exponentiating, so large scores never
overflow. By default the reference is class 1 (index 0); fitted models from
libraries that put the reference class last can be loaded with from_full().
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from core.errors import DimensionMismatch, ShapeMismatch


@dataclass(frozen=True)
class LogitCoefficients:
    """
    Gating coefficients: `free` has shape (K-1, P); the zero row of the
    reference class is never stored.
    """
    free: np.ndarray
    covariate_names: Optional[Tuple[str, ...]] = None
    reference: int = 0

    def __post_init__(self) -> None:
        free = np.asarray(self.free, dtype=float)
        if free.ndim == 1:
            free = free.reshape(1, -1)
        if free.ndim != 2:
            raise DimensionMismatch(f"Coefficients must be 2-D, got shape {free.shape}")
        object.__setattr__(self, "free", free)

        if self.covariate_names is not None:
            names = tuple(self.covariate_names)
            if len(names) != free.shape[1]:
                raise DimensionMismatch(
                    f"{len(names)} covariate names for {free.shape[1]} coefficient columns."
                )
            object.__setattr__(self, "covariate_names", names)

        if not 0 <= self.reference < self.n_classes:
            raise ShapeMismatch(
                f"Reference class {self.reference} out of range for {self.n_classes} classes."
            )

    @property
    def n_classes(self) -> int:
        return self.free.shape[0] + 1

    @property
    def n_covariates(self) -> int:
        return self.free.shape[1]

    def full(self) -> np.ndarray:
        """(K, P) matrix with the reference row of zeros in place."""
        return np.insert(self.free, self.reference, 0.0, axis=0)

    def to_frame(self) -> pd.DataFrame:
        cols = list(self.covariate_names) if self.covariate_names else None
        idx = [f"class_{k + 1}" for k in range(self.n_classes)]
        return pd.DataFrame(self.full(), index=idx, columns=cols)

    @classmethod
    def from_full(
        cls,
        matrix,
        *,
        reference: int = -1,
        covariate_names: Optional[Sequence[str]] = None,
        atol: float = 1e-12,
    ) -> "LogitCoefficients":
        """
        Build from a full (K, P) matrix whose `reference` row is zero.
        The default reference=-1 matches fitted models that fix the last class.
        """
        full = np.asarray(matrix, dtype=float)
        if full.ndim != 2 or full.shape[0] < 1:
            raise DimensionMismatch(f"Expected a (K, P) matrix, got shape {full.shape}")
        ref = reference % full.shape[0]
        if not np.allclose(full[ref], 0.0, atol=atol):
            raise ShapeMismatch(
                f"Reference row {ref} must be all zeros, got {full[ref].tolist()}"
            )
        return cls(
            free=np.delete(full, ref, axis=0),
            covariate_names=tuple(covariate_names) if covariate_names is not None else None,
            reference=ref,
        )

    @classmethod
    def zeros(
        cls,
        n_classes: int,
        n_covariates: int,
        *,
        covariate_names: Optional[Sequence[str]] = None,
    ) -> "LogitCoefficients":
        """Flat starting guess: every class equally likely for every observation."""
        if n_classes < 1:
            raise ShapeMismatch(f"Need at least one class, got {n_classes}")
        return cls(
            free=np.zeros((n_classes - 1, n_covariates)),
            covariate_names=tuple(covariate_names) if covariate_names is not None else None,
        )


def covariate_matrix(covariates, coefficients: LogitCoefficients) -> np.ndarray:
    """
    Return covariates as an (n, P) float array in the coefficient column order.

    DataFrames are matched by column name when the coefficients carry names;
    arrays (and unnamed coefficients) are taken positionally.
    """
    if isinstance(covariates, pd.DataFrame) and coefficients.covariate_names is not None:
        missing = [c for c in coefficients.covariate_names if c not in covariates.columns]
        if missing:
            raise DimensionMismatch(f"Covariates missing columns: {missing}")
        X = covariates[list(coefficients.covariate_names)].to_numpy(dtype=float)
    else:
        X = np.asarray(covariates, dtype=float)
        if X.ndim == 1:
            X = X.reshape(1, -1)

    if X.ndim != 2 or X.shape[1] != coefficients.n_covariates:
        raise DimensionMismatch(
            f"Covariate rows have length {X.shape[-1]}, coefficients expect "
            f"{coefficients.n_covariates}."
        )
    return X


def predict_class_priors(covariates, coefficients: LogitCoefficients) -> np.ndarray:
    """
    Latent-class prior probabilities, one row per observation.

    Returns
    -------
    (n, K) array; rows are non-negative and sum to 1.
    """
    X = covariate_matrix(covariates, coefficients)
    scores = X @ coefficients.full().T
    scores = scores - scores.max(axis=1, keepdims=True)
    weights = np.exp(scores)
    return weights / weights.sum(axis=1, keepdims=True)
