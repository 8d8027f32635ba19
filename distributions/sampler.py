"""
Mixture Sampler — simulates complete responses from a mixture-of-experts regression.

Input:  gating coefficients + K × D expert table + covariates (one row per observation)
Output: (n × D) table of simulated responses plus the latent class of every row

Method:
  1. Compute each observation's latent-class priors from its covariates
  2. Draw one latent class per observation from those priors
  3. For every response dimension, draw from that class's expert
     (rate-type experts optionally scaled by the observation's exposure)

The complete sample is what the interval encoder then censors/truncates.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd

from core.errors import ShapeMismatch
from models.latent_class import LogitCoefficients, predict_class_priors

from .experts import ExpertTable


@dataclass
class SimulatedResponses:
    """
    Output of mixture sampling: one row per observation.
    """
    y: np.ndarray             # shape (n_obs, n_dims)
    latent_class: np.ndarray  # shape (n_obs,), 0-based class index

    @property
    def n_obs(self) -> int:
        return self.y.shape[0]

    @property
    def n_dims(self) -> int:
        return self.y.shape[1]

    def to_dataframe(self) -> pd.DataFrame:
        df = pd.DataFrame(self.y, columns=[f"y_{d + 1}" for d in range(self.n_dims)])
        df["latent_class"] = self.latent_class
        return df

    def summary(self) -> pd.DataFrame:
        """Percentile summary of every simulated dimension."""
        pcts = [0.01, 0.05, 0.25, 0.50, 0.75, 0.95, 0.99]
        rows = []
        for d in range(self.n_dims):
            arr = self.y[:, d]
            row = {"Dimension": d + 1, "Mean": np.mean(arr), "Std": np.std(arr)}
            for p in pcts:
                row[f"P{int(p*100):02d}"] = np.percentile(arr, p * 100)
            rows.append(row)
        return pd.DataFrame(rows)


class MixtureSampler:
    """
    Simulates responses from a mixture of experts.

    Usage:
        sampler = MixtureSampler(coefficients, experts, seed=7777)
        sim = sampler.sample(X)
        # sim.y → (n, D) responses
        # sim.to_dataframe() → nice table
    """

    def __init__(
        self,
        coefficients: LogitCoefficients,
        experts: ExpertTable,
        seed: int = 42,
    ):
        if experts.n_classes != coefficients.n_classes:
            raise ShapeMismatch(
                f"Expert table has {experts.n_classes} classes, coefficients imply "
                f"{coefficients.n_classes}."
            )
        self.coefficients = coefficients
        self.experts = experts
        self.rng = np.random.default_rng(seed)

    def sample(self, covariates, exposure: Optional[np.ndarray] = None) -> SimulatedResponses:
        priors = predict_class_priors(covariates, self.coefficients)
        n_obs, n_classes = priors.shape

        expo = None
        if exposure is not None:
            expo = np.asarray(exposure, dtype=float).ravel()
            if len(expo) != n_obs:
                raise ShapeMismatch(
                    f"Exposure has {len(expo)} entries for {n_obs} observations."
                )

        # Inverse-CDF draw of one class per row
        u = self.rng.random(n_obs)
        cum = np.cumsum(priors, axis=1)
        latent = np.minimum((u[:, None] >= cum).sum(axis=1), n_classes - 1)

        y = np.zeros((n_obs, self.experts.n_dims), dtype=float)
        for k in range(n_classes):
            rows = np.flatnonzero(latent == k)
            if len(rows) == 0:
                continue
            for d in range(self.experts.n_dims):
                expert = self.experts.cell(k, d)
                if expo is not None:
                    expert = expert.rescale(expo[rows])
                y[rows, d] = expert.sample(len(rows), self.rng)

        return SimulatedResponses(y=y, latent_class=latent)
