"""
Statistical models consumed by the comparison engine.

  latent_class.py — multinomial-logit gating: covariates → latent-class priors
  mixture.py      — fitted mixture summary; class-weighted density / pmf / mean
  benchmark.py    — Poisson GLM benchmark, consumed via predict(covariates, offset)

Parameter estimation for either model is not done here; fitted parameters come
from an external fitting routine (see engine/runner.py).
"""

from .latent_class import LogitCoefficients, predict_class_priors
from .mixture import (
    FittedModelSummary,
    MixturePrediction,
    overflow_bucket_table,
    predict_bucket_probabilities,
    predict_density,
    predict_mean,
)
from .benchmark import LogLinearRateModel, predict_benchmark_distribution

__all__ = [
    "LogitCoefficients",
    "predict_class_priors",
    "FittedModelSummary",
    "MixturePrediction",
    "overflow_bucket_table",
    "predict_bucket_probabilities",
    "predict_density",
    "predict_mean",
    "LogLinearRateModel",
    "predict_benchmark_distribution",
]
