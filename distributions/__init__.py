"""
Distributions package — expert distributions and simulation from a mixture of experts.

  1. experts.py  — capability-typed expert families (count and severity) and the K × D table
  2. sampler.py  — draw latent classes and responses for a batch of covariate rows
"""

from .experts import (
    ExpertDistribution,
    ExpertTable,
    GammaExpert,
    InverseGaussianExpert,
    LogNormalExpert,
    NegativeBinomialExpert,
    PoissonExpert,
    ZINegativeBinomialExpert,
    ZIPoissonExpert,
)
from .sampler import MixtureSampler, SimulatedResponses

__all__ = [
    "ExpertDistribution",
    "ExpertTable",
    "GammaExpert",
    "InverseGaussianExpert",
    "LogNormalExpert",
    "NegativeBinomialExpert",
    "PoissonExpert",
    "ZINegativeBinomialExpert",
    "ZIPoissonExpert",
    "MixtureSampler",
    "SimulatedResponses",
]
