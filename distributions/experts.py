"""
Expert distributions — the per-class, per-dimension response models of a mixture.

The prediction code never looks inside an expert or branches on its family. It only
relies on the capability contract below:

  mean(), variance()   moments (arrays when parameters are arrays)
  density(x)           pdf for continuous experts, pmf for count experts
  rescale(factor)      expert with its RATE parameter multiplied by `factor`
                       (exposure / time at risk); severity experts return self
  sample(size, rng)    random draws, used for simulation

Each family is an independent frozen dataclass backed by scipy.stats. Parameters
may be scalars or numpy arrays; `rescale(exposure[:, None])` yields an expert whose
density(points) broadcasts to (n_obs, n_points).

Parameterisations:
  PoissonExpert(lam)
  ZIPoissonExpert(p0, lam)                  p0 = probability of a structural zero
  NegativeBinomialExpert(n, p)              mean n(1-p)/p
  ZINegativeBinomialExpert(p0, n, p)
  LogNormalExpert(meanlog, sdlog)           log X ~ Normal(meanlog, sdlog)
  InverseGaussianExpert(mu, shape)          mean mu, variance mu^3 / shape
  GammaExpert(k, theta)                     shape k, scale theta
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Protocol, Tuple, runtime_checkable

import numpy as np
from scipy import stats

from core.errors import ShapeMismatch


@runtime_checkable
class ExpertDistribution(Protocol):
    def mean(self): ...

    def variance(self): ...

    def density(self, x): ...

    def rescale(self, factor) -> "ExpertDistribution": ...

    def sample(self, size: int, rng: np.random.Generator) -> np.ndarray: ...


def _check_probability(name: str, value, *, allow_zero: bool = True) -> None:
    v = np.asarray(value, dtype=float)
    lo_ok = (v >= 0) if allow_zero else (v > 0)
    if not np.all(lo_ok & (v <= 1)):
        raise ValueError(f"{name} must be a probability, got {value}")


def _check_positive(name: str, value) -> None:
    if not np.all(np.asarray(value, dtype=float) > 0):
        raise ValueError(f"{name} must be positive, got {value}")


def _check_nonnegative(name: str, value) -> None:
    if not np.all(np.asarray(value, dtype=float) >= 0):
        raise ValueError(f"{name} must be non-negative, got {value}")


def _zero_inflated_pmf(p0, base_pmf, x):
    x = np.asarray(x, dtype=float)
    return p0 * (x == 0) + (1.0 - p0) * base_pmf


def _zero_inflated_sample(p0, draws: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    structural_zero = rng.random(draws.shape) < p0
    return np.where(structural_zero, 0, draws)


@dataclass(frozen=True)
class PoissonExpert:
    lam: float

    def __post_init__(self) -> None:
        _check_nonnegative("lam", self.lam)

    def mean(self):
        return np.asarray(self.lam, dtype=float)

    def variance(self):
        return np.asarray(self.lam, dtype=float)

    def density(self, x):
        return stats.poisson.pmf(x, self.lam)

    def rescale(self, factor) -> "PoissonExpert":
        return replace(self, lam=np.multiply(self.lam, factor))

    def sample(self, size: int, rng: np.random.Generator) -> np.ndarray:
        return stats.poisson.rvs(self.lam, size=size, random_state=rng)


@dataclass(frozen=True)
class ZIPoissonExpert:
    p0: float
    lam: float

    def __post_init__(self) -> None:
        _check_probability("p0", self.p0)
        _check_nonnegative("lam", self.lam)

    def mean(self):
        return (1.0 - np.asarray(self.p0)) * self.lam

    def variance(self):
        p0 = np.asarray(self.p0, dtype=float)
        return (1.0 - p0) * self.lam * (1.0 + p0 * self.lam)

    def density(self, x):
        return _zero_inflated_pmf(self.p0, stats.poisson.pmf(x, self.lam), x)

    def rescale(self, factor) -> "ZIPoissonExpert":
        # only the Poisson part scales with exposure; the zero mass is structural
        return replace(self, lam=np.multiply(self.lam, factor))

    def sample(self, size: int, rng: np.random.Generator) -> np.ndarray:
        draws = stats.poisson.rvs(self.lam, size=size, random_state=rng)
        return _zero_inflated_sample(self.p0, draws, rng)


@dataclass(frozen=True)
class NegativeBinomialExpert:
    n: float
    p: float

    def __post_init__(self) -> None:
        _check_positive("n", self.n)
        _check_probability("p", self.p, allow_zero=False)

    def mean(self):
        return stats.nbinom.mean(self.n, self.p)

    def variance(self):
        return stats.nbinom.var(self.n, self.p)

    def density(self, x):
        return stats.nbinom.pmf(x, self.n, self.p)

    def rescale(self, factor) -> "NegativeBinomialExpert":
        # scaling the size parameter scales the mean and keeps the dispersion ratio
        return replace(self, n=np.multiply(self.n, factor))

    def sample(self, size: int, rng: np.random.Generator) -> np.ndarray:
        return stats.nbinom.rvs(self.n, self.p, size=size, random_state=rng)


@dataclass(frozen=True)
class ZINegativeBinomialExpert:
    p0: float
    n: float
    p: float

    def __post_init__(self) -> None:
        _check_probability("p0", self.p0)
        _check_positive("n", self.n)
        _check_probability("p", self.p, allow_zero=False)

    def mean(self):
        return (1.0 - np.asarray(self.p0)) * stats.nbinom.mean(self.n, self.p)

    def variance(self):
        p0 = np.asarray(self.p0, dtype=float)
        m = stats.nbinom.mean(self.n, self.p)
        v = stats.nbinom.var(self.n, self.p)
        return (1.0 - p0) * (v + p0 * m ** 2)

    def density(self, x):
        return _zero_inflated_pmf(self.p0, stats.nbinom.pmf(x, self.n, self.p), x)

    def rescale(self, factor) -> "ZINegativeBinomialExpert":
        return replace(self, n=np.multiply(self.n, factor))

    def sample(self, size: int, rng: np.random.Generator) -> np.ndarray:
        draws = stats.nbinom.rvs(self.n, self.p, size=size, random_state=rng)
        return _zero_inflated_sample(self.p0, draws, rng)


@dataclass(frozen=True)
class LogNormalExpert:
    meanlog: float
    sdlog: float

    def __post_init__(self) -> None:
        _check_positive("sdlog", self.sdlog)

    def _dist(self):
        return stats.lognorm(s=self.sdlog, scale=np.exp(self.meanlog))

    def mean(self):
        return self._dist().mean()

    def variance(self):
        return self._dist().var()

    def density(self, x):
        return self._dist().pdf(x)

    def rescale(self, factor) -> "LogNormalExpert":
        return self

    def sample(self, size: int, rng: np.random.Generator) -> np.ndarray:
        return self._dist().rvs(size=size, random_state=rng)


@dataclass(frozen=True)
class InverseGaussianExpert:
    mu: float
    shape: float

    def __post_init__(self) -> None:
        _check_positive("mu", self.mu)
        _check_positive("shape", self.shape)

    def _dist(self):
        # scipy's invgauss(m, scale=s) has mean m*s and variance m^3 s^2
        return stats.invgauss(np.divide(self.mu, self.shape), scale=self.shape)

    def mean(self):
        return np.asarray(self.mu, dtype=float)

    def variance(self):
        return np.power(self.mu, 3) / np.asarray(self.shape, dtype=float)

    def density(self, x):
        return self._dist().pdf(x)

    def rescale(self, factor) -> "InverseGaussianExpert":
        return self

    def sample(self, size: int, rng: np.random.Generator) -> np.ndarray:
        return self._dist().rvs(size=size, random_state=rng)


@dataclass(frozen=True)
class GammaExpert:
    k: float
    theta: float

    def __post_init__(self) -> None:
        _check_positive("k", self.k)
        _check_positive("theta", self.theta)

    def mean(self):
        return np.multiply(self.k, self.theta)

    def variance(self):
        return np.multiply(self.k, np.power(self.theta, 2))

    def density(self, x):
        return stats.gamma.pdf(x, self.k, scale=self.theta)

    def rescale(self, factor) -> "GammaExpert":
        return self

    def sample(self, size: int, rng: np.random.Generator) -> np.ndarray:
        return stats.gamma.rvs(self.k, scale=self.theta, size=size, random_state=rng)


@dataclass(frozen=True)
class ExpertTable:
    """
    K × D grid of experts: row k holds latent class k's expert for every response dimension.

    Rows follow the class order of the coefficients they are paired with.
    """
    experts: Tuple[Tuple[ExpertDistribution, ...], ...]

    def __post_init__(self) -> None:
        rows = tuple(tuple(r) for r in self.experts)
        if not rows or not rows[0]:
            raise ShapeMismatch("Expert table must have at least one class and one dimension.")
        n_dims = len(rows[0])
        if any(len(r) != n_dims for r in rows):
            raise ShapeMismatch(
                f"Expert table is ragged: row lengths {[len(r) for r in rows]}"
            )
        object.__setattr__(self, "experts", rows)

    @property
    def n_classes(self) -> int:
        return len(self.experts)

    @property
    def n_dims(self) -> int:
        return len(self.experts[0])

    def cell(self, k: int, d: int = 0) -> ExpertDistribution:
        return self.experts[k][d]

    def column(self, d: int = 0) -> Tuple[ExpertDistribution, ...]:
        """The K experts of (0-based) response dimension `d`."""
        if not 0 <= d < self.n_dims:
            raise ShapeMismatch(f"Response dimension {d} out of range for {self.n_dims} dims.")
        return tuple(row[d] for row in self.experts)

    def means(self) -> np.ndarray:
        return np.array([[float(e.mean()) for e in row] for row in self.experts])

    def variances(self) -> np.ndarray:
        return np.array([[float(e.variance()) for e in row] for row in self.experts])
