import numpy as np
import pandas as pd
import pytest

from distributions.experts import (
    ExpertTable,
    InverseGaussianExpert,
    LogNormalExpert,
    PoissonExpert,
    ZINegativeBinomialExpert,
)
from models.latent_class import LogitCoefficients
from models.mixture import FittedModelSummary


@pytest.fixture
def covariates():
    rng = np.random.default_rng(7777)
    n = 500
    return pd.DataFrame({
        "Intercept": np.ones(n),
        "sex": rng.binomial(1, 0.5, n).astype(float),
        "aged": rng.uniform(20, 80, n),
        "agec": rng.uniform(0, 10, n),
        "region": rng.binomial(1, 0.5, n).astype(float),
    })


@pytest.fixture
def coefficients():
    # class 1 is the reference; one free row for class 2
    return LogitCoefficients(
        free=np.array([[0.5, -1.0, 0.05, -0.1, -1.25]]),
        covariate_names=("Intercept", "sex", "aged", "agec", "region"),
    )


@pytest.fixture
def expert_table():
    return ExpertTable((
        (PoissonExpert(6.0), LogNormalExpert(4.0, 0.3)),
        (ZINegativeBinomialExpert(0.20, 30.0, 0.50), InverseGaussianExpert(20.0, 20.0)),
    ))


@pytest.fixture
def count_model():
    """Two-class claim-count mixture on a single covariate."""
    coefficients = LogitCoefficients(
        free=np.array([[-0.5, 1.0]]),
        covariate_names=("Intercept", "x"),
    )
    experts = ExpertTable(((PoissonExpert(0.1),), (PoissonExpert(1.0),)))
    return FittedModelSummary(coefficients=coefficients, experts=experts)
