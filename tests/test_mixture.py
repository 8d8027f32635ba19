import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
import pytest
from scipy import stats

from core.errors import DimensionMismatch, ShapeMismatch
from data_prep.interval_encoder import TruncationRule, encode
from distributions.experts import ExpertTable, PoissonExpert
from models.latent_class import LogitCoefficients, predict_class_priors
from models.mixture import (
    FittedModelSummary,
    overflow_bucket_table,
    predict_bucket_probabilities,
    predict_density,
    predict_mean,
)


@dataclass(frozen=True)
class FlatExpert:
    """Puts mass 0.5 on every integer, so any 0..3 table oversums."""

    def mean(self):
        return 1.0

    def variance(self):
        return 1.0

    def density(self, x):
        return np.full(np.shape(x), 0.5)

    def rescale(self, factor):
        return self

    def sample(self, size, rng):
        return np.zeros(size)


def _x(n=200, seed=0):
    rng = np.random.default_rng(seed)
    return np.column_stack([np.ones(n), rng.normal(size=n)])


class TestBucketProbabilities:

    def test_sums_to_one(self, count_model):
        X = _x()
        table = predict_bucket_probabilities(X, count_model.coefficients, count_model.experts)
        assert list(table["outcome"]) == [0, 1, 2, 3, "4+"]
        assert table["LRMoE"].sum() == pytest.approx(1.0, abs=1e-12)
        assert (table["LRMoE"] >= 0).all()
        assert table.attrs["warnings"] == []

    def test_single_class_matches_poisson(self):
        coef = LogitCoefficients.zeros(1, 2)
        experts = ExpertTable(((PoissonExpert(2.0),),))
        table = predict_bucket_probabilities(_x(10), coef, experts, max_value=2)
        expected = stats.poisson.pmf([0, 1, 2], 2.0)
        np.testing.assert_allclose(table["LRMoE"].iloc[:3], expected)
        assert table["LRMoE"].iloc[3] == pytest.approx(1.0 - expected.sum())
        assert table["outcome"].iloc[3] == "3+"

    def test_exposure_scales_rate(self):
        coef = LogitCoefficients.zeros(1, 2)
        experts = ExpertTable(((PoissonExpert(2.0),),))
        exposure = np.array([0.5, 1.5])
        table = predict_bucket_probabilities(_x(2), coef, experts, exposure=exposure)
        counts = np.arange(4)
        expected = 0.5 * (stats.poisson.pmf(counts, 1.0) + stats.poisson.pmf(counts, 3.0))
        np.testing.assert_allclose(table["LRMoE"].iloc[:4], expected)

    def test_mixture_weights_by_priors(self, count_model):
        X = _x(50)
        priors = predict_class_priors(X, count_model.coefficients)
        table = predict_bucket_probabilities(X, count_model.coefficients, count_model.experts)
        p0 = priors[:, 0] * np.exp(-0.1) + priors[:, 1] * np.exp(-1.0)
        assert table["LRMoE"].iloc[0] == pytest.approx(p0.mean())

    def test_negative_overflow_is_clipped_and_reported(self, caplog):
        coef = LogitCoefficients.zeros(1, 1)
        experts = ExpertTable(((FlatExpert(),),))
        with caplog.at_level(logging.WARNING, logger="models.mixture"):
            table = predict_bucket_probabilities(np.ones((3, 1)), coef, experts)
        assert table["LRMoE"].iloc[-1] == 0.0
        assert len(table.attrs["warnings"]) == 1
        assert "4+" in table.attrs["warnings"][0]
        assert any("clipped" in r.getMessage() for r in caplog.records)

    def test_class_count_mismatch(self, count_model):
        experts = ExpertTable(((PoissonExpert(1.0),),))
        with pytest.raises(ShapeMismatch):
            predict_bucket_probabilities(_x(), count_model.coefficients, experts)

    def test_exposure_length_mismatch(self, count_model):
        with pytest.raises(ShapeMismatch):
            predict_bucket_probabilities(
                _x(5), count_model.coefficients, count_model.experts, exposure=np.ones(4)
            )


class TestPredictDensity:

    def test_per_observation_rows_average_to_values(self, count_model):
        X = _x(30)
        pred = predict_density(
            X, count_model.coefficients, count_model.experts, [0, 1, 2],
            per_observation=True,
        )
        assert pred.per_observation.shape == (30, 3)
        np.testing.assert_allclose(pred.per_observation.mean(axis=0), pred.values)

    def test_continuous_dimension(self, covariates, coefficients, expert_table):
        grid = np.linspace(1.0, 200.0, 5)
        pred = predict_density(covariates, coefficients, expert_table, grid, dimension=1)
        priors = predict_class_priors(covariates, coefficients).mean(axis=0)
        expected = (priors[0] * expert_table.cell(0, 1).density(grid)
                    + priors[1] * expert_table.cell(1, 1).density(grid))
        np.testing.assert_allclose(pred.values, expected)
        assert list(pred.to_frame().columns) == ["point", "density"]

    def test_dimension_out_of_range(self, count_model):
        with pytest.raises(ShapeMismatch):
            predict_density(_x(), count_model.coefficients, count_model.experts, [0], dimension=1)


def test_predict_mean_with_exposure(count_model):
    X = _x(20)
    exposure = np.linspace(0.1, 1.0, 20)
    priors = predict_class_priors(X, count_model.coefficients)
    expected = exposure * (priors[:, 0] * 0.1 + priors[:, 1] * 1.0)
    np.testing.assert_allclose(
        predict_mean(X, count_model.coefficients, count_model.experts, exposure=exposure),
        expected,
    )


def test_overflow_table_custom_label():
    table = overflow_bucket_table([0.5, 0.3], "M", overflow_label="more")
    assert list(table["outcome"]) == [0, 1, "more"]
    assert table["M"].iloc[-1] == pytest.approx(0.2)


def test_summary_rejects_class_mismatch(count_model):
    with pytest.raises(ShapeMismatch):
        FittedModelSummary(
            coefficients=count_model.coefficients,
            experts=ExpertTable(((PoissonExpert(1.0),),)),
        )


class TestEmptyBatch:

    @pytest.fixture
    def fully_truncated(self):
        cov = pd.DataFrame({"Intercept": [1.0, 1.0], "x": [0.3, -0.2]})
        return encode([1.0, 2.0], cov, truncation=TruncationRule(lower=10.0))

    def test_bucket_table_rejects_empty_batch(self, count_model, fully_truncated):
        assert fully_truncated.n_obs == 0
        with pytest.raises(DimensionMismatch):
            predict_bucket_probabilities(
                fully_truncated.covariates, count_model.coefficients, count_model.experts
            )

    def test_density_and_mean_reject_empty_batch(self, count_model):
        X = np.empty((0, 2))
        with pytest.raises(DimensionMismatch):
            predict_density(X, count_model.coefficients, count_model.experts, [0, 1])
        with pytest.raises(DimensionMismatch):
            predict_mean(X, count_model.coefficients, count_model.experts)
