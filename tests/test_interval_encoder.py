import numpy as np
import pandas as pd
import pytest

from core.errors import DimensionMismatch
from data_prep.interval_encoder import (
    CensoringRule,
    ResponseInterval,
    TruncationRule,
    concat_encoded,
    encode,
    exact_dataset,
)


def _bounds_ordered(ds):
    for d in range(ds.n_dims):
        b = ds.dimension(d)
        assert (b["tl"] <= b["yl"]).all()
        assert (b["yl"] <= b["yu"]).all()
        assert (b["yu"] <= b["tu"]).all()


class TestCensoring:

    def test_policy_limit_censors_large_value(self):
        ds = encode([3.0, 120.0], pd.DataFrame({"Intercept": [1.0, 1.0]}),
                    censoring=CensoringRule(cap=100.0))
        assert ds.interval(0).as_tuple() == (0.0, 3.0, 3.0, np.inf)
        assert ds.interval(1).as_tuple() == (0.0, 100.0, np.inf, np.inf)
        assert ds.interval(1).is_right_censored
        assert ds.interval(0).is_exact

    def test_value_at_cap_is_exact_by_default(self):
        ds = encode([100.0], np.ones((1, 1)), censoring=CensoringRule(cap=100.0))
        assert ds.interval(0) == ResponseInterval(0.0, 100.0, 100.0, np.inf)

    def test_inclusive_cap_censors_value_at_cap(self):
        ds = encode([100.0], np.ones((1, 1)),
                    censoring=CensoringRule(cap=100.0, inclusive=True))
        assert ds.interval(0).as_tuple() == (0.0, 100.0, np.inf, np.inf)

    def test_censoring_never_drops_rows(self):
        values = np.array([1.0, 500.0, 1000.0, 3.0])
        ds = encode(values, np.ones((4, 1)), censoring=CensoringRule(cap=10.0))
        assert ds.n_obs == 4
        assert list(ds.retained_index) == [0, 1, 2, 3]

    def test_interval_censoring_bins(self):
        ds = encode([12.5, 3.0], np.ones((2, 1)), censoring=CensoringRule(width=5.0))
        assert ds.interval(0).as_tuple() == (0.0, 10.0, 15.0, np.inf)
        assert ds.interval(1).as_tuple() == (0.0, 0.0, 5.0, np.inf)

    def test_bad_bin_width_rejected(self):
        with pytest.raises(ValueError):
            CensoringRule(width=0.0)


class TestTruncation:

    def test_value_below_window_is_dropped(self):
        cov = pd.DataFrame({"Intercept": [1.0, 1.0], "x": [0.1, 0.2]})
        ds = encode([5.0, 12.0], cov, truncation=TruncationRule(lower=10.0))
        assert ds.n_obs == 1
        assert list(ds.covariates["x"]) == [0.2]
        assert ds.interval(0).as_tuple() == (10.0, 12.0, 12.0, np.inf)

    def test_value_equal_to_lower_bound_is_dropped(self):
        ds = encode([5.0, 6.0], np.ones((2, 1)), truncation=TruncationRule(lower=5.0))
        assert ds.n_obs == 1
        assert ds.interval(0).yl == 6.0

    def test_value_equal_to_upper_bound_is_kept(self):
        ds = encode([365.0, 366.0], np.ones((2, 1)), truncation=TruncationRule(upper=365.0))
        assert ds.n_obs == 1
        assert ds.interval(0).as_tuple() == (0.0, 365.0, 365.0, 365.0)

    def test_reporting_window_from_auxiliary_covariate(self):
        accident_time = np.array([100.0, 300.0, 50.0])
        delay = np.array([200.0, 200.0, 400.0])
        ds = encode(
            delay,
            pd.DataFrame({"Intercept": np.ones(3)}),
            truncation=TruncationRule(upper=lambda t: 365.0 - t),
            auxiliary=accident_time,
        )
        assert list(ds.retained_index) == [0]
        assert ds.interval(0).tu == 265.0

    def test_callable_bound_without_auxiliary_raises(self):
        with pytest.raises(ValueError):
            encode([1.0], np.ones((1, 1)), truncation=TruncationRule(upper=lambda t: t))

    def test_nan_values_are_dropped(self):
        ds = encode([1.0, np.nan, 2.0], np.ones((3, 1)))
        assert list(ds.retained_index) == [0, 2]

    def test_negative_values_keep_tl_below_yl(self):
        ds = encode([-2.0, 1.0], np.ones((2, 1)))
        assert ds.interval(0).as_tuple() == (-2.0, -2.0, -2.0, np.inf)
        assert ds.interval(1).tl == 0.0


class TestMultiDimension:

    def test_rows_stay_aligned_across_dimensions(self):
        y = np.array([
            [1.0, 50.0],
            [2.0, 3.0],     # dropped: dimension 2 below window
            [3.0, 150.0],
        ])
        cov = pd.DataFrame({"Intercept": np.ones(3), "id": [10.0, 20.0, 30.0]})
        ds = encode(
            y, cov,
            truncation=[None, TruncationRule(lower=5.0)],
            censoring=[None, CensoringRule(cap=100.0)],
        )
        assert ds.n_obs == 2
        assert list(ds.covariates["id"]) == [10.0, 30.0]
        assert list(ds.dimension(0)["yl"]) == [1.0, 3.0]
        assert ds.interval(1, dim=1).as_tuple() == (5.0, 100.0, np.inf, np.inf)
        assert ds.intervals.index.equals(ds.covariates.index)

    def test_to_matrix_layout(self):
        ds = encode(np.array([[1.0, 2.0]]), np.ones((1, 1)))
        assert list(ds.intervals.columns) == [
            "tl_1", "yl_1", "yu_1", "tu_1", "tl_2", "yl_2", "yu_2", "tu_2",
        ]
        np.testing.assert_array_equal(
            ds.to_matrix(), [[0.0, 1.0, 1.0, np.inf, 0.0, 2.0, 2.0, np.inf]]
        )

    def test_rule_count_must_match_dimensions(self):
        with pytest.raises(DimensionMismatch):
            encode(np.ones((2, 2)), np.ones((2, 1)), truncation=[TruncationRule()])

    def test_covariate_row_mismatch(self):
        with pytest.raises(DimensionMismatch):
            encode([1.0, 2.0, 3.0], np.ones((2, 1)))

    def test_dimension_out_of_range(self):
        ds = exact_dataset([1.0], np.ones((1, 1)))
        with pytest.raises(DimensionMismatch):
            ds.dimension(1)


class TestInvariants:

    def test_bounds_always_ordered(self):
        rng = np.random.default_rng(42)
        y = rng.lognormal(3.0, 1.5, size=(2000, 2))
        ds = encode(
            y, np.ones((2000, 1)),
            truncation=[TruncationRule(lower=5.0), TruncationRule(upper=400.0)],
            censoring=[CensoringRule(cap=100.0), CensoringRule(width=25.0)],
        )
        assert 0 < ds.n_obs < 2000
        _bounds_ordered(ds)

    def test_cap_outside_window_still_ordered(self):
        ds = encode([50.0], np.ones((1, 1)),
                    truncation=TruncationRule(upper=40.0 + 20.0),
                    censoring=CensoringRule(cap=10.0))
        _bounds_ordered(ds)
        assert ds.interval(0).yu == 60.0

    def test_encoding_is_deterministic(self):
        y = np.array([3.0, 7.0, 120.0, 2.0])
        cov = pd.DataFrame({"Intercept": np.ones(4)})
        kwargs = dict(truncation=TruncationRule(lower=2.5), censoring=CensoringRule(cap=100.0))
        a = encode(y, cov, **kwargs)
        b = encode(y, cov, **kwargs)
        pd.testing.assert_frame_equal(a.intervals, b.intervals)
        pd.testing.assert_frame_equal(a.covariates, b.covariates)

    def test_retruncating_retained_rows_changes_nothing(self):
        rng = np.random.default_rng(11)
        n = 500
        y = np.column_stack([rng.exponential(10.0, n), rng.uniform(0.0, 400.0, n)])
        accident_time = rng.uniform(0.0, 365.0, n)
        cov = pd.DataFrame({"Intercept": np.ones(n), "x": rng.normal(size=n)})
        rules = dict(
            truncation=[TruncationRule(lower=5.0), TruncationRule(upper=lambda t: 365.0 - t)],
            censoring=[CensoringRule(cap=30.0), None],
        )
        first = encode(y, cov, auxiliary=accident_time, **rules)
        assert 0 < first.n_obs < n

        kept = first.retained_index
        second = encode(y[kept], cov.loc[kept], auxiliary=accident_time[kept], **rules)
        pd.testing.assert_frame_equal(second.intervals, first.intervals)
        pd.testing.assert_frame_equal(second.covariates, first.covariates)

    def test_exact_dataset_is_exact(self):
        ds = exact_dataset(np.array([[1.0, 2.0], [3.0, 4.0]]), np.ones((2, 1)))
        assert ds.is_exact
        censored = encode([150.0], np.ones((1, 1)), censoring=CensoringRule(cap=100.0))
        assert not censored.is_exact


class TestConcat:

    def test_blocks_keep_raw_order(self):
        y = np.array([1.0, 2.0, 3.0, 8.0, 150.0, 4.0])
        cov = pd.DataFrame({"Intercept": np.ones(6), "row": np.arange(6.0)})
        parts = [
            exact_dataset(y[:2], cov.iloc[:2]),
            encode(y[2:4], cov.iloc[2:4], truncation=TruncationRule(lower=5.0)),
            encode(y[4:], cov.iloc[4:], censoring=CensoringRule(cap=100.0)),
        ]
        ds = concat_encoded(parts)
        assert list(ds.retained_index) == [0, 1, 3, 4, 5]
        assert list(ds.covariates["row"]) == [0.0, 1.0, 3.0, 4.0, 5.0]
        assert ds.interval(3).as_tuple() == (0.0, 100.0, np.inf, np.inf)

    def test_mismatched_blocks_rejected(self):
        a = exact_dataset([1.0], np.ones((1, 1)))
        b = exact_dataset(np.array([[1.0, 2.0]]), np.ones((1, 1)))
        with pytest.raises(DimensionMismatch):
            concat_encoded([a, b])

    def test_empty_list_rejected(self):
        with pytest.raises(ValueError):
            concat_encoded([])
