"""
Comparison runner — orchestrates encode → fit → predict → compare.

Two entry points:
  1. fit_encoded():              hand an encoded dataset to an external fitting routine
  2. run_frequency_comparison(): score a fitted mixture (and optionally a benchmark GLM)
                                 against the observed claim-count frequencies

The fitting routine itself is not part of this package; anything with the FitRoutine
call signature can be plugged in.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Protocol, Tuple

import numpy as np
import pandas as pd

from comparison.comparator import compare_distributions, summarize_comparison
from comparison.frequency import empirical_frequency
from core.config import ComparisonConfig, FitOptions
from core.errors import DimensionMismatch, ShapeMismatch
from data_prep.interval_encoder import EncodedDataset
from distributions.experts import ExpertTable
from models.benchmark import RateModel, predict_benchmark_distribution
from models.latent_class import LogitCoefficients
from models.mixture import FittedModelSummary, predict_bucket_probabilities

logger = logging.getLogger(__name__)


class FitRoutine(Protocol):
    def __call__(
        self,
        y: np.ndarray,
        covariates: np.ndarray,
        initial_coefficients: LogitCoefficients,
        initial_experts: ExpertTable,
        options: FitOptions,
    ) -> FittedModelSummary: ...


def fit_encoded(
    dataset: EncodedDataset,
    fitter: FitRoutine,
    initial_coefficients: LogitCoefficients,
    initial_experts: ExpertTable,
    options: Optional[FitOptions] = None,
) -> FittedModelSummary:
    """
    Run an external fitting routine on an encoded dataset.

    Parameters
    ----------
    dataset : EncodedDataset
        Output of data_prep.encode() / concat_encoded()
    fitter : FitRoutine
        External estimation routine (e.g. an ECM algorithm)
    initial_coefficients, initial_experts :
        Starting guess; shapes must match the dataset
    options : FitOptions, optional
        Defaults to FitOptions(exact_y=dataset.is_exact)

    The fitter receives the (n, D) exact values when options.exact_y is set, and
    the (n, 4D) tl/yl/yu/tu bound matrix otherwise.
    """
    if options is None:
        options = FitOptions(exact_y=dataset.is_exact)

    if initial_coefficients.n_covariates != dataset.covariates.shape[1]:
        raise DimensionMismatch(
            f"Coefficients expect {initial_coefficients.n_covariates} covariates, "
            f"dataset has {dataset.covariates.shape[1]}."
        )
    if initial_experts.n_classes != initial_coefficients.n_classes:
        raise ShapeMismatch(
            f"Expert table has {initial_experts.n_classes} classes, coefficients imply "
            f"{initial_coefficients.n_classes}."
        )
    if initial_experts.n_dims != dataset.n_dims:
        raise ShapeMismatch(
            f"Expert table has {initial_experts.n_dims} dimensions, dataset has {dataset.n_dims}."
        )

    if options.exact_y:
        if not dataset.is_exact:
            raise ValueError("exact_y=True but the dataset contains censored or truncated rows.")
        y = np.column_stack([dataset.dimension(d)["yl"].to_numpy(dtype=float)
                             for d in range(dataset.n_dims)])
    else:
        y = dataset.to_matrix()

    logger.info(
        f"Fitting {initial_coefficients.n_classes}-class model on {dataset.n_obs} rows, "
        f"{dataset.n_dims} dims (exact_y={options.exact_y}, max_iter={options.max_iter})"
    )
    summary = fitter(
        y,
        dataset.covariates.to_numpy(dtype=float),
        initial_coefficients,
        initial_experts,
        options,
    )
    if not isinstance(summary, FittedModelSummary):
        raise TypeError(
            f"Fitting routine must return FittedModelSummary, got {type(summary).__name__}"
        )
    return summary


def run_frequency_comparison(
    covariates,
    observed,
    summary: FittedModelSummary,
    *,
    exposure=None,
    benchmark: Optional[RateModel] = None,
    config: ComparisonConfig = ComparisonConfig(),
    dimension: int = 0,
) -> Tuple[pd.DataFrame, Dict]:
    """
    Compare a fitted mixture (and optionally a benchmark) with observed counts.

    Parameters
    ----------
    covariates : pd.DataFrame or array (n, P), including the intercept column
    observed : array-like (n,) of observed counts for the compared dimension
    summary : FittedModelSummary from the fitting routine
    exposure : array-like (n,), optional, time at risk per observation
    benchmark : object with predict(covariates, offset) -> rate, optional
    config : bucket count, source names and rounding

    Returns
    -------
    (comparison, details)
    comparison: joined table with pct_error columns (benchmark first, then the mixture)
    details: dict with the individual tables, a per-model summary and any warnings
    """
    n_obs = len(covariates)
    if len(observed) != n_obs:
        raise DimensionMismatch(
            f"Observed counts have {len(observed)} rows, covariates have {n_obs}."
        )

    empirical = empirical_frequency(
        observed,
        max_value=config.max_value,
        name=config.empirical_name,
        overflow_label=config.overflow,
    )

    model_tables = []
    benchmark_table = None
    if benchmark is not None:
        benchmark_table = predict_benchmark_distribution(
            benchmark,
            covariates,
            exposure,
            max_value=config.max_value,
            name=config.benchmark_name,
            overflow_label=config.overflow,
        )
        model_tables.append(benchmark_table)

    model_table = predict_bucket_probabilities(
        covariates,
        summary.coefficients,
        summary.experts,
        max_value=config.max_value,
        dimension=dimension,
        exposure=exposure,
        name=config.model_name,
        overflow_label=config.overflow,
    )
    model_tables.append(model_table)

    warnings = []
    for t in model_tables:
        warnings.extend(t.attrs.get("warnings", []))

    comparison = compare_distributions(empirical, *model_tables, decimals=config.pct_decimals)
    logger.info(f"Compared {len(model_tables)} model(s) over {len(comparison)} buckets")

    details = {
        "empirical": empirical,
        "model": model_table,
        "benchmark": benchmark_table,
        "summary": summarize_comparison(comparison, empirical_name=config.empirical_name),
        "warnings": warnings,
        "n_obs": n_obs,
    }
    return comparison, details
