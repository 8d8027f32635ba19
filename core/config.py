"""
Run configuration.
Expert parameters live in distributions/experts.py; coefficients in models/latent_class.py.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ComparisonConfig:
    # buckets 0..max_value are evaluated exactly, everything above is pooled
    max_value: int = 3
    overflow_label: Optional[str] = None

    empirical_name: str = "Empirical"
    model_name: str = "LRMoE"
    benchmark_name: str = "GLM"

    # pct_error rounding is part of the report contract
    pct_decimals: int = 2

    def __post_init__(self) -> None:
        if self.max_value < 0:
            raise ValueError(f"max_value must be >= 0, got {self.max_value}")

    @property
    def overflow(self) -> str:
        if self.overflow_label is not None:
            return self.overflow_label
        return f"{self.max_value + 1}+"


@dataclass(frozen=True)
class FitOptions:
    """Options handed to the external fitting routine."""

    epsilon: float = 1e-3
    max_iter: int = 100
    # False when any bound differs from the raw value (censored/truncated data)
    exact_y: bool = False
