"""
Data preparation — design matrices, censoring/truncation encoding, validation.
"""

from .design_matrix import build_design_matrix
from .interval_encoder import (
    CensoringRule,
    EncodedDataset,
    ResponseInterval,
    TruncationRule,
    concat_encoded,
    encode,
    exact_dataset,
)
from .validators import ValidationResult, validate_intervals

__all__ = [
    "build_design_matrix",
    "CensoringRule",
    "EncodedDataset",
    "ResponseInterval",
    "TruncationRule",
    "concat_encoded",
    "encode",
    "exact_dataset",
    "ValidationResult",
    "validate_intervals",
]
