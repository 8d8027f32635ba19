"""
Typed contract violations raised by the encoder, predictor, aggregator and comparator.

All three subclass ValueError so callers that already guard input validation with
``except ValueError`` keep working, while callers that care can tell a
data-construction bug (DimensionMismatch) from a model-shape bug (ShapeMismatch).
"""

from __future__ import annotations


class DimensionMismatch(ValueError):
    """Covariates, coefficients or response dimensions disagree in shape."""


class ShapeMismatch(ValueError):
    """Expert table / exposure vector does not match the coefficient-implied shape."""


class EmptyJoinError(ValueError):
    """No outcome value is shared by every frequency table being compared."""
