"""
Comparison outputs — empirical tables, model-vs-data comparison, fit diagnostics.
"""

from .frequency import empirical_frequency, empirical_pmf
from .comparator import compare_distributions, summarize_comparison
from .metrics import expert_moments, compare_expert_moments

__all__ = [
    "empirical_frequency",
    "empirical_pmf",
    "compare_distributions",
    "summarize_comparison",
    "expert_moments",
    "compare_expert_moments",
]
