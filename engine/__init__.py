from .runner import FitRoutine, fit_encoded, run_frequency_comparison

__all__ = ["FitRoutine", "fit_encoded", "run_frequency_comparison"]
