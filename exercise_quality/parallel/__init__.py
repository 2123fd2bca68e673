"""Parallel execution for model fitting.

This package fits independent models in worker processes and joins their
results in submission order.
"""

from .worker import (
    FitJob,
    fit_single_model,
    fit_models_parallel
)

__all__ = [
    'FitJob',
    'fit_single_model',
    'fit_models_parallel'
]
