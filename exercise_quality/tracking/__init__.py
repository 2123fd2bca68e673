"""Tracking and monitoring utilities.

This subpackage handles structured logging for pipeline runs.
"""

from .logger import (
    setup_logger,
    log_phase_start,
    log_phase_end,
    log_training_progress,
    log_performance_metrics,
    log_error,
    log_warning,
    log_success
)

__all__ = [
    'setup_logger',
    'log_phase_start',
    'log_phase_end',
    'log_training_progress',
    'log_performance_metrics',
    'log_error',
    'log_warning',
    'log_success'
]
