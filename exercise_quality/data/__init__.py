"""Data management utilities.

This subpackage handles data operations:
- Raw file loading with missing-value normalization
- Row and column filtering (dataset preparation)
- Stratified training/testing/validation splitting
"""

from .loading import load_raw_csv, normalize_missing
from .preprocessing import PreparationReport, prepare, prepare_with_report
from .splits import DataSplits, stratified_split

__all__ = [
    # Loading
    'load_raw_csv',
    'normalize_missing',
    # Preparation
    'PreparationReport',
    'prepare',
    'prepare_with_report',
    # Data splitting
    'DataSplits',
    'stratified_split'
]
