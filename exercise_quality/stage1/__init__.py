"""Stage 1: base model training.

This subpackage handles all Stage 1 (base model) training:
- Classifier pool building seeded sklearn estimators
- FittedModel wrapper with predict and feature importance
- k-fold complexity-parameter selection
"""

from exercise_quality.stage1.classifiers import ClassifierPool, FittedModel
from exercise_quality.stage1.tuning import (
    check_fold_coverage,
    cross_validated_fit,
    select_simplest_best
)

__all__ = [
    'ClassifierPool',
    'FittedModel',
    'check_fold_coverage',
    'cross_validated_fit',
    'select_simplest_best'
]
