"""Model evaluation.

This subpackage provides:
- evaluate(): accuracy, confusion matrix and importance ranking
- pairwise_correlation(): redundancy between base-model predictions
"""

from exercise_quality.core.diversity import pairwise_correlation
from exercise_quality.evaluation.metrics import (
    EvaluationResult,
    evaluate,
    evaluate_predictions,
    labelled_confusion_matrix,
    rank_importance
)

__all__ = [
    'EvaluationResult',
    'evaluate',
    'evaluate_predictions',
    'labelled_confusion_matrix',
    'pairwise_correlation',
    'rank_importance'
]
