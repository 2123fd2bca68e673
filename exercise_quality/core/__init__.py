"""Core abstractions shared by every stage.

This subpackage provides:
- RandomSource (explicit, derivable seeding)
- DiversityScorer (prediction correlation between models)
"""

from exercise_quality.core.random_source import RandomSource
from exercise_quality.core.diversity import (
    DiversityScorer,
    canonical_classes,
    encode_labels,
    pairwise_correlation
)

__all__ = [
    'RandomSource',
    'DiversityScorer',
    'canonical_classes',
    'encode_labels',
    'pairwise_correlation'
]
