"""Stage 2: stacking meta-model.

This subpackage handles Stage 2 training:
- Prediction Frame assembly from base-model labels
- StackingEnsemble lifecycle (fit_base, build_meta_training_frame,
  fit_meta, predict)
- combine() over already-fitted base models
"""

from .stacking import (
    StackedModel,
    StackingEnsemble,
    build_prediction_frame,
    combine,
    create_prediction_encoder
)

__all__ = [
    'StackedModel',
    'StackingEnsemble',
    'build_prediction_frame',
    'combine',
    'create_prediction_encoder'
]
