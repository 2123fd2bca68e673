"""Exercise-quality classification ensemble.

Classifies how well a weight-lifting exercise was performed from body-worn
sensor readings:
- Dataset preparation: drop window-summary rows and sparse summary columns
- Stratified training/testing/validation partitioning
- Stage 1: LDA, QDA and a cross-validated decision tree, plus a random forest
- Stage 2: decision-tree stacking over base-model predictions
- Evaluation: accuracy, confusion matrices, importance and prediction
  correlation

Every random draw derives from one explicit seed so runs are reproducible.
"""

__version__ = "1.0.0"

from exercise_quality.config import PipelineConfig

__all__ = ['PipelineConfig']
