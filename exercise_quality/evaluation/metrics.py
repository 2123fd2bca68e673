"""Model evaluation on a labelled dataset.

Computes accuracy, a square confusion matrix in canonical class order, and
a ranked importance list for models that score their input features.
"""

from dataclasses import dataclass
from typing import Optional, Sequence
import logging

import numpy as np
import pandas as pd
from sklearn.metrics import accuracy_score, confusion_matrix

from exercise_quality.core import canonical_classes
from exercise_quality.exceptions import SchemaError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluationResult:
    """Accuracy, confusion matrix and importance ranking for one model.

    Attributes:
        model_name: Name of the evaluated model
        accuracy: Share of rows predicted correctly, in [0, 1]
        confusion_matrix: Counts with true classes as rows and predicted
            classes as columns, both in canonical order
        importance: Top features by descending score, or None for models
            without per-feature scores
        n_rows: Rows evaluated
    """
    model_name: str
    accuracy: float
    confusion_matrix: pd.DataFrame
    importance: Optional[pd.Series]
    n_rows: int

    @property
    def out_of_sample_error(self) -> float:
        return 1.0 - self.accuracy

    @property
    def classes(self) -> list:
        return list(self.confusion_matrix.index)


def rank_importance(scores: pd.Series, top_k: Optional[int] = None) -> pd.Series:
    """Sort importance scores descending, ties by feature name ascending.

    Parameters
    ----------
    scores : pd.Series
        Importance score per feature name.
    top_k : int, optional
        Keep only the first top_k features.

    Returns
    -------
    ranking : pd.Series
        Sorted scores.
    """
    table = pd.DataFrame({
        'feature': scores.index.astype(str),
        'score': scores.to_numpy(dtype=float)
    })
    table = table.sort_values(['score', 'feature'], ascending=[False, True], kind='mergesort')
    if top_k is not None:
        table = table.head(top_k)
    return pd.Series(table['score'].to_numpy(), index=table['feature'].to_numpy(), name='importance')


def labelled_confusion_matrix(
    y_true: Sequence,
    y_pred: Sequence,
    classes: Optional[Sequence] = None
) -> pd.DataFrame:
    """Confusion matrix as a DataFrame (rows = truth, columns = prediction).

    Parameters
    ----------
    y_true, y_pred : sequences
        True and predicted labels of equal length.
    classes : sequence, optional
        Canonical class order (default: sorted union of both sequences).
    """
    if classes is None:
        classes = canonical_classes(y_true, y_pred)
    matrix = confusion_matrix(np.asarray(y_true), np.asarray(y_pred), labels=list(classes))
    return pd.DataFrame(
        matrix,
        index=pd.Index(classes, name='true'),
        columns=pd.Index(classes, name='predicted')
    )


def evaluate_predictions(
    model_name: str,
    y_true: Sequence,
    y_pred: Sequence,
    classes: Optional[Sequence] = None,
    importance: Optional[pd.Series] = None,
    top_k: Optional[int] = 15
) -> EvaluationResult:
    """Evaluate already-computed predictions.

    Parameters
    ----------
    model_name : str
        Name reported in the result.
    y_true, y_pred : sequences
        True and predicted labels of equal length.
    classes : sequence, optional
        Canonical class order.
    importance : pd.Series, optional
        Raw importance scores to rank.
    top_k : int, optional
        Number of ranked features kept.
    """
    y_true = np.asarray(y_true)
    y_pred = np.asarray(y_pred)
    if len(y_true) != len(y_pred):
        raise ValueError(f"{model_name}: {len(y_pred)} predictions for {len(y_true)} rows")
    if len(y_true) == 0:
        raise ValueError(f"{model_name}: cannot evaluate on an empty dataset")

    matrix = labelled_confusion_matrix(y_true, y_pred, classes)
    accuracy = float(accuracy_score(y_true, y_pred))

    return EvaluationResult(
        model_name=model_name,
        accuracy=accuracy,
        confusion_matrix=matrix,
        importance=rank_importance(importance, top_k) if importance is not None else None,
        n_rows=len(y_true)
    )


def evaluate(
    model,
    dataset: pd.DataFrame,
    label_column: str,
    top_k: Optional[int] = 15,
    classes: Optional[Sequence] = None
) -> EvaluationResult:
    """Evaluate a fitted model against a labelled dataset.

    Parameters
    ----------
    model : FittedModel or StackedModel
        Anything with name, predict(X) and feature_importance().
    dataset : pd.DataFrame
        Features plus label column.
    label_column : str
        Name of the label column.
    top_k : int, optional, default=15
        Number of features kept in the importance ranking.
    classes : sequence, optional
        Canonical class order (default: sorted union of truth and
        predictions).

    Returns
    -------
    result : EvaluationResult

    Raises
    ------
    SchemaError
        If the label column is missing.
    """
    if label_column not in dataset.columns:
        raise SchemaError(f"Label column '{label_column}' not found", column=label_column, stage='evaluate')

    X = dataset.drop(columns=[label_column])
    y_true = dataset[label_column].to_numpy()
    y_pred = model.predict(X)

    result = evaluate_predictions(
        model.name,
        y_true,
        y_pred,
        classes=classes,
        importance=model.feature_importance(),
        top_k=top_k
    )
    logger.debug(f"{model.name}: accuracy {result.accuracy:.4f} on {result.n_rows:,} rows")
    return result
