"""Diversity diagnostics for stacked base models.

Stacking can only help when base models make different errors, so the
correlation between their predicted labels bounds its benefit. Labels are
encoded as integer codes in a shared canonical order before computing
Pearson correlation.
"""

from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd


def canonical_classes(*label_sequences: Sequence) -> list:
    """Sorted union of the labels in one or more sequences.

    This is the fixed class order used for confusion matrices, stratified
    splitting and numeric label encoding.
    """
    labels = set()
    for sequence in label_sequences:
        labels.update(pd.unique(np.asarray(sequence)))
    return sorted(labels)


def encode_labels(
    predictions: List[Sequence],
    classes: Optional[Sequence] = None
) -> List[np.ndarray]:
    """Encode label sequences as integer codes in a shared class order.

    Parameters
    ----------
    predictions : list of sequences
        Predicted labels from different models, same length.
    classes : sequence, optional
        Canonical class order. Defaults to the sorted union of all labels.

    Returns
    -------
    codes : list of np.ndarray
        Float arrays of class positions, one per input sequence.
    """
    if classes is None:
        classes = canonical_classes(*predictions)

    lookup = {label: code for code, label in enumerate(classes)}
    encoded = []
    for i, pred in enumerate(predictions):
        values = np.asarray(pred)
        try:
            encoded.append(np.array([lookup[v] for v in values], dtype=float))
        except KeyError as e:
            raise ValueError(f"Prediction {i} contains unknown label {e.args[0]!r}") from e
    return encoded


class DiversityScorer:
    """Calculates correlation diagnostics between model predictions.

    Example:
        >>> scorer = DiversityScorer()
        >>> corr = scorer.correlation_matrix([pred_lda, pred_qda, pred_tree])
        >>> scorer.score([pred_lda, pred_qda, pred_tree])
    """

    def correlation_matrix(
        self,
        predictions: List[Sequence],
        classes: Optional[Sequence] = None
    ) -> np.ndarray:
        """Get full Pearson correlation matrix between prediction sequences.

        Pairs of identical sequences correlate at exactly 1.0, including
        constant sequences whose Pearson correlation is otherwise undefined.
        Any other pair involving a constant sequence is NaN.

        Args:
            predictions: List of label sequences of equal length
            classes: Canonical class order used for the numeric encoding

        Returns:
            Correlation matrix (n_models x n_models)

        Raises:
            ValueError: If fewer than 2 sequences or lengths differ
        """
        if len(predictions) < 2:
            raise ValueError("Need at least 2 predictions to calculate correlation")

        first_len = len(predictions[0])
        for i, pred in enumerate(predictions[1:], 1):
            if len(pred) != first_len:
                raise ValueError(
                    f"Prediction {i} has length {len(pred)}, expected {first_len}"
                )

        codes = encode_labels(predictions, classes)
        n = len(codes)
        corr = np.full((n, n), np.nan)

        for i in range(n):
            for j in range(i, n):
                if np.array_equal(codes[i], codes[j]):
                    value = 1.0
                elif codes[i].std() == 0 or codes[j].std() == 0:
                    value = np.nan
                else:
                    value = float(np.corrcoef(codes[i], codes[j])[0, 1])
                corr[i, j] = corr[j, i] = value

        return corr

    def score(self, predictions: List[Sequence], classes: Optional[Sequence] = None) -> float:
        """Calculate mean pairwise correlation (lower = more diverse).

        Undefined pairs (NaN) are ignored; NaN is returned if every pair is
        undefined.
        """
        corr = self.correlation_matrix(predictions, classes)
        upper = corr[np.triu_indices(len(predictions), k=1)]
        if np.all(np.isnan(upper)):
            return float('nan')
        return float(np.nanmean(upper))

    def correlation_vector(
        self,
        predictions: Dict[str, Sequence],
        classes: Optional[Sequence] = None
    ) -> pd.Series:
        """Get the upper-triangle correlations labelled by model pair.

        Args:
            predictions: Mapping of model name to predicted labels
            classes: Canonical class order

        Returns:
            Series indexed by 'model_a~model_b'
        """
        names = list(predictions.keys())
        corr = self.correlation_matrix([predictions[name] for name in names], classes)

        pairs = {}
        for i in range(len(names)):
            for j in range(i + 1, len(names)):
                pairs[f"{names[i]}~{names[j]}"] = corr[i, j]

        return pd.Series(pairs, name='correlation', dtype=float)


def pairwise_correlation(*prediction_sequences: Sequence, classes: Optional[Sequence] = None) -> np.ndarray:
    """Pearson correlation matrix of numeric-encoded label predictions.

    Convenience wrapper around DiversityScorer.correlation_matrix.
    """
    return DiversityScorer().correlation_matrix(list(prediction_sequences), classes)
