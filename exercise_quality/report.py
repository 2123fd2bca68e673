"""Plain-text rendering of pipeline results.

Each formatter returns a multi-line string so results can be logged,
printed or written to a file unchanged.
"""

from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from exercise_quality.evaluation.metrics import EvaluationResult


SEPARATOR = "=" * 60


def accuracy_table(results: Sequence[EvaluationResult]) -> pd.DataFrame:
    """Accuracy and out-of-sample error per model, in result order."""
    return pd.DataFrame(
        {
            'accuracy': [r.accuracy for r in results],
            'out_of_sample_error': [r.out_of_sample_error for r in results],
            'rows': [r.n_rows for r in results]
        },
        index=pd.Index([r.model_name for r in results], name='model')
    )


def format_accuracy_table(results: Sequence[EvaluationResult]) -> str:
    lines = [
        "Validation Accuracy",
        SEPARATOR,
        accuracy_table(results).to_string(float_format=lambda v: f"{v:.4f}"),
        SEPARATOR
    ]
    return "\n".join(lines)


def format_confusion_matrix(result: EvaluationResult) -> str:
    """Confusion matrix of one model with a header line."""
    lines = [
        f"Confusion matrix: {result.model_name} "
        f"(rows = true, columns = predicted; accuracy {result.accuracy:.4f})",
        result.confusion_matrix.to_string()
    ]
    return "\n".join(lines)


def format_importance(result: EvaluationResult) -> str:
    """Ranked importance list, or a note when the model has none."""
    if result.importance is None:
        return f"Variable importance: {result.model_name} (not available)"

    lines = [f"Variable importance: {result.model_name} (top {len(result.importance)})"]
    for rank, (feature, score) in enumerate(result.importance.items(), 1):
        lines.append(f"  {rank:>3}. {feature:<30} {score:.4f}")
    return "\n".join(lines)


def format_correlation_vector(correlations: Optional[pd.Series]) -> str:
    """Pairwise base-model prediction correlations, one pair per line."""
    lines = ["Base-model prediction correlation"]
    if correlations is None or len(correlations) == 0:
        lines.append("  (fewer than two base models)")
        return "\n".join(lines)

    for pair, value in correlations.items():
        shown = "undefined" if np.isnan(value) else f"{value:.4f}"
        lines.append(f"  {pair:<40} {shown}")
    return "\n".join(lines)


def format_model_summary(models: Dict[str, object]) -> str:
    """Fitted models with chosen parameters, fit time and memory growth.

    Args:
        models: Mapping of model name to FittedModel or StackedModel

    Returns:
        Multi-line string, one line per model
    """
    lines = ["Fitted Models", SEPARATOR]
    for name, model in models.items():
        parts = [f"  {name}"]
        if getattr(model, 'best_params', None):
            params = ", ".join(f"{k}={v}" for k, v in model.best_params.items())
            parts.append(f"best: {params}")
        if getattr(model, 'fit_time_sec', None) is not None:
            parts.append(f"fit {model.fit_time_sec:.2f}s")
        if getattr(model, 'memory_mb', None) is not None:
            parts.append(f"mem {model.memory_mb:+.1f}MB")
        if getattr(model, 'model_hash', None):
            parts.append(f"hash {model.model_hash}")
        lines.append(" | ".join(parts))
    lines.append(SEPARATOR)
    return "\n".join(lines)


def render_report(
    results: Sequence[EvaluationResult],
    correlations: Optional[pd.Series] = None,
    models: Optional[Dict[str, object]] = None
) -> str:
    """Full text report: models, accuracy, matrices, importance, correlation.

    Parameters
    ----------
    results : sequence of EvaluationResult
        Validation results in reporting order.
    correlations : pd.Series, optional
        Output of DiversityScorer.correlation_vector.
    models : dict, optional
        Fitted models to summarise first.

    Returns
    -------
    report : str
    """
    sections: List[str] = []
    if models:
        sections.append(format_model_summary(models))
    sections.append(format_accuracy_table(results))
    for result in results:
        sections.append(format_confusion_matrix(result))
    for result in results:
        sections.append(format_importance(result))
    sections.append(format_correlation_vector(correlations))
    return "\n\n".join(sections)
