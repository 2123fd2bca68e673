"""k-fold selection of a tree's complexity parameter.

Candidates are scored by mean held-out accuracy over stratified folds. When
several candidates tie for the best mean, the simplest tree (the largest
complexity penalty) wins.
"""

from functools import partial
from typing import Any, Dict, List, Optional, Tuple
import logging

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator
from sklearn.model_selection import GridSearchCV, StratifiedKFold

from exercise_quality.config import CrossValidationConfig
from exercise_quality.core import RandomSource
from exercise_quality.exceptions import FitError


logger = logging.getLogger(__name__)

COMPLEXITY_PARAMETER = 'ccp_alpha'


def check_fold_coverage(
    y: pd.Series,
    n_folds: int,
    model_name: str = '',
    stage: str = 'fit'
) -> None:
    """Check that every class can appear in every held-out fold.

    Parameters
    ----------
    y : pd.Series
        Training labels.
    n_folds : int
        Number of stratified folds.
    model_name : str, optional
        Model name used in the error message.
    stage : str, default='fit'
        Pipeline stage reported in the error.

    Raises
    ------
    FitError
        If fewer than two classes are present, or a class has fewer rows
        than folds so some fold could not evaluate it.
    """
    counts = pd.Series(y).value_counts()
    if len(counts) < 2:
        raise FitError(
            f"{model_name or 'model'}: need at least 2 classes for cross-validation, "
            f"got {len(counts)}",
            model_name=model_name,
            stage=stage
        )

    sparse = counts[counts < n_folds]
    if len(sparse) > 0:
        detail = ', '.join(f"{label!r} ({count})" for label, count in sparse.sort_index().items())
        raise FitError(
            f"{model_name or 'model'}: classes with fewer rows than the {n_folds} folds "
            f"cannot be held out in every fold: {detail}",
            model_name=model_name,
            stage=stage
        )


def select_simplest_best(cv_results: Dict[str, Any], complexity_key: Optional[str] = None) -> int:
    """Choose the grid index with the best mean score, preferring simple models.

    Used as GridSearchCV's ``refit`` callable.

    Parameters
    ----------
    cv_results : dict
        GridSearchCV.cv_results_.
    complexity_key : str, optional
        Parameter name (e.g. 'classifier__ccp_alpha') whose largest value
        wins ties. Without it, the earliest tied candidate wins.

    Returns
    -------
    best_index : int
        Index into the candidate list.
    """
    scores = np.asarray(cv_results['mean_test_score'], dtype=float)
    best = np.nanmax(scores)
    tied = np.flatnonzero(np.isclose(scores, best, rtol=0.0, atol=1e-12))

    if complexity_key is None or len(tied) == 1:
        return int(tied[0])

    params = cv_results['params']
    return int(max(tied, key=lambda i: (params[i][complexity_key], -i)))


def _find_complexity_key(param_grid: Dict[str, List[Any]]) -> Optional[str]:
    for key in param_grid:
        if key.split('__')[-1] == COMPLEXITY_PARAMETER:
            return key
    return None


def cross_validated_fit(
    estimator: BaseEstimator,
    X: pd.DataFrame,
    y: pd.Series,
    param_grid: Dict[str, List[Any]],
    cv_config: CrossValidationConfig,
    random_source: RandomSource,
    model_name: str = ''
) -> Tuple[BaseEstimator, Dict[str, Any], pd.DataFrame]:
    """Select hyperparameters by k-fold CV and refit on all training rows.

    Parameters
    ----------
    estimator : BaseEstimator
        Unfitted sklearn estimator or pipeline.
    X : pd.DataFrame
        Training features.
    y : pd.Series
        Training labels.
    param_grid : dict
        Candidate values per parameter (pipeline step prefixes allowed).
    cv_config : CrossValidationConfig
        Fold count, shuffling and fold parallelism.
    random_source : RandomSource
        Source for the fold assignment.
    model_name : str, optional
        Used in logs and errors.

    Returns
    -------
    best_estimator : BaseEstimator
        Estimator refit on all of X with the selected parameters.
    best_params : dict
        Selected parameter values.
    cv_table : pd.DataFrame
        One row per candidate with mean/std held-out accuracy.

    Raises
    ------
    FitError
        If the training labels cannot be spread over the folds.
    """
    check_fold_coverage(y, cv_config.n_folds, model_name)

    folds = StratifiedKFold(
        n_splits=cv_config.n_folds,
        shuffle=cv_config.shuffle,
        random_state=random_source.integer_seed() if cv_config.shuffle else None
    )

    complexity_key = _find_complexity_key(param_grid)
    search = GridSearchCV(
        estimator,
        param_grid=param_grid,
        scoring='accuracy',
        cv=folds,
        refit=partial(select_simplest_best, complexity_key=complexity_key),
        n_jobs=cv_config.n_jobs,
        error_score='raise'
    )
    search.fit(X, y)

    param_columns = [f'param_{key}' for key in param_grid]
    cv_table = pd.DataFrame(search.cv_results_)[
        param_columns + ['mean_test_score', 'std_test_score']
    ].rename(columns={
        'mean_test_score': 'mean_accuracy',
        'std_test_score': 'std_accuracy'
    })

    logger.debug(
        f"{model_name}: selected {search.best_params_} "
        f"(mean accuracy {cv_table['mean_accuracy'].iloc[search.best_index_]:.4f})"
    )

    return search.best_estimator_, dict(search.best_params_), cv_table
