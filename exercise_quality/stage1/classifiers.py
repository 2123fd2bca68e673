"""Classifier pool and fitted-model wrapper for Stage 1.

Every model kind (LDA, QDA, decision tree, random forest) is an sklearn
estimator configured in Stage1Config. The pool builds and fits them with
seeds derived from the run's RandomSource and wraps the result in a
FittedModel exposing a uniform capability set:
- predict(X) -> labels
- feature_importance() -> scores, for models that have them
"""

from typing import Dict, Any, List, Optional
import logging
import time

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, TransformerMixin
from sklearn.pipeline import Pipeline

from exercise_quality.config import Stage1Config, ClassifierConfig
from exercise_quality.core import RandomSource
from exercise_quality.exceptions import SchemaError
from exercise_quality.stage1.tuning import cross_validated_fit
from exercise_quality.utils import compute_model_hash


logger = logging.getLogger(__name__)


class FittedModel:
    """A fitted classifier with the metadata needed to use and report it.

    Attributes:
        name: Classifier name (e.g. 'decision_tree')
        estimator: Fitted sklearn estimator or Pipeline
        feature_names: Input columns, in the order used for fitting
        classes: Class labels in the estimator's order
        best_params: Parameters chosen by cross-validation, if any
        cv_results: One row per CV candidate, if any
        fit_time_sec: Wall-clock fitting time
        memory_mb: Resident memory growth while fitting, when measured
    """

    def __init__(
        self,
        name: str,
        estimator: BaseEstimator,
        feature_names: List[str],
        best_params: Optional[Dict[str, Any]] = None,
        cv_results: Optional[pd.DataFrame] = None,
        fit_time_sec: Optional[float] = None,
        memory_mb: Optional[float] = None
    ):
        self.name = name
        self.estimator = estimator
        self.feature_names = list(feature_names)
        self.classes = list(estimator.classes_)
        self.best_params = best_params or {}
        self.cv_results = cv_results
        self.fit_time_sec = fit_time_sec
        self.memory_mb = memory_mb

    def _select_features(self, X: pd.DataFrame) -> pd.DataFrame:
        missing = [c for c in self.feature_names if c not in X.columns]
        if missing:
            raise SchemaError(
                f"{self.name}: input is missing {len(missing)} feature column(s), "
                f"e.g. {missing[:3]}",
                column=str(missing[0]),
                stage='predict'
            )
        return X[self.feature_names]

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        """Predict one label per row, in row order."""
        return self.estimator.predict(self._select_features(X))

    @property
    def final_estimator(self) -> BaseEstimator:
        if isinstance(self.estimator, Pipeline):
            return self.estimator[-1]
        return self.estimator

    @property
    def supports_importance(self) -> bool:
        return hasattr(self.final_estimator, 'feature_importances_')

    def importance_feature_names(self) -> List[str]:
        """Names of the columns the final estimator actually sees."""
        if isinstance(self.estimator, Pipeline) and len(self.estimator) > 1:
            names = self.estimator[:-1].get_feature_names_out(self.feature_names)
            return [str(n) for n in names]
        return [str(n) for n in self.feature_names]

    def feature_importance(self) -> Optional[pd.Series]:
        """Per-feature importance scores, or None for models without them.

        Returns:
            Series indexed by feature name, unsorted
        """
        if not self.supports_importance:
            return None
        return pd.Series(
            self.final_estimator.feature_importances_,
            index=self.importance_feature_names(),
            name=self.name,
            dtype=float
        )

    @property
    def model_hash(self) -> str:
        """Short hash of the name and final estimator parameters."""
        params = {
            k: v for k, v in self.final_estimator.get_params().items()
            if not isinstance(v, BaseEstimator)
        }
        return compute_model_hash(self.name, params)

    def __repr__(self) -> str:
        return (
            f"FittedModel(name={self.name!r}, "
            f"estimator={type(self.final_estimator).__name__}, "
            f"n_features={len(self.feature_names)}, n_classes={len(self.classes)})"
        )


class ClassifierPool:
    """Builds and fits the configured classifier kinds.

    Attributes:
        config: Stage1Config with classifier configurations
        random_source: Source every model seed is derived from

    Example:
        >>> from exercise_quality.config import PipelineConfig
        >>> from exercise_quality.core import RandomSource
        >>> config = PipelineConfig()
        >>> pool = ClassifierPool(config.stage1, RandomSource(config.random_state))
        >>>
        >>> model = pool.fit('decision_tree', X_train, y_train)
        >>> labels = model.predict(X_val)
    """

    def __init__(self, config: Stage1Config, random_source: RandomSource):
        """Initialize the classifier pool.

        Args:
            config: Stage1Config with classifier configurations
            random_source: Source for model and fold seeds
        """
        self.config = config
        self.random_source = random_source

    def get_active_classifiers(self) -> list:
        """Get base and standalone classifier names, in that order.

        Returns:
            List of classifier names that are enabled
        """
        names = self.config.base_classifiers + self.config.standalone_classifiers
        return [name for name in names if self.config.classifiers[name].enabled]

    def get_config(self, classifier_name: str) -> ClassifierConfig:
        """Get configuration for a specific classifier.

        Args:
            classifier_name: Name of the classifier

        Returns:
            ClassifierConfig for the specified classifier

        Raises:
            KeyError: If classifier name not found
        """
        if classifier_name not in self.config.classifiers:
            raise KeyError(f"Classifier '{classifier_name}' not found in config")

        return self.config.classifiers[classifier_name]

    def build_classifier(
        self,
        classifier_name: str,
        hyperparameters: Optional[Dict[str, Any]] = None,
        seed_name: Optional[str] = None
    ) -> BaseEstimator:
        """Build an unfitted classifier instance.

        Estimators that accept ``random_state`` are always seeded, including
        deterministic ones, so every fit in a run is reproducible from the
        root seed alone.

        Args:
            classifier_name: Name of the classifier
            hyperparameters: Constructor arguments (default: configured ones)
            seed_name: Stream name for the seed (default: classifier_name)

        Returns:
            Instantiated sklearn classifier
        """
        clf_config = self.get_config(classifier_name)

        if hyperparameters is None:
            hyperparameters = dict(clf_config.hyperparameters)

        classifier = clf_config.classifier_class(**hyperparameters)

        if 'random_state' in classifier.get_params() and 'random_state' not in hyperparameters:
            seed = self.random_source.child(seed_name or classifier_name).integer_seed()
            classifier.set_params(random_state=seed)

        return classifier

    def fit(
        self,
        classifier_name: str,
        X: pd.DataFrame,
        y: pd.Series,
        param_grid: Optional[Dict[str, List[Any]]] = None,
        resampling: Optional[str] = None,
        preprocessor: Optional[TransformerMixin] = None,
        model_name: Optional[str] = None
    ) -> FittedModel:
        """Fit a classifier, selecting hyperparameters by CV if configured.

        Args:
            classifier_name: Name of the classifier kind
            X: Training features
            y: Training labels
            param_grid: Overrides the configured grid
            resampling: 'none' or 'cv' (default: configured policy)
            preprocessor: Optional transformer placed before the classifier
            model_name: Name of the fitted model (default: classifier_name)

        Returns:
            FittedModel

        Raises:
            FitError: If CV is requested and a class cannot cover every fold
        """
        clf_config = self.get_config(classifier_name)
        model_name = model_name or classifier_name
        resampling = resampling or clf_config.resampling
        param_grid = param_grid if param_grid is not None else clf_config.param_grid

        estimator = self.build_classifier(classifier_name, seed_name=model_name)
        if preprocessor is not None:
            estimator = Pipeline([
                ('encoder', preprocessor),
                ('classifier', estimator)
            ])
            if param_grid:
                param_grid = {f'classifier__{k}': v for k, v in param_grid.items()}

        start = time.perf_counter()
        best_params, cv_table = {}, None

        if resampling == 'cv':
            estimator, best_params, cv_table = cross_validated_fit(
                estimator,
                X,
                y,
                param_grid=param_grid,
                cv_config=self.config.cross_validation,
                random_source=self.random_source.child(model_name).child('folds'),
                model_name=model_name
            )
        elif resampling == 'none':
            estimator.fit(X, y)
        else:
            raise ValueError(f"Unknown resampling policy '{resampling}'")

        elapsed = time.perf_counter() - start

        model = FittedModel(
            name=model_name,
            estimator=estimator,
            feature_names=list(X.columns),
            best_params=best_params,
            cv_results=cv_table,
            fit_time_sec=elapsed
        )
        logger.debug(
            f"Fitted {model_name} [{model.model_hash}] on {len(X):,} rows in {elapsed:.2f}s"
        )
        return model

    def fit_dataset(
        self,
        dataset: pd.DataFrame,
        label_column: str,
        classifier_name: str,
        param_grid: Optional[Dict[str, List[Any]]] = None,
        resampling: Optional[str] = None
    ) -> FittedModel:
        """Fit a classifier on a labelled dataset (features + label column)."""
        if label_column not in dataset.columns:
            raise SchemaError(
                f"Label column '{label_column}' not found",
                column=label_column,
                stage='fit'
            )
        X = dataset.drop(columns=[label_column])
        y = dataset[label_column]
        return self.fit(classifier_name, X, y, param_grid=param_grid, resampling=resampling)

    def get_pool_summary(self) -> str:
        """Generate human-readable summary of the classifier pool.

        Returns:
            Multi-line string describing the pool
        """
        active = self.get_active_classifiers()

        lines = [
            "Classifier Pool Summary",
            "=" * 50,
            f"Configured classifiers: {len(self.config.classifiers)}",
            f"Active classifiers: {len(active)}",
            ""
        ]

        for name in active:
            clf_config = self.config.classifiers[name]
            role = 'base' if name in self.config.base_classifiers else 'standalone'
            lines.append(
                f"  - {name}: {clf_config.classifier_class.__name__} "
                f"({role}, resampling={clf_config.resampling})"
            )

        return "\n".join(lines)
