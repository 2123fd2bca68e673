"""Stacking meta-model over base-model predictions.

The meta-model never sees raw sensor features. Its inputs are the labels
predicted by each base model (one column per model) and its target is the
true label. Base models must be fit on a different split from the one used
to train the meta-model, otherwise the meta-model learns from in-sample
predictions that are better than the base models really are.

Because the meta-model consumes base predictions, it cannot predict on its
own: at inference time every base model runs first and its labels are
assembled into the same Prediction Frame layout used for training.
"""

from typing import Dict, List, Optional, Sequence
import logging

import pandas as pd
from sklearn.preprocessing import OneHotEncoder

from exercise_quality.config import Stage2Config
from exercise_quality.exceptions import SchemaError
from exercise_quality.stage1.classifiers import ClassifierPool, FittedModel


logger = logging.getLogger(__name__)

STAGE = 'stacking'
META_MODEL_NAME = 'stacked'


def build_prediction_frame(
    base_models: Sequence[FittedModel],
    X: pd.DataFrame,
    y: Optional[pd.Series] = None,
    label_column: Optional[str] = None
) -> pd.DataFrame:
    """Assemble base-model predictions into a Prediction Frame.

    Parameters
    ----------
    base_models : sequence of FittedModel
        Fitted base models; column order follows this sequence.
    X : pd.DataFrame
        Raw features to predict on.
    y : pd.Series, optional
        True labels carried through unchanged.
    label_column : str, optional
        Name of the true-label column (default: y.name).

    Returns
    -------
    frame : pd.DataFrame
        One column of predicted labels per base model, named after the
        model, plus the label column when y is given. Index follows X.
    """
    names = [model.name for model in base_models]
    if len(set(names)) != len(names):
        raise ValueError(f"Base model names must be unique, got {names}")

    frame = pd.DataFrame(
        {model.name: model.predict(X) for model in base_models},
        index=X.index
    )

    if y is not None:
        label_column = label_column or y.name
        if label_column in frame.columns:
            raise ValueError(f"Label column '{label_column}' clashes with a base model name")
        frame[label_column] = y.to_numpy()

    return frame


def create_prediction_encoder(classes: List, n_models: int) -> OneHotEncoder:
    """One-hot encoder for predicted-label columns with a fixed class set.

    Fixing the categories keeps the encoded layout identical between
    training and inference, even when a base model never predicts some
    class on a given split.
    """
    return OneHotEncoder(
        categories=[list(classes)] * n_models,
        handle_unknown='ignore',
        sparse_output=False
    )


class StackingEnsemble:
    """An ordered list of base predictors plus one meta-predictor.

    Lifecycle:
        1. fit_base(X_train, y_train)         - fit every base model
        2. build_meta_training_frame(X, y)    - base predictions on a
                                                disjoint split
        3. fit_meta(frame)                    - fit the meta-model
        4. predict(X)                         - base predictions, then
                                                meta prediction

    Already-fitted base models can be supplied with set_base_models()
    instead of step 1 (see combine()).

    Attributes:
        pool: ClassifierPool used to fit base and meta models
        base_names: Classifier kinds of the base models, in column order
        meta_classifier: Classifier kind of the meta-model
        label_column: Name of the true-label column in Prediction Frames
    """

    def __init__(
        self,
        pool: ClassifierPool,
        base_names: Optional[List[str]] = None,
        meta_classifier: str = 'decision_tree',
        label_column: str = 'classe'
    ):
        self.pool = pool
        self.base_names = list(base_names) if base_names is not None else list(pool.config.base_classifiers)
        self.meta_classifier = meta_classifier
        self.label_column = label_column
        self.base_models: List[FittedModel] = []
        self.meta_model: Optional[FittedModel] = None
        self.classes: List = []

    @classmethod
    def from_config(cls, pool: ClassifierPool, config: Stage2Config, label_column: str) -> 'StackingEnsemble':
        """Build an ensemble over the pool's configured base classifiers."""
        return cls(
            pool,
            base_names=pool.config.base_classifiers,
            meta_classifier=config.meta_classifier,
            label_column=label_column
        )

    @property
    def is_fitted(self) -> bool:
        return self.meta_model is not None

    def fit_base(self, X: pd.DataFrame, y: pd.Series) -> List[FittedModel]:
        """Fit every base model sequentially on the same training data.

        Use parallel.fit_models_parallel plus set_base_models() to fit them
        concurrently.
        """
        models = [self.pool.fit(name, X, y) for name in self.base_names]
        self.set_base_models(models)
        return models

    def set_base_models(self, models: Sequence[FittedModel]) -> None:
        """Attach already-fitted base models, replacing any previous ones."""
        if len(models) == 0:
            raise ValueError("Stacking needs at least one base model")
        self.base_models = list(models)
        self.base_names = [model.name for model in self.base_models]
        self.meta_model = None

    def build_meta_training_frame(self, X: pd.DataFrame, y: pd.Series) -> pd.DataFrame:
        """Predict with every base model and attach the true labels.

        X and y must come from a split none of the base models was fit on.
        """
        if not self.base_models:
            raise RuntimeError("Base models must be fitted before building the meta frame")
        return build_prediction_frame(self.base_models, X, y, self.label_column)

    def fit_meta(self, frame: pd.DataFrame) -> FittedModel:
        """Fit the meta-model on a Prediction Frame.

        Raises
        ------
        SchemaError
            If the frame lacks the label column or a base-model column.
        FitError
            If the frame's labels cannot be spread over the CV folds.
        """
        missing = [c for c in self.base_names + [self.label_column] if c not in frame.columns]
        if missing:
            raise SchemaError(
                f"Prediction frame is missing column(s) {missing}",
                column=missing[0],
                stage=STAGE
            )

        X_meta = frame[self.base_names]
        y_meta = frame[self.label_column]

        # Every class the meta-model can see, as truth or as a prediction
        classes = set(pd.unique(y_meta))
        for name in self.base_names:
            classes.update(pd.unique(X_meta[name]))
        for model in self.base_models:
            classes.update(model.classes)
        self.classes = sorted(classes)

        encoder = create_prediction_encoder(self.classes, len(self.base_names))
        self.meta_model = self.pool.fit(
            self.meta_classifier,
            X_meta,
            y_meta,
            preprocessor=encoder,
            model_name=META_MODEL_NAME
        )

        logger.debug(f"Meta-model fitted on {len(frame):,} rows from {len(self.base_names)} base models")
        return self.meta_model

    def predict_from_frame(self, frame: pd.DataFrame) -> pd.Series:
        """Meta-model predictions for a pre-built Prediction Frame."""
        if self.meta_model is None:
            raise RuntimeError("Meta-model must be fitted before predicting")
        return pd.Series(
            self.meta_model.predict(frame[self.base_names]),
            index=frame.index,
            name=META_MODEL_NAME
        )

    def predict(self, X: pd.DataFrame) -> pd.Series:
        """Run every base model on X, then the meta-model on their labels."""
        frame = build_prediction_frame(self.base_models, X)
        return self.predict_from_frame(frame)

    def base_predictions(self, X: pd.DataFrame) -> Dict[str, pd.Series]:
        """Predictions of each base model on X, keyed by model name."""
        frame = build_prediction_frame(self.base_models, X)
        return {name: frame[name] for name in self.base_names}

    def as_fitted_model(self) -> 'StackedModel':
        """View of the fitted ensemble with the FittedModel interface."""
        if self.meta_model is None:
            raise RuntimeError("Meta-model must be fitted first")
        return StackedModel(self)


class StackedModel:
    """FittedModel-compatible view of a fitted StackingEnsemble.

    predict() takes raw features and runs the base models internally.
    Importance scores refer to one-hot encoded base predictions, e.g.
    'lda_E' is "LDA predicted class E".
    """

    def __init__(self, ensemble: StackingEnsemble):
        self.ensemble = ensemble
        self.name = META_MODEL_NAME
        self.classes = list(ensemble.meta_model.classes)
        self.feature_names = sorted({f for m in ensemble.base_models for f in m.feature_names})
        self.fit_time_sec = ensemble.meta_model.fit_time_sec
        self.best_params = ensemble.meta_model.best_params
        self.cv_results = ensemble.meta_model.cv_results

    @property
    def supports_importance(self) -> bool:
        return self.ensemble.meta_model.supports_importance

    def predict(self, X: pd.DataFrame):
        return self.ensemble.predict(X).to_numpy()

    def feature_importance(self) -> Optional[pd.Series]:
        return self.ensemble.meta_model.feature_importance()

    def __repr__(self) -> str:
        return f"StackedModel(base={self.ensemble.base_names}, meta={self.ensemble.meta_classifier!r})"


def combine(
    base_models: Sequence[FittedModel],
    training_dataset: pd.DataFrame,
    label_column: str,
    pool: ClassifierPool,
    meta_classifier: str = 'decision_tree'
) -> StackedModel:
    """Fit a meta-model over already-fitted base models.

    Parameters
    ----------
    base_models : sequence of FittedModel
        Base models fit on a split disjoint from training_dataset.
    training_dataset : pd.DataFrame
        Features plus label column used to train the meta-model.
    label_column : str
        Name of the label column.
    pool : ClassifierPool
        Pool providing the meta classifier and CV settings.
    meta_classifier : str, default='decision_tree'
        Classifier kind of the meta-model.

    Returns
    -------
    model : StackedModel
        Its predict() runs every base model first.

    Notes
    -----
    The meta-model sees only base predictions. If those are constant it
    cannot split, and it predicts the majority class of training_dataset
    (the first class on a tie). On an imbalanced split that prior can
    beat a base model that always predicts a minority class.
    """
    if label_column not in training_dataset.columns:
        raise SchemaError(f"Label column '{label_column}' not found", column=label_column, stage=STAGE)

    ensemble = StackingEnsemble(pool, meta_classifier=meta_classifier, label_column=label_column)
    ensemble.set_base_models(base_models)

    X = training_dataset.drop(columns=[label_column])
    y = training_dataset[label_column]
    frame = ensemble.build_meta_training_frame(X, y)
    ensemble.fit_meta(frame)

    return ensemble.as_fitted_model()
