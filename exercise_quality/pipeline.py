"""End-to-end analysis: prepare, split, fit, stack, evaluate, report.

Phases run leaf-first and each one consumes only the outputs of earlier
phases:

    load/prepare -> split -> base + standalone fits -> stacking -> evaluation

Every random draw derives from config.random_state through one
RandomSource, so two runs with the same configuration and data give the
same splits, models and report.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
import logging
import time

import pandas as pd

from exercise_quality.config import PipelineConfig
from exercise_quality.core import RandomSource, DiversityScorer
from exercise_quality.data import DataSplits, PreparationReport, load_raw_csv, prepare_with_report
from exercise_quality.evaluation import EvaluationResult, evaluate
from exercise_quality.parallel import FitJob, fit_models_parallel
from exercise_quality.report import render_report
from exercise_quality.stage1 import ClassifierPool, FittedModel
from exercise_quality.stage2 import StackedModel, StackingEnsemble, build_prediction_frame
from exercise_quality.tracking import (
    log_phase_start,
    log_phase_end,
    log_performance_metrics,
    log_success
)


logger = logging.getLogger(__name__)


@dataclass
class PipelineResults:
    """Everything a run produced.

    Attributes:
        preparation: Rows and columns removed while preparing
        splits: Training/testing/validation partition
        models: Fitted models by name (base, stacked, standalone)
        evaluations: Validation results by model name, in report order
        correlations: Pairwise base-model prediction correlation on the
            validation split, labelled 'a~b'
        elapsed_sec: Wall-clock duration of the run
    """
    preparation: PreparationReport
    splits: DataSplits
    models: Dict[str, object] = field(default_factory=dict)
    evaluations: Dict[str, EvaluationResult] = field(default_factory=dict)
    correlations: Optional[pd.Series] = None
    elapsed_sec: float = 0.0

    @property
    def stacked(self) -> Optional[StackedModel]:
        model = self.models.get('stacked')
        return model if isinstance(model, StackedModel) else None

    def accuracies(self) -> Dict[str, float]:
        return {name: result.accuracy for name, result in self.evaluations.items()}

    def report(self) -> str:
        return render_report(
            list(self.evaluations.values()),
            correlations=self.correlations,
            models=self.models
        )


def _fit_stage1(
    config: PipelineConfig,
    splits: DataSplits,
    random_source: RandomSource
) -> Dict[str, FittedModel]:
    """Fit base and standalone models on the training split."""
    names = config.stage1.base_classifiers + config.stage1.standalone_classifiers
    X_train, y_train = splits.get_training()
    jobs = [FitJob(classifier_name=name, X=X_train, y=y_train) for name in names]

    models = fit_models_parallel(
        jobs,
        config.stage1,
        random_source,
        n_workers=config.parallel.n_workers
    )
    return {model.name: model for model in models}


def _fit_stage2(
    config: PipelineConfig,
    splits: DataSplits,
    base_models: List[FittedModel],
    pool: ClassifierPool
) -> StackedModel:
    """Fit the meta-model on base predictions over the testing split."""
    ensemble = StackingEnsemble.from_config(pool, config.stage2, config.data.label_column)
    ensemble.set_base_models(base_models)

    X_test, y_test = splits.get_testing()
    frame = ensemble.build_meta_training_frame(X_test, y_test)
    ensemble.fit_meta(frame)

    return ensemble.as_fitted_model()


def run_pipeline(
    config: PipelineConfig,
    raw_data: Optional[pd.DataFrame] = None
) -> PipelineResults:
    """Run the whole analysis.

    Parameters
    ----------
    config : PipelineConfig
        Validated before use.
    raw_data : pd.DataFrame, optional
        Raw records. When omitted they are read from config.paths.data_file.

    Returns
    -------
    results : PipelineResults

    Raises
    ------
    PipelineError
        SchemaError, InsufficientDataError or FitError from any phase.
    FileNotFoundError
        If the data file does not exist.
    """
    config.validate()
    run_start = time.time()
    label = config.data.label_column
    random_source = RandomSource(config.random_state)

    # Phase 1: load and prepare
    phase_start = time.time()
    source = config.paths.data_file if raw_data is None else "in-memory frame"
    log_phase_start(logger, "Data preparation", f"Source: {source}")
    if raw_data is None:
        raw_data = load_raw_csv(config.paths.data_file, config.data.missing_markers)
    dataset, preparation = prepare_with_report(raw_data, config.data)
    logger.info("\n" + preparation.summary())
    log_phase_end(logger, "Data preparation", time.time() - phase_start)

    # Phase 2: split
    phase_start = time.time()
    log_phase_start(logger, "Partitioning", f"Fraction {config.partition.fraction} applied twice")
    splits = DataSplits(dataset, label, random_source, fraction=config.partition.fraction)
    logger.info("\n" + splits.summary())
    log_phase_end(logger, "Partitioning", time.time() - phase_start)

    # Phase 3: base and standalone models
    phase_start = time.time()
    log_phase_start(
        logger,
        "Stage 1 model fitting",
        f"{len(config.stage1.base_classifiers)} base, "
        f"{len(config.stage1.standalone_classifiers)} standalone, "
        f"{config.parallel.n_workers} worker(s)"
    )
    stage1_models = _fit_stage1(config, splits, random_source)
    base_models = [stage1_models[name] for name in config.stage1.base_classifiers]
    log_phase_end(logger, "Stage 1 model fitting", time.time() - phase_start)

    models: Dict[str, object] = {model.name: model for model in base_models}

    # Phase 4: stacking
    if config.stage2.enabled:
        phase_start = time.time()
        log_phase_start(logger, "Stage 2 stacking", f"Meta classifier: {config.stage2.meta_classifier}")
        pool = ClassifierPool(config.stage1, random_source)
        stacked = _fit_stage2(config, splits, base_models, pool)
        models[stacked.name] = stacked
        log_phase_end(logger, "Stage 2 stacking", time.time() - phase_start)

    for name in config.stage1.standalone_classifiers:
        models[name] = stage1_models[name]

    # Phase 5: evaluation on the untouched validation split
    phase_start = time.time()
    log_phase_start(logger, "Evaluation", f"{len(splits.validation):,} validation rows")
    evaluations = {}
    for name, model in models.items():
        result = evaluate(
            model,
            splits.validation,
            label,
            top_k=config.evaluation.top_k_importance,
            classes=splits.classes
        )
        evaluations[name] = result
        log_performance_metrics(
            logger,
            {'accuracy': result.accuracy, 'out_of_sample_error': result.out_of_sample_error},
            prefix=name
        )

    correlations = None
    if len(base_models) >= 2:
        X_val, _ = splits.get_validation()
        frame = build_prediction_frame(base_models, X_val)
        correlations = DiversityScorer().correlation_vector(
            {model.name: frame[model.name] for model in base_models},
            classes=splits.classes
        )
    log_phase_end(logger, "Evaluation", time.time() - phase_start)

    results = PipelineResults(
        preparation=preparation,
        splits=splits,
        models=models,
        evaluations=evaluations,
        correlations=correlations,
        elapsed_sec=time.time() - run_start
    )

    best = max(evaluations.values(), key=lambda r: r.accuracy)
    log_success(logger, f"Run complete in {results.elapsed_sec:.1f}s; best model {best.model_name} ({best.accuracy:.4f})")
    return results
