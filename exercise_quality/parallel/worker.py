"""Worker process management for parallel model fitting.

Base models are independent given their training data, so they can be fit
in separate processes. Results are joined in submission order and the first
failure aborts the whole batch: a partially fitted ensemble has no use
downstream.
"""

from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from typing import List, Optional
import logging
import os

import pandas as pd
import psutil

from exercise_quality.config import Stage1Config
from exercise_quality.core import RandomSource
from exercise_quality.stage1.classifiers import ClassifierPool, FittedModel
from exercise_quality.tracking.logger import log_error, log_training_progress


logger = logging.getLogger(__name__)


@dataclass
class FitJob:
    """One model to fit.

    Attributes:
        classifier_name: Classifier kind from Stage1Config
        X: Training features
        y: Training labels
    """
    classifier_name: str
    X: pd.DataFrame
    y: pd.Series


def fit_single_model(
    job: FitJob,
    config: Stage1Config,
    random_source: RandomSource
) -> FittedModel:
    """Fit one model and record its resident-memory growth.

    Runs either in the caller's process or in a worker process; the pool
    is rebuilt locally so only plain configuration crosses the process
    boundary.

    Parameters
    ----------
    job : FitJob
        Model kind and training data.
    config : Stage1Config
        Classifier configurations.
    random_source : RandomSource
        Root source; the model derives its own stream from it.

    Returns
    -------
    model : FittedModel
        Fitted model with memory_mb set.
    """
    process = psutil.Process(os.getpid())
    mem_before = process.memory_info().rss / 1024 / 1024  # MB

    pool = ClassifierPool(config, random_source)
    model = pool.fit(job.classifier_name, job.X, job.y)

    mem_after = process.memory_info().rss / 1024 / 1024  # MB
    model.memory_mb = mem_after - mem_before

    return model


def fit_models_parallel(
    jobs: List[FitJob],
    config: Stage1Config,
    random_source: RandomSource,
    n_workers: int = 1,
    max_workers: Optional[int] = None
) -> List[FittedModel]:
    """Fit several models, in worker processes when n_workers > 1.

    Parameters
    ----------
    jobs : list of FitJob
        Models to fit.
    config : Stage1Config
        Classifier configurations.
    random_source : RandomSource
        Root source for model seeds. Seeds depend only on model names, so
        results do not depend on n_workers.
    n_workers : int, default=1
        Worker processes. 1 fits sequentially in the current process.
    max_workers : int, optional
        Upper bound on processes (default: CPU count).

    Returns
    -------
    models : list of FittedModel
        One model per job, in job order.

    Raises
    ------
    Exception
        The first error raised by any fit, unchanged.
    """
    if max_workers is None:
        max_workers = psutil.cpu_count() or 1

    n_workers = max(1, min(n_workers, len(jobs), max_workers))

    if n_workers == 1:
        models = []
        for i, job in enumerate(jobs, 1):
            models.append(fit_single_model(job, config, random_source))
            log_training_progress(logger, i, len(jobs), message="Models fitted")
        return models

    logger.info(f"Fitting {len(jobs)} models on {n_workers} worker processes")

    with ProcessPoolExecutor(max_workers=n_workers) as executor:
        futures = [
            executor.submit(fit_single_model, job, config, random_source)
            for job in jobs
        ]

        models = []
        for i, (job, future) in enumerate(zip(jobs, futures), 1):
            try:
                models.append(future.result())
            except Exception as e:
                log_error(logger, e, context=f"fitting {job.classifier_name}")
                for pending in futures:
                    pending.cancel()
                raise
            log_training_progress(logger, i, len(jobs), message="Models fitted")

    return models
