"""Structured logging utilities for the analysis pipeline.

Every module logs through a child of the 'exercise_quality' logger, so one
call to setup_logger() configures console and file output for the whole
package.
"""

import logging
from typing import Dict, Any, Optional
from pathlib import Path


def setup_logger(
    name: str = 'exercise_quality',
    level: int = logging.INFO,
    log_file: Optional[Path] = None
) -> logging.Logger:
    """Setup a logger with consistent formatting.

    Parameters
    ----------
    name : str, default='exercise_quality'
        Logger name.
    level : int or str, default=logging.INFO
        Logging level.
    log_file : Path, optional
        Path to log file. If provided, logs will be written to both console and file.
        File will be overwritten (mode='w') to start fresh each run.

    Returns
    -------
    logger : logging.Logger
        Configured logger instance.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Clear any existing handlers to start fresh
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    # Format: [2025-12-10 10:30:45] INFO: Message
    formatter = logging.Formatter(
        '[%(asctime)s] %(levelname)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode='w')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def log_phase_start(logger: logging.Logger, phase_name: str, details: str = "") -> None:
    """Log the start of a major phase.

    Parameters
    ----------
    logger : logging.Logger
        Logger instance.
    phase_name : str
        Name of the phase.
    details : str, optional
        Additional details.
    """
    separator = "=" * 80
    logger.info(separator)
    logger.info(f"{phase_name.upper()}")
    if details:
        logger.info(details)
    logger.info(separator)


def log_phase_end(logger: logging.Logger, phase_name: str, elapsed_time: float = None) -> None:
    """Log the end of a major phase.

    Parameters
    ----------
    logger : logging.Logger
        Logger instance.
    phase_name : str
        Name of the phase.
    elapsed_time : float, optional
        Time elapsed in seconds.
    """
    msg = f"{phase_name.upper()} COMPLETE"
    if elapsed_time is not None:
        msg += f" ({elapsed_time:.1f}s)"
    logger.info(msg)


def log_training_progress(
    logger: logging.Logger,
    current: int,
    total: int,
    message: str = "Training progress"
) -> None:
    """Log training progress.

    Parameters
    ----------
    logger : logging.Logger
        Logger instance.
    current : int
        Models completed so far.
    total : int
        Total models.
    message : str, default='Training progress'
        Progress message.
    """
    pct = (current / total * 100) if total > 0 else 0
    logger.info(f"{message}: {current}/{total} ({pct:.1f}%)")


def log_performance_metrics(
    logger: logging.Logger,
    metrics: Dict[str, Any],
    prefix: str = ""
) -> None:
    """Log performance metrics in a structured way.

    Parameters
    ----------
    logger : logging.Logger
        Logger instance.
    metrics : dict
        Dictionary of metric name to value.
    prefix : str, optional
        Heading logged before the metrics.
    """
    if prefix:
        logger.info(f"{prefix}:")

    for name, value in metrics.items():
        if isinstance(value, float):
            logger.info(f"  {name}: {value:.6f}")
        else:
            logger.info(f"  {name}: {value}")


def log_error(logger: logging.Logger, error: Exception, context: str = "") -> None:
    """Log an error with context.

    Parameters
    ----------
    logger : logging.Logger
        Logger instance.
    error : Exception
        The exception that occurred.
    context : str, optional
        Additional context about where the error occurred.
    """
    if context:
        logger.error(f"Error in {context}: {type(error).__name__}: {str(error)}")
    else:
        logger.error(f"{type(error).__name__}: {str(error)}")


def log_warning(logger: logging.Logger, message: str) -> None:
    """Log a warning message."""
    logger.warning(f"⚠️  {message}")


def log_success(logger: logging.Logger, message: str) -> None:
    """Log a success message."""
    logger.info(f"✓ {message}")
