"""Command-line entry point.

Usage:
    python -m exercise_quality data/pml-training.csv
    python -m exercise_quality data/pml-training.csv --seed 2024 --workers 4
    python -m exercise_quality data/pml-training.csv --folds 5 --log-file logs/run.log
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from exercise_quality import __version__
from exercise_quality.config import PipelineConfig
from exercise_quality.exceptions import PipelineError
from exercise_quality.pipeline import run_pipeline
from exercise_quality.tracking import setup_logger, log_error


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    defaults = PipelineConfig()

    parser = argparse.ArgumentParser(
        prog="python -m exercise_quality",
        description="Classify weight-lifting exercise quality from sensor data "
                    "with base models, a stacked ensemble and a random forest.",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "data_file",
        type=Path,
        help="Raw CSV file with one row per sensor reading"
    )
    parser.add_argument(
        "--label",
        default=defaults.data.label_column,
        help=f"Label column (default: {defaults.data.label_column})"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=defaults.random_state,
        help=f"Root random seed (default: {defaults.random_state})"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=defaults.parallel.n_workers,
        help="Worker processes for model fitting (default: 1, in-process)"
    )
    parser.add_argument(
        "--folds",
        type=int,
        default=defaults.stage1.cross_validation.n_folds,
        help=f"Cross-validation folds (default: {defaults.stage1.cross_validation.n_folds})"
    )
    parser.add_argument(
        "--top-k",
        type=int,
        default=defaults.evaluation.top_k_importance,
        help=f"Features shown in importance rankings (default: {defaults.evaluation.top_k_importance})"
    )
    parser.add_argument(
        "--log-level",
        default=defaults.tracking.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)"
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write the log to this file"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    return parser


def build_config(args: argparse.Namespace) -> PipelineConfig:
    """Apply command-line overrides to the default configuration."""
    config = PipelineConfig(random_state=args.seed)
    config.paths.data_file = Path(args.data_file)
    config.data.label_column = args.label
    config.parallel.n_workers = args.workers
    config.stage1.cross_validation.n_folds = args.folds
    config.evaluation.top_k_importance = args.top_k
    config.tracking.log_level = args.log_level
    config.tracking.log_file = args.log_file
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, 1 for a pipeline error)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    config = build_config(args)
    logger = setup_logger(
        level=getattr(logging, config.tracking.log_level),
        log_file=config.tracking.log_file
    )
    logger.info("\n" + config.summary())

    try:
        results = run_pipeline(config)
    except PipelineError as e:
        log_error(logger, e, context="pipeline run")
        return 1

    print(results.report())
    return 0


if __name__ == "__main__":
    sys.exit(main())
