"""Dataset preparation: row and column filtering.

The raw sensor export mixes two kinds of rows. Most rows are instantaneous
sensor readings; rows flagged as window summaries additionally carry
aggregate statistics (kurtosis, skewness, max, min, amplitude, avg, var,
stddev) over a time window. Preparation keeps only the instantaneous rows
and only the per-instant sensor columns, since identifiers, timestamps and
window statistics cannot generalize across subjects and time.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
import logging
import re

import pandas as pd

from exercise_quality.config import DataConfig
from exercise_quality.exceptions import SchemaError
from exercise_quality.tracking import log_warning


logger = logging.getLogger(__name__)

STAGE = 'prepare'


@dataclass
class PreparationReport:
    """What preparation removed from a raw dataset.

    Attributes:
        rows_in: Raw row count
        rows_out: Prepared row count
        window_rows_dropped: Window-summary rows removed
        unlabeled_rows_dropped: Rows removed for a missing label
        dropped_columns: Mapping of drop reason to column names
        feature_columns: Remaining feature columns in order
    """
    rows_in: int
    rows_out: int
    window_rows_dropped: int
    unlabeled_rows_dropped: int = 0
    dropped_columns: Dict[str, List[str]] = field(default_factory=dict)
    feature_columns: List[str] = field(default_factory=list)

    @property
    def n_dropped_columns(self) -> int:
        return sum(len(cols) for cols in self.dropped_columns.values())

    def summary(self) -> str:
        """Get summary of the preparation step.

        Returns
        -------
        summary : str
            Human-readable summary.
        """
        lines = [
            "Dataset Preparation Summary",
            "=" * 60,
            f"Rows: {self.rows_in:,} -> {self.rows_out:,} "
            f"({self.window_rows_dropped:,} window-summary rows dropped)",
            f"Columns dropped: {self.n_dropped_columns}",
        ]
        for reason, columns in self.dropped_columns.items():
            lines.append(f"  {reason}: {len(columns)}")
        lines.append(f"Feature columns kept: {len(self.feature_columns)}")
        lines.append("=" * 60)
        return "\n".join(lines)


def _summary_column_pattern(config: DataConfig) -> re.Pattern:
    prefixes = '|'.join(re.escape(prefix) for prefix in config.summary_prefixes)
    return re.compile(f'^(?:{prefixes})')


def _is_window_summary_row(values: pd.Series, summary_value: str) -> pd.Series:
    normalized = values.astype(str).str.strip().str.lower()
    return values.notna() & (normalized == summary_value.lower())


def prepare_with_report(
    raw_rows: pd.DataFrame,
    config: Optional[DataConfig] = None
) -> tuple:
    """Prepare a raw dataset and report what was removed.

    Parameters
    ----------
    raw_rows : pd.DataFrame
        Raw records as loaded from file (missing values already NaN).
    config : DataConfig, optional
        Schema and filtering rules. Defaults to DataConfig().

    Returns
    -------
    dataset : pd.DataFrame
        Numeric feature columns followed by the label column. The raw
        index labels of kept rows are preserved.
    report : PreparationReport
        Rows and columns removed, by reason.

    Raises
    ------
    SchemaError
        If the label column is absent after filtering, or a kept feature
        column is not numeric or still has missing values.
    """
    if config is None:
        config = DataConfig()

    label = config.label_column
    rows_in = len(raw_rows)

    # Instantaneous readings only
    if config.window_flag_column in raw_rows.columns:
        window_mask = _is_window_summary_row(
            raw_rows[config.window_flag_column], config.window_summary_value
        )
        data = raw_rows.loc[~window_mask]
    else:
        window_mask = pd.Series(False, index=raw_rows.index)
        data = raw_rows

    summary_pattern = _summary_column_pattern(config)
    identifiers = set(config.identifier_columns)
    dropped = {'timestamp': [], 'window summary': [], 'identifier': [], 'sparse': []}

    kept = []
    for column in data.columns:
        name = str(column)
        if column == label:
            continue
        if column in identifiers:
            dropped['identifier'].append(name)
        elif config.timestamp_marker in name:
            dropped['timestamp'].append(name)
        elif summary_pattern.match(name):
            dropped['window summary'].append(name)
        else:
            kept.append(column)

    if label not in data.columns:
        raise SchemaError(
            f"Label column '{label}' not found after filtering "
            f"(available: {len(kept)} feature columns)",
            column=label,
            stage=STAGE
        )

    unlabeled = data[label].isna()
    if unlabeled.any():
        log_warning(logger, f"Dropping {int(unlabeled.sum())} rows with no '{label}' value")
        data = data.loc[~unlabeled]

    # Sparse columns that survive the name rules
    if len(data) > 0:
        missing_fraction = data[kept].isna().mean()
        sparse = [c for c in kept if missing_fraction[c] > config.max_missing_fraction]
    else:
        sparse = []
    dropped['sparse'] = [str(c) for c in sparse]
    kept = [c for c in kept if c not in sparse]

    features = {}
    for column in kept:
        values = data[column]
        if not pd.api.types.is_numeric_dtype(values):
            converted = pd.to_numeric(values, errors='coerce')
            if converted.notna().sum() != values.notna().sum():
                raise SchemaError(
                    f"Feature column '{column}' contains non-numeric values",
                    column=str(column),
                    stage=STAGE
                )
            values = converted
        n_missing = int(values.isna().sum())
        if n_missing > 0:
            raise SchemaError(
                f"Feature column '{column}' has {n_missing} missing values "
                f"(max_missing_fraction={config.max_missing_fraction})",
                column=str(column),
                stage=STAGE
            )
        features[column] = values.astype(float)

    dataset = pd.DataFrame(features, index=data.index)
    dataset[label] = data[label].to_numpy()

    report = PreparationReport(
        rows_in=rows_in,
        rows_out=len(dataset),
        window_rows_dropped=int(window_mask.sum()),
        unlabeled_rows_dropped=int(unlabeled.sum()),
        dropped_columns={reason: cols for reason, cols in dropped.items() if cols},
        feature_columns=[str(c) for c in kept]
    )

    logger.debug(report.summary())
    return dataset, report


def prepare(raw_rows: pd.DataFrame, config: Optional[DataConfig] = None) -> pd.DataFrame:
    """Prepare a raw dataset for modelling.

    See prepare_with_report for details; this variant returns only the
    prepared dataset.
    """
    dataset, _ = prepare_with_report(raw_rows, config)
    return dataset
