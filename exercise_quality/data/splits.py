"""Data splitting utilities for model building and evaluation.

This module provides the stratified split used throughout the analysis and
the fixed three-way partition built from it:
- Validation (30%): carved out of the full dataset first and only touched
  for the final evaluation of every model
- Building (70%): split again into
  - Training (70% of building, ~49% overall): fits the base models
  - Testing (30% of building, ~21% overall): fits the stacking meta-model
"""

from typing import Dict, Tuple, Union

import numpy as np
import pandas as pd

from exercise_quality.core import RandomSource, canonical_classes
from exercise_quality.exceptions import InsufficientDataError, SchemaError


def stratified_split(
    dataset: pd.DataFrame,
    label_column: str,
    fraction: float,
    random_source: Union[RandomSource, int],
    part_names: Tuple[str, str] = ('part_a', 'part_b'),
    stage: str = 'split'
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Split a dataset in two, sampling each label class separately.

    Within each class, round(fraction * class_size) rows (halves rounded up)
    go to the first part and the rest to the second. Both parts keep the
    parent's row order and index labels.

    Parameters
    ----------
    dataset : pd.DataFrame
        Labelled dataset with a unique index.
    label_column : str
        Name of the label column.
    fraction : float
        Share of each class assigned to the first part, in (0, 1).
    random_source : RandomSource or int
        Source of the sampling draws, or a bare seed. The same source and
        input always give the same partition.
    part_names : tuple of str, default=('part_a', 'part_b')
        Names of the parts used in error messages.
    stage : str, default='split'
        Pipeline stage reported in errors.

    Returns
    -------
    part_a : pd.DataFrame
        First part (~fraction of rows).
    part_b : pd.DataFrame
        Second part (the remaining rows).

    Raises
    ------
    ValueError
        If fraction is not in (0, 1) or the index is not unique.
    SchemaError
        If the label column is missing.
    InsufficientDataError
        If any class would get zero rows in either part.
    """
    if not 0 < fraction < 1:
        raise ValueError(f"fraction must be in (0, 1), got {fraction}")

    if label_column not in dataset.columns:
        raise SchemaError(
            f"Label column '{label_column}' not found",
            column=label_column,
            stage=stage
        )

    if not dataset.index.is_unique:
        raise ValueError("Dataset index must be unique to partition it")

    if not isinstance(random_source, RandomSource):
        random_source = RandomSource(int(random_source))

    labels = dataset[label_column].to_numpy()
    rng = random_source.generator()
    in_first = np.zeros(len(dataset), dtype=bool)

    for cls in canonical_classes(labels):
        positions = np.flatnonzero(labels == cls)
        n_first = int(np.floor(fraction * len(positions) + 0.5))
        n_second = len(positions) - n_first

        if n_first == 0 or n_second == 0:
            empty_part = part_names[0] if n_first == 0 else part_names[1]
            raise InsufficientDataError(
                f"Class {cls!r} has {len(positions)} rows; a {fraction:.2f} split "
                f"leaves none in {empty_part}",
                label=cls,
                stage=stage
            )

        in_first[rng.permutation(positions)[:n_first]] = True

    return dataset.iloc[in_first], dataset.iloc[~in_first]


class DataSplits:
    """Manages the three-way data split for model building.

    The data is split into:
    - Training: fits the base models and standalone models
    - Testing: base-model predictions here train the stacking meta-model
    - Validation: untouched until the final evaluation of every model

    All splits are stratified on the label.
    """

    def __init__(
        self,
        data: pd.DataFrame,
        label_column: str,
        random_source: RandomSource,
        fraction: float = 0.7
    ):
        """Initialize data splits.

        Parameters
        ----------
        data : pd.DataFrame
            Prepared dataset with labels.
        label_column : str
            Name of the label column.
        random_source : RandomSource
            Source for both splits; each split uses its own child stream.
        fraction : float, default=0.7
            Share kept at each split (building from full, training from
            building).
        """
        self.label_column = label_column
        self.fraction = fraction

        # First split: building vs validation
        self.building, self.validation = stratified_split(
            data,
            label_column,
            fraction,
            random_source.child('validation_split'),
            part_names=('building', 'validation'),
            stage='split:validation'
        )

        # Second split: training vs testing, inside building
        self.training, self.testing = stratified_split(
            self.building,
            label_column,
            fraction,
            random_source.child('testing_split'),
            part_names=('training', 'testing'),
            stage='split:testing'
        )

        self.classes = canonical_classes(data[label_column])
        self._total = len(data)

    def _features_labels(self, part: pd.DataFrame) -> Tuple[pd.DataFrame, pd.Series]:
        return part.drop(columns=[self.label_column]), part[self.label_column]

    def get_training(self) -> Tuple[pd.DataFrame, pd.Series]:
        """Get training features and labels."""
        return self._features_labels(self.training)

    def get_testing(self) -> Tuple[pd.DataFrame, pd.Series]:
        """Get testing features and labels."""
        return self._features_labels(self.testing)

    def get_validation(self) -> Tuple[pd.DataFrame, pd.Series]:
        """Get validation features and labels."""
        return self._features_labels(self.validation)

    def sizes(self) -> Dict[str, int]:
        """Row counts of each part."""
        return {
            'training': len(self.training),
            'testing': len(self.testing),
            'validation': len(self.validation),
            'total': self._total
        }

    def class_counts(self) -> pd.DataFrame:
        """Per-class row counts (rows = class, columns = part)."""
        counts = {
            name: part[self.label_column].value_counts()
            for name, part in [
                ('training', self.training),
                ('testing', self.testing),
                ('validation', self.validation)
            ]
        }
        return pd.DataFrame(counts).reindex(self.classes).fillna(0).astype(int)

    def summary(self) -> str:
        """Get summary of data splits.

        Returns
        -------
        summary : str
            Human-readable summary of splits.
        """
        sizes = self.sizes()
        total = max(sizes['total'], 1)
        lines = [
            "Data Splits Summary",
            "=" * 60,
            f"Total samples: {sizes['total']:,}",
            "",
            "Split sizes:",
            f"  Training:    {sizes['training']:,} ({sizes['training']/total*100:.1f}%)",
            f"  Testing:     {sizes['testing']:,} ({sizes['testing']/total*100:.1f}%)",
            f"  Validation:  {sizes['validation']:,} ({sizes['validation']/total*100:.1f}%)",
            "",
            "Class counts:",
            self.class_counts().to_string(),
            "=" * 60
        ]
        return "\n".join(lines)
