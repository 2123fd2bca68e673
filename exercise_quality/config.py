"""Consolidated configuration for the exercise-quality analysis.

This module provides a type-safe, validated configuration structure using
dataclasses. All configuration parameters are consolidated here with:
- Clear documentation
- Type hints
- Validation logic
- Default values for the weight-lifting sensor dataset

The configuration is organized hierarchically:
    PipelineConfig (root)
    ├── DataConfig
    ├── PartitionConfig
    ├── Stage1Config
    │   ├── ClassifierConfig (per classifier)
    │   └── CrossValidationConfig
    ├── Stage2Config
    ├── ParallelConfig
    ├── EvaluationConfig
    ├── TrackingConfig
    └── PathsConfig

Usage:
    >>> from exercise_quality.config import PipelineConfig
    >>> config = PipelineConfig()  # Use defaults
    >>> config.validate()  # Check configuration validity

    >>> # Or customize
    >>> config = PipelineConfig(
    ...     random_state=2024,
    ...     stage1=Stage1Config(
    ...         cross_validation=CrossValidationConfig(n_folds=5)
    ...     )
    ... )
"""

from dataclasses import dataclass, field
from typing import Tuple, Dict, List, Optional, Any
from pathlib import Path

from sklearn.discriminant_analysis import LinearDiscriminantAnalysis, QuadraticDiscriminantAnalysis
from sklearn.ensemble import RandomForestClassifier
from sklearn.tree import DecisionTreeClassifier


RESAMPLING_POLICIES = ('none', 'cv')


# ==============================================================================
# DATA PREPARATION CONFIGURATION
# ==============================================================================

@dataclass
class DataConfig:
    """Raw file schema and column filtering rules.

    Attributes:
        label_column: Name of the categorical outcome column
        window_flag_column: Column marking window-summary rows
        window_summary_value: Value of window_flag_column on summary rows
        identifier_columns: Row index, subject and window columns to drop
        timestamp_marker: Substring identifying timestamp columns
        summary_prefixes: Name prefixes of window-summary statistic columns
        missing_markers: Raw strings normalized to missing at load time
        max_missing_fraction: Drop remaining columns with a larger missing
            fraction than this (0.0 drops any column with a missing value)
    """
    label_column: str = 'classe'
    window_flag_column: str = 'new_window'
    window_summary_value: str = 'yes'
    identifier_columns: List[str] = field(default_factory=lambda: [
        'X', 'Unnamed: 0', 'user_name', 'new_window', 'num_window'
    ])
    timestamp_marker: str = 'timestamp'
    summary_prefixes: Tuple[str, ...] = (
        'kurtosis_', 'skewness_', 'max_', 'min_',
        'amplitude_', 'avg_', 'var_', 'stddev_'
    )
    missing_markers: List[str] = field(default_factory=lambda: ['', 'NA', '#DIV/0!'])
    max_missing_fraction: float = 0.0

    def validate(self):
        """Validate data configuration."""
        assert self.label_column, "label_column must be non-empty"
        assert self.label_column not in self.identifier_columns, \
            "label_column cannot be an identifier column"
        assert 0 <= self.max_missing_fraction <= 1, "max_missing_fraction must be in [0, 1]"


# ==============================================================================
# PARTITIONING CONFIGURATION
# ==============================================================================

@dataclass
class PartitionConfig:
    """Stratified partitioning configuration.

    The same fraction is applied twice: once to hold out the validation set
    from the full dataset, then again to hold out the testing set from the
    remaining building set.

    Attributes:
        fraction: Share of each class kept in the first part of a split
    """
    fraction: float = 0.7

    def validate(self):
        """Validate partition configuration."""
        assert 0 < self.fraction < 1, "fraction must be in (0, 1)"


# ==============================================================================
# STAGE 1 CONFIGURATION
# ==============================================================================

@dataclass
class CrossValidationConfig:
    """k-fold cross-validation used for complexity-parameter selection.

    Attributes:
        n_folds: Number of stratified folds
        shuffle: Whether to shuffle rows before assigning folds
        n_jobs: Parallel jobs for fold evaluation (sklearn convention)
    """
    n_folds: int = 10
    shuffle: bool = True
    n_jobs: Optional[int] = None

    def validate(self):
        """Validate cross-validation configuration."""
        assert self.n_folds >= 2, "n_folds must be at least 2"


@dataclass
class ClassifierConfig:
    """Configuration for a single classifier type.

    Attributes:
        classifier_class: The sklearn classifier class
        hyperparameters: Fixed constructor arguments
        param_grid: Candidate values searched when resampling is 'cv'
        resampling: 'none' or 'cv'
        enabled: Whether this classifier is available
    """
    classifier_class: type
    hyperparameters: Dict[str, Any]
    param_grid: Optional[Dict[str, List[Any]]] = None
    resampling: str = 'none'
    enabled: bool = True

    def validate(self):
        """Validate classifier configuration."""
        assert self.resampling in RESAMPLING_POLICIES, \
            f"resampling must be one of {RESAMPLING_POLICIES}"
        if self.resampling == 'cv':
            assert self.param_grid, "cv resampling requires a non-empty param_grid"
            for name, values in self.param_grid.items():
                assert len(values) > 0, f"param_grid '{name}' has no candidate values"


@dataclass
class Stage1Config:
    """Base model configuration.

    Attributes:
        classifiers: Dict mapping classifier names to their configs
        base_classifiers: Models combined by the stacking ensemble
        standalone_classifiers: Models fit and evaluated on their own
        cross_validation: Fold settings for models using 'cv' resampling
    """
    classifiers: Dict[str, ClassifierConfig] = field(default_factory=dict)
    base_classifiers: List[str] = field(default_factory=lambda: [
        'lda', 'qda', 'decision_tree'
    ])
    standalone_classifiers: List[str] = field(default_factory=lambda: ['random_forest'])
    cross_validation: CrossValidationConfig = field(default_factory=CrossValidationConfig)

    def __post_init__(self):
        """Initialize default classifier configs if not provided."""
        if not self.classifiers:
            self.classifiers = get_default_classifier_configs()

    def validate(self):
        """Validate Stage 1 configuration."""
        assert len(self.base_classifiers) > 0, "must have at least one base classifier"
        for name in self.base_classifiers + self.standalone_classifiers:
            assert name in self.classifiers, f"Classifier '{name}' not in classifier configs"
            assert self.classifiers[name].enabled, f"Classifier '{name}' is not enabled"
            self.classifiers[name].validate()

        self.cross_validation.validate()


# ==============================================================================
# STAGE 2 CONFIGURATION
# ==============================================================================

@dataclass
class Stage2Config:
    """Stacking meta-model configuration.

    Attributes:
        meta_classifier: Classifier name used as the meta-model. Must be
            defined in Stage1Config.classifiers.
        enabled: Whether to build the stacked ensemble at all
    """
    meta_classifier: str = 'decision_tree'
    enabled: bool = True

    def validate(self):
        """Validate Stage 2 configuration."""
        assert self.meta_classifier, "meta_classifier must be non-empty"


# ==============================================================================
# PARALLEL EXECUTION CONFIGURATION
# ==============================================================================

@dataclass
class ParallelConfig:
    """Parallel model fitting configuration.

    Attributes:
        n_workers: Worker processes for independent model fits (1 = in-process)
    """
    n_workers: int = 1

    def validate(self):
        """Validate parallel configuration."""
        assert self.n_workers > 0, "n_workers must be positive"


# ==============================================================================
# EVALUATION CONFIGURATION
# ==============================================================================

@dataclass
class EvaluationConfig:
    """Reporting configuration.

    Attributes:
        top_k_importance: Number of features kept in importance rankings
    """
    top_k_importance: int = 15

    def validate(self):
        """Validate evaluation configuration."""
        assert self.top_k_importance > 0, "top_k_importance must be positive"


# ==============================================================================
# TRACKING CONFIGURATION
# ==============================================================================

@dataclass
class TrackingConfig:
    """Logging configuration.

    Attributes:
        log_level: Logging level ('DEBUG', 'INFO', 'WARNING', 'ERROR')
        log_file: Optional path of a log file written alongside the console
    """
    log_level: str = 'INFO'
    log_file: Optional[Path] = None

    def __post_init__(self):
        """Convert strings to Path objects."""
        if self.log_file:
            self.log_file = Path(self.log_file)

    def validate(self):
        """Validate tracking configuration."""
        assert self.log_level in ['DEBUG', 'INFO', 'WARNING', 'ERROR'], \
            "log_level must be DEBUG, INFO, WARNING, or ERROR"


# ==============================================================================
# PATHS CONFIGURATION
# ==============================================================================

@dataclass
class PathsConfig:
    """File paths configuration.

    Attributes:
        data_file: Raw training CSV
    """
    data_file: Path = Path('data/pml-training.csv')

    def __post_init__(self):
        """Convert strings to Path objects."""
        self.data_file = Path(self.data_file)

    def validate(self):
        """Validate paths configuration."""
        # Existence is checked at load time
        pass


# ==============================================================================
# ROOT CONFIGURATION
# ==============================================================================

@dataclass
class PipelineConfig:
    """Complete analysis configuration.

    This is the root configuration object for the whole pipeline. Create an
    instance and call validate() before use.

    Attributes:
        random_state: Seed every random draw is derived from
        data: Raw schema and filtering rules
        partition: Stratified split settings
        stage1: Base and standalone model settings
        stage2: Stacking meta-model settings
        parallel: Parallel fitting settings
        evaluation: Reporting settings
        tracking: Logging settings
        paths: File paths

    Example:
        >>> config = PipelineConfig()
        >>> config.validate()
        >>> print(f"Stacking {len(config.stage1.base_classifiers)} base models")
    """
    random_state: int = 315
    data: DataConfig = field(default_factory=DataConfig)
    partition: PartitionConfig = field(default_factory=PartitionConfig)
    stage1: Stage1Config = field(default_factory=Stage1Config)
    stage2: Stage2Config = field(default_factory=Stage2Config)
    parallel: ParallelConfig = field(default_factory=ParallelConfig)
    evaluation: EvaluationConfig = field(default_factory=EvaluationConfig)
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)

    def validate(self):
        """Validate entire configuration hierarchy.

        Raises:
            AssertionError: If any configuration parameter is invalid
        """
        self.data.validate()
        self.partition.validate()
        self.stage1.validate()
        self.stage2.validate()
        if self.stage2.enabled:
            assert self.stage2.meta_classifier in self.stage1.classifiers, \
                f"Meta classifier '{self.stage2.meta_classifier}' not in classifier configs"
            self.stage1.classifiers[self.stage2.meta_classifier].validate()
        self.parallel.validate()
        self.evaluation.validate()
        self.tracking.validate()
        self.paths.validate()

    def summary(self) -> str:
        """Generate a human-readable configuration summary.

        Returns:
            Multi-line string describing key configuration parameters
        """
        lines = [
            "Pipeline Configuration Summary",
            "=" * 50,
            f"Random State: {self.random_state}",
            f"Data file: {self.paths.data_file}",
            f"Label column: {self.data.label_column}",
            "",
            "Partitioning:",
            f"  Fraction: {self.partition.fraction}",
            "",
            "Stage 1:",
            f"  Base classifiers: {', '.join(self.stage1.base_classifiers)}",
            f"  Standalone classifiers: {', '.join(self.stage1.standalone_classifiers) or 'none'}",
            f"  CV folds: {self.stage1.cross_validation.n_folds}",
            "",
            "Stage 2:",
            f"  Stacking enabled: {self.stage2.enabled}",
            f"  Meta classifier: {self.stage2.meta_classifier}",
            "",
            "Parallel Execution:",
            f"  Workers: {self.parallel.n_workers}",
            ""
        ]
        return "\n".join(lines)


# ==============================================================================
# DEFAULT CLASSIFIER CONFIGURATIONS
# ==============================================================================

def get_default_classifier_configs() -> Dict[str, ClassifierConfig]:
    """Get default configurations for the LDA, QDA, tree and forest models.

    Returns:
        Dict mapping classifier names to ClassifierConfig objects
    """
    return {
        'lda': ClassifierConfig(
            classifier_class=LinearDiscriminantAnalysis,
            hyperparameters={'solver': 'svd'}
        ),
        'qda': ClassifierConfig(
            classifier_class=QuadraticDiscriminantAnalysis,
            hyperparameters={'reg_param': 0.0}
        ),
        'decision_tree': ClassifierConfig(
            classifier_class=DecisionTreeClassifier,
            hyperparameters={'criterion': 'gini'},
            param_grid={'ccp_alpha': [0.0, 0.0005, 0.001, 0.005, 0.01, 0.02, 0.05]},
            resampling='cv'
        ),
        'random_forest': ClassifierConfig(
            classifier_class=RandomForestClassifier,
            hyperparameters={
                'n_estimators': 200,
                'max_features': 'sqrt',
                'n_jobs': 1
            }
        )
    }
