"""Unit tests for configuration module.

This test suite validates configuration dataclasses and validation logic.
"""

import unittest
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sklearn.tree import DecisionTreeClassifier

from exercise_quality.config import (
    PipelineConfig,
    DataConfig,
    PartitionConfig,
    CrossValidationConfig,
    ClassifierConfig,
    Stage1Config,
    Stage2Config,
    ParallelConfig,
    EvaluationConfig,
    TrackingConfig,
    PathsConfig,
    get_default_classifier_configs
)


class TestDataConfig(unittest.TestCase):
    """Test DataConfig."""

    def test_defaults(self):
        """Test default schema rules."""
        config = DataConfig()

        self.assertEqual(config.label_column, 'classe')
        self.assertEqual(config.window_flag_column, 'new_window')
        self.assertEqual(config.window_summary_value, 'yes')
        self.assertIn('user_name', config.identifier_columns)
        self.assertIn('#DIV/0!', config.missing_markers)
        self.assertIn('kurtosis_', config.summary_prefixes)
        config.validate()

    def test_invalid_missing_fraction(self):
        """Test that an out-of-range missing fraction fails."""
        config = DataConfig(max_missing_fraction=1.5)
        with self.assertRaises(AssertionError):
            config.validate()

    def test_label_cannot_be_identifier(self):
        """Test that the label cannot also be dropped as an identifier."""
        config = DataConfig(label_column='user_name')
        with self.assertRaises(AssertionError):
            config.validate()


class TestPartitionConfig(unittest.TestCase):
    """Test PartitionConfig."""

    def test_default_fraction(self):
        self.assertEqual(PartitionConfig().fraction, 0.7)

    def test_invalid_fraction(self):
        """Test that fractions outside (0, 1) fail."""
        for fraction in [0.0, 1.0, -0.2, 1.3]:
            with self.assertRaises(AssertionError):
                PartitionConfig(fraction=fraction).validate()


class TestStage1Config(unittest.TestCase):
    """Test Stage1Config."""

    def test_default_classifiers(self):
        """Test that default classifiers are loaded."""
        config = Stage1Config()

        self.assertEqual(config.base_classifiers, ['lda', 'qda', 'decision_tree'])
        self.assertEqual(config.standalone_classifiers, ['random_forest'])
        for name in config.base_classifiers + config.standalone_classifiers:
            self.assertIn(name, config.classifiers)

    def test_tree_uses_cv(self):
        """Test that only the decision tree is tuned by cross-validation."""
        configs = get_default_classifier_configs()

        self.assertEqual(configs['decision_tree'].resampling, 'cv')
        self.assertIn('ccp_alpha', configs['decision_tree'].param_grid)
        self.assertEqual(configs['lda'].resampling, 'none')
        self.assertEqual(configs['random_forest'].resampling, 'none')

    def test_validation_unknown_classifier(self):
        """Test that unknown base classifiers fail validation."""
        config = Stage1Config(base_classifiers=['lda', 'svm'])
        with self.assertRaises(AssertionError):
            config.validate()

    def test_validation_empty_base(self):
        config = Stage1Config(base_classifiers=[])
        with self.assertRaises(AssertionError):
            config.validate()

    def test_cv_without_grid(self):
        """Test that cv resampling needs a grid."""
        config = ClassifierConfig(
            classifier_class=DecisionTreeClassifier,
            hyperparameters={},
            resampling='cv'
        )
        with self.assertRaises(AssertionError):
            config.validate()

    def test_unknown_resampling(self):
        config = ClassifierConfig(
            classifier_class=DecisionTreeClassifier,
            hyperparameters={},
            resampling='bootstrap'
        )
        with self.assertRaises(AssertionError):
            config.validate()

    def test_folds(self):
        """Test fold count validation."""
        CrossValidationConfig(n_folds=2).validate()
        with self.assertRaises(AssertionError):
            CrossValidationConfig(n_folds=1).validate()


class TestOtherConfigs(unittest.TestCase):
    """Test the smaller configuration sections."""

    def test_stage2_defaults(self):
        config = Stage2Config()
        self.assertEqual(config.meta_classifier, 'decision_tree')
        self.assertTrue(config.enabled)

    def test_parallel(self):
        ParallelConfig(n_workers=4).validate()
        with self.assertRaises(AssertionError):
            ParallelConfig(n_workers=0).validate()

    def test_evaluation(self):
        self.assertEqual(EvaluationConfig().top_k_importance, 15)
        with self.assertRaises(AssertionError):
            EvaluationConfig(top_k_importance=0).validate()

    def test_tracking(self):
        """Test log level validation and path conversion."""
        config = TrackingConfig(log_file='logs/run.log')
        self.assertIsInstance(config.log_file, Path)

        with self.assertRaises(AssertionError):
            TrackingConfig(log_level='VERBOSE').validate()

    def test_paths(self):
        """Test string to Path conversion."""
        config = PathsConfig(data_file='some/file.csv')
        self.assertIsInstance(config.data_file, Path)


class TestPipelineConfig(unittest.TestCase):
    """Test root PipelineConfig."""

    def test_defaults(self):
        """Test default configuration."""
        config = PipelineConfig()

        self.assertEqual(config.random_state, 315)
        self.assertEqual(config.stage1.cross_validation.n_folds, 10)
        config.validate()

    def test_custom(self):
        """Test custom configuration."""
        config = PipelineConfig(
            random_state=2024,
            stage1=Stage1Config(cross_validation=CrossValidationConfig(n_folds=5))
        )

        self.assertEqual(config.random_state, 2024)
        self.assertEqual(config.stage1.cross_validation.n_folds, 5)
        config.validate()

    def test_unknown_meta_classifier(self):
        """Test that the meta classifier must be configured."""
        config = PipelineConfig(stage2=Stage2Config(meta_classifier='xgboost'))
        with self.assertRaises(AssertionError):
            config.validate()

    def test_disabled_stacking_skips_meta_check(self):
        config = PipelineConfig(stage2=Stage2Config(meta_classifier='xgboost', enabled=False))
        config.validate()

    def test_summary(self):
        """Test summary generation."""
        summary = PipelineConfig().summary()

        self.assertIsInstance(summary, str)
        self.assertIn('Random State: 315', summary)
        self.assertIn('lda, qda, decision_tree', summary)
        self.assertIn('random_forest', summary)


if __name__ == '__main__':
    unittest.main()
