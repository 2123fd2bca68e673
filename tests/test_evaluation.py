"""Unit tests for evaluation and report rendering.

This test suite validates accuracy, confusion matrices, importance ranking
and the text report.
"""

import unittest
import sys
from pathlib import Path
import numpy as np
import pandas as pd

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from exercise_quality.config import Stage1Config
from exercise_quality.core import DiversityScorer, RandomSource
from exercise_quality.evaluation import (
    EvaluationResult,
    evaluate,
    evaluate_predictions,
    labelled_confusion_matrix,
    rank_importance
)
from exercise_quality.exceptions import SchemaError
from exercise_quality.report import (
    accuracy_table,
    format_confusion_matrix,
    format_correlation_vector,
    format_importance,
    format_model_summary,
    render_report
)
from exercise_quality.stage1 import ClassifierPool


class TestEvaluatePredictions(unittest.TestCase):
    """Test metrics on known predictions."""

    def test_accuracy_and_matrix(self):
        y_true = ['A', 'A', 'B', 'C', 'C']
        y_pred = ['A', 'B', 'B', 'C', 'A']
        result = evaluate_predictions('model', y_true, y_pred)

        self.assertAlmostEqual(result.accuracy, 0.6)
        self.assertAlmostEqual(result.out_of_sample_error, 0.4)
        self.assertEqual(result.n_rows, 5)
        self.assertEqual(result.classes, ['A', 'B', 'C'])
        self.assertEqual(result.confusion_matrix.loc['A', 'B'], 1)
        self.assertEqual(result.confusion_matrix.loc['C', 'A'], 1)
        self.assertEqual(int(np.trace(result.confusion_matrix.to_numpy())), 3)
        self.assertIsNone(result.importance)

    def test_matrix_square_with_unseen_class(self):
        """Test classes never predicted still get a column."""
        matrix = labelled_confusion_matrix(['A', 'B'], ['A', 'A'], classes=['A', 'B', 'C'])

        self.assertEqual(matrix.shape, (3, 3))
        self.assertEqual(list(matrix.columns), ['A', 'B', 'C'])
        self.assertEqual(matrix.to_numpy().sum(), 2)

    def test_matrix_sums_to_rows(self):
        rng = np.random.default_rng(3)
        y_true = rng.choice(list('ABCDE'), size=500)
        y_pred = rng.choice(list('ABCDE'), size=500)
        result = evaluate_predictions('random', y_true, y_pred)

        self.assertEqual(result.confusion_matrix.to_numpy().sum(), 500)
        pd.testing.assert_series_equal(
            result.confusion_matrix.sum(axis=1),
            pd.Series(y_true).value_counts().sort_index(),
            check_names=False,
            check_index_type=False
        )

    def test_length_mismatch(self):
        with self.assertRaises(ValueError):
            evaluate_predictions('model', ['A', 'B'], ['A'])

    def test_empty(self):
        with self.assertRaises(ValueError):
            evaluate_predictions('model', [], [])

    def test_result_frozen(self):
        result = evaluate_predictions('model', ['A'], ['A'])
        with self.assertRaises(Exception):
            result.accuracy = 0.0


class TestRankImportance(unittest.TestCase):
    """Test importance ranking."""

    def test_order_and_ties(self):
        """Test descending score with ties broken by name."""
        scores = pd.Series({'roll_belt': 0.3, 'yaw_belt': 0.1, 'accel_x': 0.3, 'gyro_z': 0.0})
        ranking = rank_importance(scores)

        self.assertEqual(list(ranking.index), ['accel_x', 'roll_belt', 'yaw_belt', 'gyro_z'])
        self.assertEqual(ranking.name, 'importance')

    def test_top_k(self):
        scores = pd.Series(np.arange(20, dtype=float), index=[f'f{i:02d}' for i in range(20)])
        ranking = rank_importance(scores, top_k=5)

        self.assertEqual(list(ranking.index), ['f19', 'f18', 'f17', 'f16', 'f15'])


class TestEvaluateModel(unittest.TestCase):
    """Test evaluate() on fitted models."""

    def setUp(self):
        rng = np.random.default_rng(11)
        n = 600
        labels = np.array(list('ABC'))[np.arange(n) % 3]
        self.data = pd.DataFrame({
            'signal': (np.arange(n) % 3) * 5.0 + rng.normal(scale=0.5, size=n),
            'noise': rng.normal(size=n),
            'flat': np.zeros(n),
            'classe': labels
        })
        self.pool = ClassifierPool(Stage1Config(), RandomSource(315))
        train = self.data.iloc[:400]
        self.tree = self.pool.fit('decision_tree', train.drop(columns=['classe']), train['classe'])
        self.lda = self.pool.fit('lda', train[['signal', 'noise']], train['classe'])

    def test_tree_result(self):
        result = evaluate(self.tree, self.data.iloc[400:], 'classe', top_k=15)

        self.assertIsInstance(result, EvaluationResult)
        self.assertEqual(result.model_name, 'decision_tree')
        self.assertGreater(result.accuracy, 0.9)
        self.assertEqual(result.n_rows, 200)

    def test_zero_variance_ranks_last(self):
        """Test a constant feature ranks below informative ones."""
        result = evaluate(self.tree, self.data.iloc[400:], 'classe')
        ranking = list(result.importance.index)

        self.assertEqual(ranking[0], 'signal')
        self.assertLess(ranking.index('signal'), ranking.index('flat'))
        self.assertEqual(result.importance['flat'], 0.0)

    def test_no_importance(self):
        result = evaluate(self.lda, self.data.iloc[400:], 'classe')
        self.assertIsNone(result.importance)

    def test_canonical_classes(self):
        result = evaluate(self.tree, self.data.iloc[400:], 'classe', classes=['A', 'B', 'C', 'D'])
        self.assertEqual(result.confusion_matrix.shape, (4, 4))

    def test_missing_label(self):
        with self.assertRaises(SchemaError):
            evaluate(self.tree, self.data.drop(columns=['classe']), 'classe')


class TestReport(unittest.TestCase):
    """Test text rendering."""

    def setUp(self):
        self.results = [
            evaluate_predictions('lda', ['A', 'B', 'B'], ['A', 'B', 'A']),
            evaluate_predictions(
                'decision_tree', ['A', 'B', 'B'], ['A', 'B', 'B'],
                importance=pd.Series({'roll_belt': 0.7, 'pitch_belt': 0.3})
            )
        ]
        self.correlations = DiversityScorer().correlation_vector({
            'lda': ['A', 'B', 'A'],
            'decision_tree': ['A', 'B', 'B'],
            'constant': ['A', 'A', 'A']
        })

    def test_accuracy_table(self):
        table = accuracy_table(self.results)

        self.assertEqual(list(table.index), ['lda', 'decision_tree'])
        self.assertAlmostEqual(table.loc['decision_tree', 'out_of_sample_error'], 0.0)

    def test_confusion_matrix(self):
        text = format_confusion_matrix(self.results[0])
        self.assertIn('lda', text)
        self.assertIn('predicted', text)

    def test_importance(self):
        self.assertIn('not available', format_importance(self.results[0]))
        text = format_importance(self.results[1])
        self.assertLess(text.index('roll_belt'), text.index('pitch_belt'))

    def test_correlation_vector(self):
        text = format_correlation_vector(self.correlations)

        self.assertIn('lda~decision_tree', text)
        self.assertIn('undefined', text)
        self.assertIn('fewer than two', format_correlation_vector(None))

    def test_model_summary(self):
        class Stub:
            best_params = {'ccp_alpha': 0.01}
            fit_time_sec = 1.5
            memory_mb = 2.0
            model_hash = '0123456789abcdef'

        text = format_model_summary({'decision_tree': Stub()})
        self.assertIn('ccp_alpha=0.01', text)
        self.assertIn('fit 1.50s', text)
        self.assertIn('hash 0123456789abcdef', text)

    def test_render(self):
        report = render_report(self.results, self.correlations)

        self.assertIn('Validation Accuracy', report)
        self.assertIn('Variable importance: decision_tree', report)
        self.assertIn('Base-model prediction correlation', report)


if __name__ == '__main__':
    unittest.main()
