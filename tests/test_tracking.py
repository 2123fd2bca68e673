"""Unit tests for tracking modules.

This test suite validates logger setup and the structured log helpers.
"""

import unittest
import sys
import tempfile
import logging
import pickle
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from exercise_quality.exceptions import FitError, InsufficientDataError, PipelineError, SchemaError
from exercise_quality.tracking import (
    setup_logger,
    log_phase_start,
    log_phase_end,
    log_training_progress,
    log_performance_metrics,
    log_error,
    log_warning,
    log_success
)


class TestLogger(unittest.TestCase):
    """Test logger functionality."""

    def test_logger_setup(self):
        """Test logger setup."""
        logger = setup_logger(name='test_logger', level=logging.INFO)

        self.assertIsNotNone(logger)
        self.assertEqual(logger.level, logging.INFO)

    def test_level_name(self):
        """Test string log levels are accepted."""
        logger = setup_logger(name='test_logger_level', level='DEBUG')
        self.assertEqual(logger.level, logging.DEBUG)

    def test_no_duplicate_handlers(self):
        """Test that calling setup_logger twice doesn't duplicate handlers."""
        logger1 = setup_logger(name='test_logger2', level=logging.INFO)
        handler_count1 = len(logger1.handlers)

        logger2 = setup_logger(name='test_logger2', level=logging.INFO)
        handler_count2 = len(logger2.handlers)

        self.assertEqual(handler_count1, handler_count2)

    def test_log_file(self):
        """Test messages are written to the log file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = Path(tmpdir) / 'logs' / 'run.log'
            logger = setup_logger(name='test_logger_file', level=logging.INFO, log_file=log_file)
            logger.info('fitted lda')

            for handler in logger.handlers:
                handler.flush()
            content = log_file.read_text()

            for handler in list(logger.handlers):
                handler.close()
            logger.handlers.clear()

        self.assertIn('INFO: fitted lda', content)

    def test_package_loggers_propagate(self):
        """Test module loggers reach the package logger's handlers."""
        setup_logger(level=logging.INFO)
        module_logger = logging.getLogger('exercise_quality.pipeline')

        with self.assertLogs('exercise_quality', level='INFO') as ctx:
            module_logger.info('partitioning')

        self.assertIn('partitioning', ctx.output[0])


class TestLogHelpers(unittest.TestCase):
    """Test structured log helpers."""

    def setUp(self):
        self.logger = logging.getLogger('test_helpers')
        self.logger.setLevel(logging.INFO)

    def test_phase(self):
        with self.assertLogs(self.logger, level='INFO') as ctx:
            log_phase_start(self.logger, 'Partitioning', 'fraction 0.7')
            log_phase_end(self.logger, 'Partitioning', 1.5)

        output = '\n'.join(ctx.output)
        self.assertIn('PARTITIONING', output)
        self.assertIn('fraction 0.7', output)
        self.assertIn('PARTITIONING COMPLETE (1.5s)', output)

    def test_progress(self):
        with self.assertLogs(self.logger, level='INFO') as ctx:
            log_training_progress(self.logger, 1, 4, message='Models fitted')
        self.assertIn('Models fitted: 1/4 (25.0%)', ctx.output[0])

    def test_metrics(self):
        with self.assertLogs(self.logger, level='INFO') as ctx:
            log_performance_metrics(self.logger, {'accuracy': 0.5, 'rows': 10}, prefix='lda')

        output = '\n'.join(ctx.output)
        self.assertIn('lda:', output)
        self.assertIn('accuracy: 0.500000', output)
        self.assertIn('rows: 10', output)

    def test_error_warning_success(self):
        with self.assertLogs(self.logger, level='INFO') as ctx:
            log_error(self.logger, SchemaError('missing', column='classe', stage='prepare'), context='run')
            log_warning(self.logger, 'sparse column')
            log_success(self.logger, 'done')

        self.assertIn('ERROR', ctx.output[0])
        self.assertIn('Error in run: SchemaError: [prepare] missing', ctx.output[0])
        self.assertIn('WARNING', ctx.output[1])
        self.assertIn('done', ctx.output[2])


class TestExceptions(unittest.TestCase):
    """Test the error taxonomy."""

    def test_hierarchy(self):
        for error_class in [SchemaError, InsufficientDataError, FitError]:
            self.assertTrue(issubclass(error_class, PipelineError))

    def test_stage_prefix(self):
        error = InsufficientDataError('no rows', label='E', stage='split:validation')

        self.assertEqual(str(error), '[split:validation] no rows')
        self.assertEqual(error.stage, 'split:validation')
        self.assertEqual(error.label, 'E')

    def test_pickle(self):
        """Test attributes survive a round trip through a worker process."""
        error = pickle.loads(pickle.dumps(FitError('too few rows', model_name='decision_tree', stage='fit')))

        self.assertIsInstance(error, FitError)
        self.assertEqual(str(error), '[fit] too few rows')
        self.assertEqual(error.model_name, 'decision_tree')
        self.assertEqual(error.stage, 'fit')


if __name__ == '__main__':
    unittest.main()
