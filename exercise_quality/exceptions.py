"""Error taxonomy for the analysis pipeline.

Every error carries the pipeline stage that raised it so a failed run can
report where it stopped. Failures inside scikit-learn (for example a
singular covariance matrix in QDA) are not wrapped and propagate unchanged.
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for pipeline failures.

    Parameters
    ----------
    message : str
        Human-readable description.
    stage : str, optional
        Pipeline stage that raised the error (e.g. 'prepare', 'split').
    """

    def __init__(self, message: str, stage: Optional[str] = None):
        self.stage = stage
        if stage:
            message = f"[{stage}] {message}"
        super().__init__(message)

    def __reduce__(self):
        # Keep stage and context attributes across process boundaries
        return (_restore_error, (type(self), self.args, self.__dict__))


class SchemaError(PipelineError):
    """An expected column is missing or has an unusable type."""

    def __init__(self, message: str, column: Optional[str] = None, stage: Optional[str] = None):
        self.column = column
        super().__init__(message, stage=stage)


class InsufficientDataError(PipelineError):
    """A label class ends up with zero rows in one part of a split."""

    def __init__(self, message: str, label=None, stage: Optional[str] = None):
        self.label = label
        super().__init__(message, stage=stage)


class FitError(PipelineError):
    """Training input is degenerate for the requested fitting procedure."""

    def __init__(self, message: str, model_name: Optional[str] = None, stage: Optional[str] = None):
        self.model_name = model_name
        super().__init__(message, stage=stage)


def _restore_error(cls, args, state):
    error = Exception.__new__(cls)
    error.args = args
    error.__dict__.update(state)
    return error
