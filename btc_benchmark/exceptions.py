"""
Exception hierarchy for the benchmark pipeline.

Stage-level errors (data, split, alignment) are fatal for the run.
Model-level errors are caught per model and reported by the harness.
"""


class BenchmarkError(Exception):
    """Base class for all pipeline errors."""


class DataValidationError(BenchmarkError, ValueError):
    """
    Raised when a price or feature table fails a critical check.

    Covers missing required columns, empty tables and non-monotonic
    or duplicated dates. Not recoverable downstream.
    """


class InsufficientDataError(BenchmarkError, ValueError):
    """Raised when a split would leave the train or test set empty."""


class AlignmentError(BenchmarkError, ValueError):
    """
    Raised when a forecast cannot be placed on the test horizon.

    A forecast longer than the horizon means the caller built it against
    the wrong test period; it is never truncated.
    """


class ModelFitError(BenchmarkError, RuntimeError):
    """Raised when a model adapter fails to fit or forecast."""

    def __init__(self, model_name: str, message: str):
        self.model_name = model_name
        super().__init__(f"{model_name}: {message}")


class ForecastTimeoutError(ModelFitError):
    """Raised when an adapter exceeds its configured time budget."""


class ExternalArtifactMissingError(BenchmarkError, FileNotFoundError):
    """Raised when an externally trained forecast file is not present."""
