"""Error taxonomy shared by the pipeline stages and the HTTP layer."""

from __future__ import annotations


class PipelineError(Exception):
    """Base class. ``details`` carries best-effort diagnostic text."""

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ValidationError(PipelineError):
    """Missing or invalid request field."""


class NotFoundError(PipelineError):
    """Referenced upload or result file does not exist."""


class ConfigurationError(PipelineError):
    pass


class ConversionError(PipelineError):
    pass


class ProbeError(PipelineError):
    pass


class TranscriptionError(PipelineError):
    pass


class DiarizationError(PipelineError):
    pass


class DiarizationSubmitError(DiarizationError):
    pass


class DiarizationFailedError(DiarizationError):
    pass


class DiarizationTimeoutError(DiarizationError):
    pass


class AnalysisError(PipelineError):
    pass
