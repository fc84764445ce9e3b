"""Custom exceptions for Dictum."""

from __future__ import annotations


class DictumError(Exception):
    """Base exception for all Dictum errors."""


class ConfigurationError(DictumError):
    """Missing credential, no model selected, or invalid settings."""


class NotFoundError(DictumError):
    """Unknown model id."""


class StateError(DictumError):
    """Operation not valid in the current model or engine state."""


class FilesystemError(DictumError):
    """I/O failure while mutating the models directory."""


class ExtractionError(FilesystemError):
    """Archive could not be unpacked into a model directory."""


class TranscriptionError(DictumError):
    """Local inference failed for a single request."""


class OperationCancelledError(DictumError):
    """A long-running operation was stopped through its cancel signal."""


class TransportError(DictumError):
    """Network failure or non-2xx HTTP response."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class PollingTimeoutError(TransportError):
    """A provider job did not finish within the configured polling bound."""


class SchemaError(DictumError):
    """Response body did not match the expected shape."""

    def __init__(self, message: str, raw_body: str = "") -> None:
        super().__init__(message)
        self.raw_body = raw_body


class ProviderError(DictumError):
    """Remote provider reported an explicit failure status."""


class EngineLoadError(DictumError):
    """A local inference engine could not be initialized from its artifact."""
