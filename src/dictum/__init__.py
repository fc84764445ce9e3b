"""Dictum - dictation backend: model lifecycle and transcription routing."""

from dictum.config import Settings, get_settings
from dictum.events import EventSink, LoggingEventSink, NullEventSink
from dictum.exceptions import (
    ConfigurationError,
    DictumError,
    FilesystemError,
    NotFoundError,
    ProviderError,
    SchemaError,
    StateError,
    TransportError,
)
from dictum.models import ModelCatalog, ModelDescriptor

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "DictumError",
    "EventSink",
    "FilesystemError",
    "LoggingEventSink",
    "ModelCatalog",
    "ModelDescriptor",
    "NotFoundError",
    "NullEventSink",
    "ProviderError",
    "SchemaError",
    "Settings",
    "StateError",
    "TransportError",
    "get_settings",
]


# Lazy imports for STT module to avoid loading inference dependencies
def __getattr__(name: str):
    """Lazy import for STT components."""
    if name == "stt":
        from dictum import stt

        return stt
    if name == "TranscriptionOrchestrator":
        from dictum.stt.orchestrator import TranscriptionOrchestrator

        return TranscriptionOrchestrator
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
