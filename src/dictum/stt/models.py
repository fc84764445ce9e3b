"""Data models for speech-to-text transcription."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import NDArray

from dictum.models.descriptors import Backend

if TYPE_CHECKING:
    from dictum.stt.protocol import LocalEngine

AUTO_LANGUAGE = "auto"


@dataclass
class TranscriptionRequest:
    """One utterance to transcribe."""

    samples: NDArray[np.float32]  # mono, 16 kHz
    language: str = AUTO_LANGUAGE
    translate: bool = False

    @property
    def is_empty(self) -> bool:
        return self.samples.size == 0

    @property
    def duration_s(self) -> float:
        return self.samples.size / 16000.0


@dataclass(frozen=True)
class DecodeOptions:
    """Decoder settings handed to a local engine."""

    language: str | None = None  # None = auto-detect
    translate: bool = False
    suppress_blank: bool = True
    suppress_non_speech_tokens: bool = True
    no_speech_threshold: float = 0.2

    @classmethod
    def for_request(cls, request: TranscriptionRequest) -> DecodeOptions:
        language = None if request.language == AUTO_LANGUAGE else request.language
        return cls(language=language, translate=request.translate)


# Orchestrator states. Exactly one is current at any time.


@dataclass(frozen=True)
class Unloaded:
    """No model selected."""


@dataclass(frozen=True)
class Loading:
    """A local engine is being initialized."""

    model_id: str


@dataclass(frozen=True)
class Ready:
    """A model is usable: a local engine handle, or a remote backend tag."""

    model_id: str
    backend: Backend = Backend.LOCAL
    engine: LocalEngine | None = field(default=None, compare=False)

    @property
    def is_remote(self) -> bool:
        return self.backend is not Backend.LOCAL


@dataclass(frozen=True)
class Failed:
    """The last load attempt failed and nothing else is loaded."""

    model_id: str
    reason: str


OrchestratorState = Unloaded | Loading | Ready | Failed


@dataclass
class ModelStateEvent:
    """Payload of the ``model-state-changed`` notification."""

    event_type: str  # loading_started | loading_completed | loading_failed | unloaded
    model_id: str | None = None
    model_name: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert event to dictionary."""
        return {
            "event_type": self.event_type,
            "model_id": self.model_id,
            "model_name": self.model_name,
            "error": self.error,
        }
