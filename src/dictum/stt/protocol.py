"""Protocol definitions for local engines and remote providers."""

from __future__ import annotations

import threading
from typing import Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray

from .models import DecodeOptions


@runtime_checkable
class LocalEngine(Protocol):
    """In-process inference engine initialized from a model artifact.

    Engines are not required to be thread-safe; the orchestrator never runs
    two inferences at once.
    """

    def transcribe(
        self,
        samples: NDArray[np.float32],
        options: DecodeOptions,
    ) -> list[str]:
        """Run inference over a whole utterance.

        Args:
            samples: Mono float32 PCM at 16 kHz.
            options: Decoder settings.

        Returns:
            Segment texts in order.
        """
        ...

    def close(self) -> None:
        """Release the engine's resources."""
        ...


@runtime_checkable
class TranscriptionProvider(Protocol):
    """Remote transcription service."""

    def transcribe(
        self,
        samples: NDArray[np.float32],
        language: str = "auto",
        cancel: threading.Event | None = None,
    ) -> str:
        """Send audio to the service and return its transcript.

        Args:
            samples: Mono float32 PCM at 16 kHz.
            language: Application language code or "auto".
            cancel: Signal that aborts any wait between polls.

        Returns:
            Transcript text exactly as returned by the service.
        """
        ...
