"""Speech-to-text transcription module.

This module routes dictation audio to the active model:
- Local engines (whisper.cpp, Parakeet) initialized from downloaded artifacts
- Remote providers (Mistral, Deepgram, AssemblyAI, Gladia)
- Custom vocabulary correction of local transcripts
"""

from dictum.stt.correction import correct, levenshtein, soundex
from dictum.stt.engines import create_engine
from dictum.stt.models import (
    DecodeOptions,
    Failed,
    Loading,
    ModelStateEvent,
    OrchestratorState,
    Ready,
    TranscriptionRequest,
    Unloaded,
)
from dictum.stt.orchestrator import TranscriptionOrchestrator
from dictum.stt.protocol import LocalEngine, TranscriptionProvider
from dictum.stt.registry import get_provider, get_registered_providers

__all__ = [
    # Protocols
    "LocalEngine",
    "TranscriptionProvider",
    # Models
    "DecodeOptions",
    "Failed",
    "Loading",
    "ModelStateEvent",
    "OrchestratorState",
    "Ready",
    "TranscriptionRequest",
    "Unloaded",
    # Functions
    "correct",
    "create_engine",
    "get_provider",
    "get_registered_providers",
    "levenshtein",
    "soundex",
    # Orchestrator
    "TranscriptionOrchestrator",
]
