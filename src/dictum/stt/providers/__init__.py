"""Remote transcription providers."""

from dictum.stt.providers.assemblyai import AssemblyAIProvider
from dictum.stt.providers.base import BaseRemoteProvider
from dictum.stt.providers.deepgram import DeepgramProvider
from dictum.stt.providers.gladia import GladiaProvider
from dictum.stt.providers.mistral import MistralProvider

__all__ = [
    "AssemblyAIProvider",
    "BaseRemoteProvider",
    "DeepgramProvider",
    "GladiaProvider",
    "MistralProvider",
]
