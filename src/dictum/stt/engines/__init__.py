"""Local inference engines, selected by the catalog's engine type."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from dictum.models.descriptors import EngineType, ModelDescriptor
from dictum.stt.protocol import LocalEngine

# Type alias for engine factories
EngineFactory = Callable[[ModelDescriptor, Path], LocalEngine]


def create_engine(model: ModelDescriptor, path: Path) -> LocalEngine:
    """Initialize the engine matching a descriptor from its artifact path.

    Engine modules are imported here so their heavy dependencies load only
    when a local model is actually selected.
    """
    if model.engine_type is EngineType.WHISPER:
        from dictum.stt.engines.whisper_cpp import WhisperCppEngine

        return WhisperCppEngine(path)
    if model.engine_type is EngineType.PARAKEET:
        from dictum.stt.engines.parakeet import ParakeetEngine

        return ParakeetEngine(path, model_id=model.id)
    raise ValueError(f"Unsupported engine type: {model.engine_type}")


__all__ = ["EngineFactory", "create_engine"]
