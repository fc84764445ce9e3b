"""Whisper.cpp engine for GGML model files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import numpy as np
from numpy.typing import NDArray

from dictum.exceptions import EngineLoadError
from dictum.stt.models import DecodeOptions

logger = logging.getLogger(__name__)


class WhisperCppEngine:
    """Local engine backed by pywhispercpp.

    The model is loaded eagerly so that a broken or truncated file fails at
    load time rather than on the first dictation.
    """

    def __init__(self, model_path: str | Path, n_threads: int | None = None) -> None:
        """Load a GGML whisper model.

        Args:
            model_path: Path to the ``.bin`` model file.
            n_threads: Inference threads, or None for the library default.

        Raises:
            EngineLoadError: If pywhispercpp is missing or the model is invalid.
        """
        self._model_path = Path(model_path)
        try:
            from pywhispercpp.model import Model
        except ImportError as e:
            raise EngineLoadError(
                "pywhispercpp not installed. Install with: pip install pywhispercpp"
            ) from e

        params: dict[str, Any] = {
            "print_progress": False,
            "print_realtime": False,
            "print_timestamps": False,
        }
        if n_threads is not None:
            params["n_threads"] = n_threads

        logger.info(f"Loading whisper.cpp model: {self._model_path}")
        try:
            self._model: Any = Model(str(self._model_path), **params)
        except Exception as e:
            raise EngineLoadError(
                f"Failed to load whisper model {self._model_path.name}: {e}"
            ) from e
        logger.info("Model loaded successfully")

    def transcribe(
        self,
        samples: NDArray[np.float32],
        options: DecodeOptions,
    ) -> list[str]:
        segments = self._model.transcribe(
            np.ascontiguousarray(samples, dtype=np.float32),
            language=options.language or "auto",
            translate=options.translate,
            suppress_blank=options.suppress_blank,
            suppress_non_speech_tokens=options.suppress_non_speech_tokens,
            no_speech_thold=options.no_speech_threshold,
        )
        return [getattr(seg, "text", str(seg)) for seg in segments]

    def close(self) -> None:
        self._model = None
