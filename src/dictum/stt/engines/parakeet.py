"""NVIDIA Parakeet engine for ONNX model directories."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import numpy as np
from numpy.typing import NDArray

from dictum.audio import SAMPLE_RATE
from dictum.exceptions import EngineLoadError
from dictum.stt.models import DecodeOptions

logger = logging.getLogger(__name__)

# onnx-asr model names, keyed by catalog id
ONNX_ASR_MODELS = {
    "parakeet-tdt-0.6b-v2": "nemo-parakeet-tdt-0.6b-v2",
    "parakeet-tdt-0.6b-v3": "nemo-parakeet-tdt-0.6b-v3",
}
DEFAULT_ONNX_ASR_MODEL = "nemo-parakeet-tdt-0.6b-v3"


class ParakeetEngine:
    """Local engine backed by onnx-asr.

    Parakeet models pick their language themselves and cannot translate, so
    those decode options are ignored.
    """

    def __init__(self, model_dir: str | Path, model_id: str = "") -> None:
        """Load a Parakeet model from an extracted directory.

        Args:
            model_dir: Directory holding the ONNX encoder/decoder and vocabulary.
            model_id: Catalog id, used to pick the onnx-asr model type.

        Raises:
            EngineLoadError: If onnx-asr is missing or the directory is invalid.
        """
        self._model_dir = Path(model_dir)
        try:
            import onnx_asr
        except ImportError as e:
            raise EngineLoadError(
                "onnx-asr not installed. Install with: pip install onnx-asr"
            ) from e

        model_name = ONNX_ASR_MODELS.get(model_id, DEFAULT_ONNX_ASR_MODEL)
        logger.info(f"Loading Parakeet model {model_name} from {self._model_dir}")
        try:
            self._model: Any = onnx_asr.load_model(model_name, str(self._model_dir))
        except Exception as e:
            raise EngineLoadError(f"Failed to load Parakeet model {model_id}: {e}") from e
        logger.info("Model loaded successfully")

    def transcribe(
        self,
        samples: NDArray[np.float32],
        options: DecodeOptions,
    ) -> list[str]:
        if options.translate:
            logger.debug("Parakeet does not translate, returning source language text")
        text = self._model.recognize(samples, sample_rate=SAMPLE_RATE)
        return [text] if text else []

    def close(self) -> None:
        self._model = None
