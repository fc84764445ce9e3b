"""Mistral Voxtral provider: one synchronous multipart upload."""

from __future__ import annotations

import logging
import threading

from pydantic import BaseModel

from dictum.models.descriptors import Backend
from dictum.stt.providers.base import BaseRemoteProvider
from dictum.stt.providers.languages import DETECT, build_language_table

logger = logging.getLogger(__name__)

API_URL = "https://api.mistral.ai/v1/audio/transcriptions"
MODEL = "voxtral-mini-latest"


class MistralTranscription(BaseModel):
    text: str


class MistralProvider(BaseRemoteProvider):
    """Voxtral Mini Transcribe through the Mistral audio API."""

    backend = Backend.MISTRAL
    display_name = "Mistral"
    language_table = build_language_table()
    fallback_language = "en"

    def _transcribe(
        self,
        wav_data: bytes,
        api_key: str,
        language: str,
        cancel: threading.Event | None,
    ) -> str:
        form = {"model": MODEL}
        language_code = self.map_language(language)
        if language_code != DETECT:
            form["language"] = language_code

        response = self._send(
            "POST",
            API_URL,
            "transcription request",
            headers={"Authorization": f"Bearer {api_key}"},
            files={"file": ("audio.wav", wav_data, "audio/wav")},
            data=form,
        )
        return self._parse(response, MistralTranscription, "transcription").text
