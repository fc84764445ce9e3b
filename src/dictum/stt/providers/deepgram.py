"""Deepgram Nova-3 provider: one synchronous raw-body upload."""

from __future__ import annotations

import logging
import threading

from pydantic import BaseModel, Field

from dictum.models.descriptors import Backend
from dictum.stt.providers.base import BaseRemoteProvider
from dictum.stt.providers.languages import DETECT, build_language_table

logger = logging.getLogger(__name__)

API_URL = "https://api.deepgram.com/v1/listen"
MODEL = "nova-3"


class DeepgramAlternative(BaseModel):
    transcript: str = ""


class DeepgramChannel(BaseModel):
    alternatives: list[DeepgramAlternative] = Field(default_factory=list)


class DeepgramResults(BaseModel):
    channels: list[DeepgramChannel] = Field(default_factory=list)


class DeepgramResponse(BaseModel):
    results: DeepgramResults

    def transcript(self) -> str:
        """First alternative of the first channel, or an empty string."""
        if not self.results.channels:
            return ""
        alternatives = self.results.channels[0].alternatives
        return alternatives[0].transcript if alternatives else ""


class DeepgramProvider(BaseRemoteProvider):
    """Nova-3 through the Deepgram pre-recorded listen endpoint."""

    backend = Backend.DEEPGRAM
    display_name = "Deepgram"
    language_table = build_language_table()
    fallback_language = "en"

    def _transcribe(
        self,
        wav_data: bytes,
        api_key: str,
        language: str,
        cancel: threading.Event | None,
    ) -> str:
        params = {"model": MODEL, "smart_format": "true"}
        language_code = self.map_language(language)
        if language_code == DETECT:
            params["detect_language"] = "true"
        else:
            params["language"] = language_code

        response = self._send(
            "POST",
            API_URL,
            "transcription request",
            params=params,
            headers={
                "Authorization": f"Token {api_key}",
                "Content-Type": "audio/wav",
            },
            content=wav_data,
        )
        return self._parse(response, DeepgramResponse, "transcription").transcript()
