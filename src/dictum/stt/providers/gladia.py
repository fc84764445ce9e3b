"""Gladia Whisper-Zero provider: upload, submit a job, poll its result URL."""

from __future__ import annotations

import logging
import threading
from typing import Any

from pydantic import BaseModel, ValidationError

from dictum.models.descriptors import Backend
from dictum.stt.providers.base import BaseRemoteProvider
from dictum.stt.providers.languages import DETECT, build_language_table

logger = logging.getLogger(__name__)

BASE_URL = "https://api.gladia.io/v2"


class GladiaUpload(BaseModel):
    audio_url: str


class GladiaJob(BaseModel):
    id: str
    result_url: str


class GladiaTranscription(BaseModel):
    full_transcript: str | None = None


class GladiaResult(BaseModel):
    transcription: GladiaTranscription


class GladiaResultResponse(BaseModel):
    result: GladiaResult


class GladiaProvider(BaseRemoteProvider):
    """Whisper-Zero through the Gladia pre-recorded API.

    The result URL reports no usable terminal status, so a job counts as
    done as soon as the body carries ``result.transcription.full_transcript``.
    """

    backend = Backend.GLADIA
    display_name = "Gladia"
    language_table = build_language_table()
    fallback_language = "en"
    poll_interval_s = 2.0

    def _transcribe(
        self,
        wav_data: bytes,
        api_key: str,
        language: str,
        cancel: threading.Event | None,
    ) -> str:
        headers = {"x-gladia-key": api_key}

        response = self._send(
            "POST",
            f"{BASE_URL}/upload",
            "upload",
            headers=headers,
            files={"audio": ("audio.wav", wav_data, "audio/wav")},
        )
        audio_url = self._parse(response, GladiaUpload, "upload").audio_url
        logger.info(f"[Gladia] Audio uploaded successfully: {audio_url}")

        language_code = self.map_language(language)
        request: dict[str, Any] = {
            "audio_url": audio_url,
            "detect_language": language_code == DETECT,
        }
        if language_code != DETECT:
            request["language"] = language_code

        response = self._send(
            "POST",
            f"{BASE_URL}/pre-recorded",
            "transcription request",
            headers=headers,
            json=request,
        )
        job = self._parse(response, GladiaJob, "transcription request")
        logger.info(f"[Gladia] Transcription job submitted with ID: {job.id}")

        def check() -> str | None:
            response = self._send("GET", job.result_url, "polling", headers=headers)
            try:
                result = GladiaResultResponse.model_validate_json(response.text)
            except ValidationError:
                return None
            return result.result.transcription.full_transcript

        return self._poll(check, cancel)
