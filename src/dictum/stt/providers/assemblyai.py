"""AssemblyAI Universal provider: upload, submit a job, poll it by id."""

from __future__ import annotations

import logging
import threading
from typing import Any

from pydantic import BaseModel

from dictum.exceptions import ProviderError
from dictum.models.descriptors import Backend
from dictum.stt.providers.base import BaseRemoteProvider
from dictum.stt.providers.languages import DETECT, build_language_table

logger = logging.getLogger(__name__)

BASE_URL = "https://api.assemblyai.com/v2"
SPEECH_MODEL = "universal"


class AssemblyAIUpload(BaseModel):
    upload_url: str


class AssemblyAIJob(BaseModel):
    id: str


class AssemblyAIStatus(BaseModel):
    status: str
    text: str | None = None
    error: str | None = None


class AssemblyAIProvider(BaseRemoteProvider):
    """Universal speech model through the AssemblyAI transcript API.

    On "auto" the request sets ``language_detection`` explicitly rather than
    only omitting ``language_code``.
    """

    backend = Backend.ASSEMBLYAI
    display_name = "AssemblyAI"
    language_table = build_language_table(en="en_us")
    fallback_language = "en_us"
    poll_interval_s = 3.0

    def _transcribe(
        self,
        wav_data: bytes,
        api_key: str,
        language: str,
        cancel: threading.Event | None,
    ) -> str:
        headers = {"authorization": api_key}

        response = self._send("POST", f"{BASE_URL}/upload", "upload", headers=headers, content=wav_data)
        audio_url = self._parse(response, AssemblyAIUpload, "upload").upload_url
        logger.info(f"[AssemblyAI] Audio uploaded successfully: {audio_url}")

        request: dict[str, Any] = {"audio_url": audio_url, "speech_model": SPEECH_MODEL}
        language_code = self.map_language(language)
        if language_code == DETECT:
            request["language_detection"] = True
        else:
            request["language_code"] = language_code

        response = self._send(
            "POST",
            f"{BASE_URL}/transcript",
            "transcription request",
            headers=headers,
            json=request,
        )
        job_id = self._parse(response, AssemblyAIJob, "transcription request").id
        logger.info(f"[AssemblyAI] Transcription job submitted with ID: {job_id}")

        polling_url = f"{BASE_URL}/transcript/{job_id}"

        def check() -> str | None:
            response = self._send("GET", polling_url, "polling", headers=headers)
            status = self._parse(response, AssemblyAIStatus, "polling")
            if status.status == "completed":
                return status.text or ""
            if status.status == "error":
                message = status.error or "Unknown error"
                logger.error(f"[AssemblyAI] Transcription failed: {message}")
                raise ProviderError(f"AssemblyAI transcription failed: {message}")
            logger.debug(f"[AssemblyAI] Transcription status: {status.status}, waiting...")
            return None

        return self._poll(check, cancel)
