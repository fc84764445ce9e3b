"""Base class for remote transcription providers with common utilities."""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

import httpx
import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ValidationError

from dictum.audio import as_float_samples, float_to_wav
from dictum.exceptions import (
    ConfigurationError,
    OperationCancelledError,
    PollingTimeoutError,
    SchemaError,
    TransportError,
)
from dictum.models.descriptors import Backend
from dictum.stt.providers.languages import map_language

if TYPE_CHECKING:
    from dictum.config import ProvidersConfig

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)
ResultT = TypeVar("ResultT")

DEFAULT_TIMEOUT_S = 60.0


class BaseRemoteProvider(ABC):
    """Encodes audio as WAV, calls a remote service and returns its text.

    Subclasses implement ``_transcribe`` with the provider's protocol and use
    the helpers here for requests, response validation and polling, so every
    provider shares the same failure surface:

    - missing credential: ConfigurationError, before any request
    - network failure or non-2xx: TransportError with status and body
    - unexpected response shape: SchemaError with the raw body
    """

    backend: ClassVar[Backend]
    display_name: ClassVar[str]
    language_table: ClassVar[dict[str, str]] = {}
    fallback_language: ClassVar[str] = "en"
    poll_interval_s: ClassVar[float] = 0.0

    def __init__(
        self,
        api_key: str | None,
        client: httpx.Client | None = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        poll_interval_s: float | None = None,
        poll_timeout_s: float | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            api_key: Provider credential, or None when not configured.
            client: HTTP client to share across requests. When omitted, one
                is created here and released by ``close()``.
            timeout_s: Per-request timeout when a client is created here.
            poll_interval_s: Override for the provider's polling interval.
            poll_timeout_s: Give up polling after this many seconds.
                None polls until the job finishes.
        """
        self._api_key = api_key or None
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout_s))
        self._poll_interval_s = (
            self.poll_interval_s if poll_interval_s is None else poll_interval_s
        )
        self._poll_timeout_s = poll_timeout_s

    @classmethod
    def from_settings(
        cls,
        config: ProvidersConfig,
        client: httpx.Client | None = None,
    ) -> BaseRemoteProvider:
        """Create a provider from the ``providers`` settings section."""
        return cls(
            api_key=config.credential_for(cls.backend.value),
            client=client,
            timeout_s=config.request_timeout_s,
            poll_timeout_s=config.poll_timeout_s,
        )

    def close(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client:
            self._client.close()

    @property
    def has_credential(self) -> bool:
        return self._api_key is not None

    def map_language(self, language: str) -> str:
        """Translate an application language code to this provider's vocabulary."""
        return map_language(language, self.language_table, self.fallback_language)

    def transcribe(
        self,
        samples: NDArray[np.float32],
        language: str = "auto",
        cancel: threading.Event | None = None,
    ) -> str:
        """Transcribe audio with the remote service.

        Args:
            samples: Mono float32 PCM at 16 kHz.
            language: Application language code or "auto".
            cancel: Signal that aborts polling waits.

        Returns:
            Transcript text as returned by the service.
        """
        api_key = self._require_api_key()
        audio = as_float_samples(samples)
        logger.info(f"[{self.display_name}] Starting transcription with {audio.size} audio samples")

        wav_data = float_to_wav(audio)
        logger.debug(f"[{self.display_name}] WAV data created: {len(wav_data)} bytes")

        text = self._transcribe(wav_data, api_key, language, cancel)
        logger.info(f"[{self.display_name}] Transcription successful ({len(text)} chars)")
        return text

    @abstractmethod
    def _transcribe(
        self,
        wav_data: bytes,
        api_key: str,
        language: str,
        cancel: threading.Event | None,
    ) -> str:
        """Run the provider protocol over an encoded WAV buffer."""
        ...

    def _require_api_key(self) -> str:
        if self._api_key is None:
            logger.error(f"[{self.display_name}] API key not set in settings")
            raise ConfigurationError(f"{self.display_name} API key not set")
        return self._api_key

    def _send(self, method: str, url: str, step: str, **kwargs: Any) -> httpx.Response:
        """Issue a request and fail on transport errors or non-2xx statuses."""
        logger.debug(f"[{self.display_name}] {step}: {method} {url}")
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"[{self.display_name}] {step} failed: {e}")
            raise TransportError(f"{self.display_name} {step} failed: {e}") from e

        if not response.is_success:
            body = response.text
            logger.error(
                f"[{self.display_name}] {step} failed with status {response.status_code}: {body}"
            )
            raise TransportError(
                f"{self.display_name} {step} failed with status {response.status_code}: {body}",
                status=response.status_code,
                body=body,
            )
        return response

    def _parse(self, response: httpx.Response, schema: type[SchemaT], step: str) -> SchemaT:
        """Validate a JSON response body against a schema."""
        raw = response.text
        try:
            return schema.model_validate_json(raw)
        except ValidationError as e:
            logger.error(f"[{self.display_name}] Failed to parse {step} response: {raw}")
            raise SchemaError(
                f"Failed to parse {self.display_name} {step} response: {e}",
                raw_body=raw,
            ) from e

    def _poll(
        self,
        check: Callable[[], ResultT | None],
        cancel: threading.Event | None,
    ) -> ResultT:
        """Call check every poll interval until it returns a result.

        Transport and schema failures of a single attempt are logged and
        retried. Other exceptions from check (such as ProviderError) end the
        loop.

        Raises:
            OperationCancelledError: If cancel is set.
            PollingTimeoutError: If the poll timeout elapses first.
        """
        deadline = None
        if self._poll_timeout_s is not None:
            deadline = time.monotonic() + self._poll_timeout_s

        attempt = 0
        while True:
            if cancel is not None and cancel.is_set():
                raise OperationCancelledError(f"{self.display_name} transcription cancelled")

            attempt += 1
            try:
                result = check()
            except (TransportError, SchemaError) as e:
                logger.warning(f"[{self.display_name}] Poll attempt {attempt} failed, retrying: {e}")
                result = None

            if result is not None:
                return result

            if deadline is not None and time.monotonic() + self._poll_interval_s > deadline:
                raise PollingTimeoutError(
                    f"{self.display_name} job did not finish within {self._poll_timeout_s}s"
                )

            logger.debug(f"[{self.display_name}] Transcription still processing, waiting...")
            if cancel is not None:
                if cancel.wait(self._poll_interval_s):
                    raise OperationCancelledError(f"{self.display_name} transcription cancelled")
            else:
                time.sleep(self._poll_interval_s)
