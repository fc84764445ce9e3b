"""Transcription orchestrator: model state machine and request routing."""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING

import httpx
import numpy as np
from numpy.typing import ArrayLike

from dictum.audio import as_float_samples
from dictum.config import Settings, get_settings
from dictum.events import MODEL_STATE_CHANGED, EventSink, emit
from dictum.exceptions import (
    ConfigurationError,
    DictumError,
    EngineLoadError,
    StateError,
    TranscriptionError,
)
from dictum.models.descriptors import Backend
from dictum.stt.correction import correct
from dictum.stt.engines import EngineFactory, create_engine
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
from dictum.stt.registry import get_provider

if TYPE_CHECKING:
    from dictum.models.catalog import ModelCatalog
    from dictum.stt.protocol import LocalEngine

logger = logging.getLogger(__name__)


class TranscriptionOrchestrator:
    """Owns the active model and routes audio to it.

    State machine: ``Unloaded -> Loading(id) -> Ready(id) | Failed(id)``.
    A failed load restores whatever was ready before, so a bad reload never
    evicts a working engine. Local inference is serialized: concurrent
    callers wait for the running inference to finish.

    ``load()`` and ``transcribe()`` must not be called concurrently with
    each other; callers serialize them.
    """

    def __init__(
        self,
        catalog: ModelCatalog,
        settings: Settings | None = None,
        events: EventSink | None = None,
        engine_factory: EngineFactory = create_engine,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the orchestrator in the Unloaded state.

        Args:
            catalog: Model catalog used for lookups and path resolution.
            settings: Live settings, read on every call. Defaults to the
                process-wide settings.
            events: Sink for ``model-state-changed`` notifications.
            engine_factory: Builds a local engine from a descriptor and path.
            client: HTTP client shared by remote providers. When omitted,
                one is created on the first remote call and released by
                ``close()``.
        """
        self._catalog = catalog
        self._settings = settings if settings is not None else get_settings()
        self._events = events
        self._engine_factory = engine_factory
        self._client = client
        self._owns_client = client is None
        self._client_lock = threading.Lock()
        self._state: OrchestratorState = Unloaded()
        self._state_lock = threading.Lock()
        self._inference_lock = threading.Lock()

    @property
    def state(self) -> OrchestratorState:
        with self._state_lock:
            return self._state

    @property
    def current_model(self) -> str | None:
        """Id of the ready model, or None."""
        state = self.state
        return state.model_id if isinstance(state, Ready) else None

    def _emit_state(self, event: ModelStateEvent) -> None:
        emit(self._events, MODEL_STATE_CHANGED, event.to_dict())

    def _swap(self, new_state: OrchestratorState) -> OrchestratorState:
        with self._state_lock:
            previous = self._state
            self._state = new_state
        return previous

    @staticmethod
    def _retire(previous: OrchestratorState, keep: LocalEngine | None = None) -> None:
        if isinstance(previous, Ready) and previous.engine is not None and previous.engine is not keep:
            try:
                previous.engine.close()
            except Exception as e:
                logger.warning(f"Failed to release engine for {previous.model_id}: {e}")

    # -- loading ----------------------------------------------------------

    def load(self, model_id: str) -> None:
        """Make a model the active one.

        Remote models become ready immediately. Local models must be fully
        downloaded; their engine is initialized from the artifact path.

        Raises:
            NotFoundError: If the id is unknown.
            StateError: If the local artifact is not downloaded.
            EngineLoadError: If the engine cannot be initialized.
        """
        logger.info(f"Loading model: {model_id}")
        model = self._catalog.get(model_id)

        if model.is_remote:
            previous = self._swap(Ready(model_id=model_id, backend=model.backend))
            self._retire(previous)
            logger.info(f"Selected {model.name}, no local engine needed")
            self._emit_state(
                ModelStateEvent("loading_completed", model_id=model_id, model_name=model.name)
            )
            return

        self._emit_state(ModelStateEvent("loading_started", model_id=model_id))
        previous = self._swap(Loading(model_id))

        try:
            if not model.downloaded:
                raise StateError("Model not downloaded")
            path = self._catalog.resolve_path(model_id)
            logger.info(f"Loading transcription model {model_id} from: {path}")
            engine = self._engine_factory(model, path)
        except Exception as e:
            error_msg = str(e)
            restored: OrchestratorState = (
                previous if isinstance(previous, Ready) else Failed(model_id, error_msg)
            )
            self._swap(restored)
            logger.error(f"Failed to load model {model_id}: {error_msg}")
            self._emit_state(
                ModelStateEvent(
                    "loading_failed",
                    model_id=model_id,
                    model_name=model.name,
                    error=error_msg,
                )
            )
            if isinstance(e, DictumError):
                raise
            raise EngineLoadError(f"Failed to load model {model_id}: {e}") from e

        self._swap(Ready(model_id=model_id, backend=Backend.LOCAL, engine=engine))
        self._retire(previous, keep=engine)
        logger.info(f"Successfully loaded transcription model: {model_id}")
        self._emit_state(
            ModelStateEvent("loading_completed", model_id=model_id, model_name=model.name)
        )

    def load_selected(self) -> None:
        """Load the model chosen in settings.

        Raises:
            ConfigurationError: If no model is selected.
        """
        model_id = self._settings.transcription.selected_model
        if not model_id:
            raise ConfigurationError("No model selected")
        self.load(model_id)

    def unload(self) -> None:
        """Release the active model and return to Unloaded."""
        previous = self._swap(Unloaded())
        self._retire(previous)
        model_id = previous.model_id if isinstance(previous, Ready) else None
        logger.info(f"Unloaded model: {model_id}")
        self._emit_state(ModelStateEvent("unloaded", model_id=model_id))

    def close(self) -> None:
        """Unload the active model and release the remote HTTP client."""
        self.unload()
        with self._client_lock:
            if self._owns_client and self._client is not None:
                self._client.close()
                self._client = None

    def _http_client(self) -> httpx.Client:
        with self._client_lock:
            if self._client is None:
                timeout = self._settings.providers.request_timeout_s
                self._client = httpx.Client(timeout=httpx.Timeout(timeout))
            return self._client

    # -- transcription ----------------------------------------------------

    def transcribe(
        self,
        samples: ArrayLike,
        cancel: threading.Event | None = None,
    ) -> str:
        """Transcribe one utterance with the active model.

        Args:
            samples: Mono float PCM at 16 kHz.
            cancel: Signal that aborts remote polling waits.

        Returns:
            Transcript text. Remote results are returned verbatim; local
            results go through custom-word correction and are stripped.

        Raises:
            StateError: If no model is loaded.
            TranscriptionError: If local inference fails.
        """
        config = self._settings.transcription
        request = TranscriptionRequest(
            samples=as_float_samples(samples),
            language=config.selected_language,
            translate=config.translate_to_english,
        )
        if request.is_empty:
            logger.warning("Empty audio received")
            return ""

        started = time.monotonic()
        state = self.state

        if isinstance(state, Ready) and state.is_remote:
            text = self._transcribe_remote(state.backend, request, cancel)
        else:
            text = self._transcribe_local(state, request)

        elapsed_ms = (time.monotonic() - started) * 1000
        note = " (translated)" if request.translate else ""
        logger.info(f"Transcription took {elapsed_ms:.0f}ms{note}")
        return text

    def _transcribe_remote(
        self,
        backend: Backend,
        request: TranscriptionRequest,
        cancel: threading.Event | None,
    ) -> str:
        provider = get_provider(backend, self._settings.providers, client=self._http_client())
        logger.info(f"Using {provider.display_name} API for transcription")
        return provider.transcribe(request.samples, language=request.language, cancel=cancel)

    def _transcribe_local(self, state: OrchestratorState, request: TranscriptionRequest) -> str:
        if not isinstance(state, Ready) or state.engine is None:
            raise StateError(
                "No model loaded. Please download and select a model from settings first."
            )

        options = DecodeOptions.for_request(request)
        with self._inference_lock:
            try:
                segments = state.engine.transcribe(request.samples.astype(np.float32), options)
            except DictumError:
                raise
            except Exception as e:
                raise TranscriptionError(f"Transcription failed: {e}") from e

        text = "".join(segments)
        config = self._settings.transcription
        if config.custom_words:
            text = correct(text, config.custom_words, config.word_correction_threshold)
        return text.strip()
