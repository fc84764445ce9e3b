"""Tests for remote transcription providers."""

import io
import json
import threading
import wave

import httpx
import numpy as np
import pytest

from dictum.config import ProvidersConfig
from dictum.exceptions import (
    ConfigurationError,
    OperationCancelledError,
    PollingTimeoutError,
    ProviderError,
    SchemaError,
    TransportError,
)
from dictum.models.descriptors import Backend
from dictum.stt.protocol import TranscriptionProvider
from dictum.stt.providers import (
    AssemblyAIProvider,
    BaseRemoteProvider,
    DeepgramProvider,
    GladiaProvider,
    MistralProvider,
)
from dictum.stt.providers.languages import DETECT, build_language_table, map_language

SAMPLES = np.zeros(1600, dtype=np.float32)


class Recorder:
    """MockTransport handler that replays canned responses per (method, path)."""

    def __init__(self, routes: dict[tuple[str, str], list[httpx.Response]]):
        self.routes = {key: list(responses) for key, responses in routes.items()}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responses = self.routes[(request.method, request.url.path)]
        return responses.pop(0) if len(responses) > 1 else responses[0]

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


def _never_called(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected request: {request.method} {request.url}")


class TestLanguageMapping:
    """Tests for language code translation."""

    def test_auto_means_detect(self):
        assert map_language("auto", build_language_table(), "en") == DETECT

    def test_known_code_passes_through(self):
        assert map_language("fr", build_language_table(), "en") == "fr"

    def test_unknown_code_falls_back(self):
        assert map_language("tlh", build_language_table(), "en") == "en"

    def test_override(self):
        table = build_language_table(en="en_us")
        assert map_language("en", table, "en_us") == "en_us"

    def test_assemblyai_english_variant(self):
        provider = AssemblyAIProvider(api_key="k", client=httpx.Client())
        assert provider.map_language("en") == "en_us"
        assert provider.map_language("xx") == "en_us"
        assert provider.map_language("de") == "de"


class TestBaseRemoteProvider:
    """Tests for behavior shared by every provider."""

    @pytest.mark.parametrize(
        "provider_class",
        [MistralProvider, DeepgramProvider, AssemblyAIProvider, GladiaProvider],
    )
    def test_missing_credential_sends_nothing(self, provider_class):
        client = httpx.Client(transport=httpx.MockTransport(_never_called))
        provider = provider_class(api_key=None, client=client)

        with pytest.raises(ConfigurationError, match="API key not set"):
            provider.transcribe(SAMPLES)

    def test_empty_credential_counts_as_missing(self):
        provider = MistralProvider(api_key="", client=httpx.Client())
        assert provider.has_credential is False

    @pytest.mark.parametrize(
        "provider_class",
        [MistralProvider, DeepgramProvider, AssemblyAIProvider, GladiaProvider],
    )
    def test_satisfies_protocol(self, provider_class):
        provider = provider_class(api_key="k", client=httpx.Client())
        assert isinstance(provider, TranscriptionProvider)
        assert isinstance(provider, BaseRemoteProvider)

    def test_close_keeps_injected_client_open(self):
        client = httpx.Client()
        MistralProvider(api_key="k", client=client).close()

        assert not client.is_closed
        client.close()

    def test_close_releases_own_client(self):
        provider = MistralProvider(api_key="k")
        provider.close()

        assert provider._client.is_closed

    def test_from_settings(self):
        config = ProvidersConfig(gladia_api_key="gl", poll_timeout_s=30.0)
        provider = GladiaProvider.from_settings(config, client=httpx.Client())
        assert provider.has_credential
        assert provider._poll_timeout_s == 30.0
        assert provider._poll_interval_s == GladiaProvider.poll_interval_s


class TestMistralProvider:
    """Tests for the synchronous multipart provider."""

    def test_transcribe(self):
        recorder = Recorder(
            {("POST", "/v1/audio/transcriptions"): [httpx.Response(200, json={"text": "bonjour"})]}
        )
        provider = MistralProvider(api_key="mk", client=recorder.client())

        assert provider.transcribe(SAMPLES, language="fr") == "bonjour"

        request = recorder.requests[0]
        assert request.headers["authorization"] == "Bearer mk"
        assert request.headers["content-type"].startswith("multipart/form-data")
        body = request.content
        assert b'name="model"' in body
        assert b"voxtral-mini-latest" in body
        assert b'name="language"' in body
        assert b'filename="audio.wav"' in body
        assert b"RIFF" in body

    def test_auto_language_omits_field(self):
        recorder = Recorder(
            {("POST", "/v1/audio/transcriptions"): [httpx.Response(200, json={"text": "hi"})]}
        )
        provider = MistralProvider(api_key="mk", client=recorder.client())

        provider.transcribe(SAMPLES, language="auto")

        assert b'name="language"' not in recorder.requests[0].content

    def test_error_status(self):
        recorder = Recorder(
            {("POST", "/v1/audio/transcriptions"): [httpx.Response(401, text="Unauthorized")]}
        )
        provider = MistralProvider(api_key="bad", client=recorder.client())

        with pytest.raises(TransportError) as exc_info:
            provider.transcribe(SAMPLES)

        assert exc_info.value.status == 401
        assert exc_info.value.body == "Unauthorized"

    def test_unexpected_body(self):
        recorder = Recorder(
            {("POST", "/v1/audio/transcriptions"): [httpx.Response(200, content=b'{"result":"hi"}')]}
        )
        provider = MistralProvider(api_key="mk", client=recorder.client())

        with pytest.raises(SchemaError) as exc_info:
            provider.transcribe(SAMPLES)

        assert exc_info.value.raw_body == '{"result":"hi"}'

    def test_network_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        provider = MistralProvider(api_key="mk", client=client)

        with pytest.raises(TransportError) as exc_info:
            provider.transcribe(SAMPLES)
        assert exc_info.value.status is None


class TestDeepgramProvider:
    """Tests for the synchronous raw-body provider."""

    def _response(self, transcript: str) -> httpx.Response:
        return httpx.Response(
            200,
            json={"results": {"channels": [{"alternatives": [{"transcript": transcript}]}]}},
        )

    def test_transcribe(self):
        recorder = Recorder({("POST", "/v1/listen"): [self._response("hello there")]})
        provider = DeepgramProvider(api_key="dk", client=recorder.client())

        assert provider.transcribe(SAMPLES, language="es") == "hello there"

        request = recorder.requests[0]
        assert request.headers["authorization"] == "Token dk"
        assert request.headers["content-type"] == "audio/wav"
        assert request.url.params["model"] == "nova-3"
        assert request.url.params["smart_format"] == "true"
        assert request.url.params["language"] == "es"
        with wave.open(io.BytesIO(request.content), "rb") as wf:
            assert wf.getframerate() == 16000
            assert wf.getnframes() == len(SAMPLES)

    def test_auto_language_requests_detection(self):
        recorder = Recorder({("POST", "/v1/listen"): [self._response("hi")]})
        provider = DeepgramProvider(api_key="dk", client=recorder.client())

        provider.transcribe(SAMPLES, language="auto")

        params = recorder.requests[0].url.params
        assert params["detect_language"] == "true"
        assert "language" not in params

    def test_missing_alternatives_is_empty(self):
        recorder = Recorder(
            {("POST", "/v1/listen"): [httpx.Response(200, json={"results": {"channels": []}})]}
        )
        provider = DeepgramProvider(api_key="dk", client=recorder.client())

        assert provider.transcribe(SAMPLES) == ""

    def test_missing_results_is_schema_error(self):
        recorder = Recorder({("POST", "/v1/listen"): [httpx.Response(200, json={})]})
        provider = DeepgramProvider(api_key="dk", client=recorder.client())

        with pytest.raises(SchemaError):
            provider.transcribe(SAMPLES)


class TestAssemblyAIProvider:
    """Tests for the upload, submit and poll-by-id provider."""

    UPLOAD = ("POST", "/v2/upload")
    SUBMIT = ("POST", "/v2/transcript")
    POLL = ("GET", "/v2/transcript/job-1")

    def _recorder(self, *poll_responses: httpx.Response) -> Recorder:
        return Recorder(
            {
                self.UPLOAD: [httpx.Response(200, json={"upload_url": "https://cdn/audio-1"})],
                self.SUBMIT: [httpx.Response(200, json={"id": "job-1", "status": "queued"})],
                self.POLL: list(poll_responses),
            }
        )

    def _provider(self, recorder: Recorder, **kwargs) -> AssemblyAIProvider:
        return AssemblyAIProvider(
            api_key="ak", client=recorder.client(), poll_interval_s=0.0, **kwargs
        )

    def test_transcribe(self):
        recorder = self._recorder(
            httpx.Response(200, json={"status": "queued"}),
            httpx.Response(200, json={"status": "processing"}),
            httpx.Response(200, json={"status": "completed", "text": "done"}),
        )

        assert self._provider(recorder).transcribe(SAMPLES, language="en") == "done"

        assert [(r.method, r.url.path) for r in recorder.requests] == [
            self.UPLOAD,
            self.SUBMIT,
            self.POLL,
            self.POLL,
            self.POLL,
        ]
        assert all(r.headers["authorization"] == "ak" for r in recorder.requests)
        submitted = json.loads(recorder.requests[1].content)
        assert submitted == {
            "audio_url": "https://cdn/audio-1",
            "speech_model": "universal",
            "language_code": "en_us",
        }

    def test_auto_language_requests_detection(self):
        recorder = self._recorder(httpx.Response(200, json={"status": "completed", "text": "x"}))

        self._provider(recorder).transcribe(SAMPLES, language="auto")

        submitted = json.loads(recorder.requests[1].content)
        assert submitted["language_detection"] is True
        assert "language_code" not in submitted

    def test_completed_without_text(self):
        recorder = self._recorder(httpx.Response(200, json={"status": "completed", "text": None}))
        assert self._provider(recorder).transcribe(SAMPLES) == ""

    def test_error_status_raises_provider_error(self):
        recorder = self._recorder(
            httpx.Response(200, json={"status": "error", "error": "audio too short"})
        )

        with pytest.raises(ProviderError, match="audio too short"):
            self._provider(recorder).transcribe(SAMPLES)

    def test_failed_poll_is_retried(self):
        recorder = self._recorder(
            httpx.Response(502, text="bad gateway"),
            httpx.Response(200, text="not json"),
            httpx.Response(200, json={"status": "completed", "text": "recovered"}),
        )

        assert self._provider(recorder).transcribe(SAMPLES) == "recovered"
        assert len(recorder.requests) == 5

    def test_upload_failure(self):
        recorder = Recorder({self.UPLOAD: [httpx.Response(413, text="too large")]})

        with pytest.raises(TransportError) as exc_info:
            self._provider(recorder).transcribe(SAMPLES)

        assert exc_info.value.status == 413
        assert len(recorder.requests) == 1

    def test_submit_missing_id(self):
        recorder = Recorder(
            {
                self.UPLOAD: [httpx.Response(200, json={"upload_url": "https://cdn/a"})],
                self.SUBMIT: [httpx.Response(200, json={"status": "queued"})],
            }
        )

        with pytest.raises(SchemaError):
            self._provider(recorder).transcribe(SAMPLES)

    def test_cancel_stops_polling(self):
        recorder = self._recorder(httpx.Response(200, json={"status": "processing"}))
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(OperationCancelledError):
            self._provider(recorder).transcribe(SAMPLES, cancel=cancel)

        assert (recorder.requests[-1].method, recorder.requests[-1].url.path) == self.SUBMIT

    def test_poll_timeout(self):
        recorder = self._recorder(httpx.Response(200, json={"status": "processing"}))
        provider = AssemblyAIProvider(
            api_key="ak",
            client=recorder.client(),
            poll_interval_s=0.01,
            poll_timeout_s=0.03,
        )

        with pytest.raises(PollingTimeoutError):
            provider.transcribe(SAMPLES)


class TestGladiaProvider:
    """Tests for the upload, submit and poll-by-url provider."""

    UPLOAD = ("POST", "/v2/upload")
    SUBMIT = ("POST", "/v2/pre-recorded")
    POLL = ("GET", "/v2/pre-recorded/gl-1")

    def _recorder(self, *poll_responses: httpx.Response) -> Recorder:
        return Recorder(
            {
                self.UPLOAD: [httpx.Response(200, json={"audio_url": "https://gladia/audio-1"})],
                self.SUBMIT: [
                    httpx.Response(
                        201,
                        json={
                            "id": "gl-1",
                            "result_url": "https://api.gladia.io/v2/pre-recorded/gl-1",
                        },
                    )
                ],
                self.POLL: list(poll_responses),
            }
        )

    def _done(self, transcript: str) -> httpx.Response:
        return httpx.Response(
            200,
            json={"status": "done", "result": {"transcription": {"full_transcript": transcript}}},
        )

    def _provider(self, recorder: Recorder) -> GladiaProvider:
        return GladiaProvider(api_key="gk", client=recorder.client(), poll_interval_s=0.0)

    def test_transcribe(self):
        recorder = self._recorder(
            httpx.Response(200, json={"status": "queued"}),
            httpx.Response(200, json={"status": "processing", "result": None}),
            self._done("ciao"),
        )

        assert self._provider(recorder).transcribe(SAMPLES, language="it") == "ciao"

        assert [(r.method, r.url.path) for r in recorder.requests] == [
            self.UPLOAD,
            self.SUBMIT,
            self.POLL,
            self.POLL,
            self.POLL,
        ]
        assert all(r.headers["x-gladia-key"] == "gk" for r in recorder.requests)
        assert b'name="audio"' in recorder.requests[0].content
        submitted = json.loads(recorder.requests[1].content)
        assert submitted == {
            "audio_url": "https://gladia/audio-1",
            "detect_language": False,
            "language": "it",
        }

    def test_auto_language_requests_detection(self):
        recorder = self._recorder(self._done("x"))

        self._provider(recorder).transcribe(SAMPLES, language="auto")

        submitted = json.loads(recorder.requests[1].content)
        assert submitted == {"audio_url": "https://gladia/audio-1", "detect_language": True}

    def test_empty_transcript(self):
        recorder = self._recorder(self._done(""))
        assert self._provider(recorder).transcribe(SAMPLES) == ""

    def test_failed_poll_is_retried(self):
        recorder = self._recorder(httpx.Response(500, text="oops"), self._done("ok"))
        assert self._provider(recorder).transcribe(SAMPLES) == "ok"

    def test_upload_missing_audio_url(self):
        recorder = Recorder({self.UPLOAD: [httpx.Response(200, json={"url": "x"})]})

        with pytest.raises(SchemaError):
            self._provider(recorder).transcribe(SAMPLES)
