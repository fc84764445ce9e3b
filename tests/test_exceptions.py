"""Tests for the exception hierarchy."""

import pytest

from dictum.exceptions import (
    ConfigurationError,
    DictumError,
    EngineLoadError,
    ExtractionError,
    FilesystemError,
    NotFoundError,
    OperationCancelledError,
    PollingTimeoutError,
    ProviderError,
    SchemaError,
    StateError,
    TranscriptionError,
    TransportError,
)


class TestExceptionHierarchy:
    """Tests for exception inheritance."""

    @pytest.mark.parametrize(
        "exc_class",
        [
            ConfigurationError,
            NotFoundError,
            StateError,
            FilesystemError,
            ExtractionError,
            TranscriptionError,
            OperationCancelledError,
            TransportError,
            PollingTimeoutError,
            SchemaError,
            ProviderError,
            EngineLoadError,
        ],
    )
    def test_inherits_from_base(self, exc_class):
        assert issubclass(exc_class, DictumError)

    def test_extraction_is_filesystem_error(self):
        assert issubclass(ExtractionError, FilesystemError)

    def test_polling_timeout_is_transport_error(self):
        assert issubclass(PollingTimeoutError, TransportError)


class TestTransportError:
    """Tests for TransportError details."""

    def test_carries_status_and_body(self):
        error = TransportError("upload failed", status=401, body='{"error":"bad key"}')
        assert str(error) == "upload failed"
        assert error.status == 401
        assert error.body == '{"error":"bad key"}'

    def test_network_failure_has_no_status(self):
        error = TransportError("connection refused")
        assert error.status is None
        assert error.body is None


class TestSchemaError:
    """Tests for SchemaError details."""

    def test_carries_raw_body(self):
        error = SchemaError("missing field", raw_body="<html>")
        assert error.raw_body == "<html>"
