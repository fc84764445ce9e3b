"""Resumable HTTP transfer of model artifacts."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from pathlib import Path

import httpx

from dictum.exceptions import FilesystemError, OperationCancelledError, TransportError
from dictum.models.descriptors import DownloadProgress

logger = logging.getLogger(__name__)

PARTIAL_SUFFIX = ".partial"
DEFAULT_CHUNK_SIZE = 64 * 1024

# Type alias for progress callback
ProgressCallback = Callable[[DownloadProgress], None]


def partial_path(artifact_path: Path) -> Path:
    """Return the sidecar file that accumulates an in-progress download."""
    return artifact_path.with_name(artifact_path.name + PARTIAL_SUFFIX)


class Downloader:
    """Streams a URL into a ``.partial`` sidecar, resuming where it left off.

    The sidecar is never deleted on failure or cancellation, so the next call
    picks up from its current size with an HTTP range request.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        timeout_s: float = 30.0,
    ) -> None:
        """Initialize the downloader.

        Args:
            client: HTTP client to use. When omitted, a redirect-following
                client is created on the first fetch and released by
                ``close()``.
            chunk_size: Bytes requested per streamed chunk.
            timeout_s: Connect/read timeout for the transfer.
        """
        self._client = client
        self._owns_client = client is None
        self._timeout_s = timeout_s
        self._chunk_size = chunk_size

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                follow_redirects=True,
                timeout=httpx.Timeout(self._timeout_s),
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client if this downloader created it."""
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None

    def fetch(
        self,
        model_id: str,
        url: str,
        partial: Path,
        on_progress: ProgressCallback | None = None,
        cancel: threading.Event | None = None,
    ) -> int:
        """Download url into the partial file.

        A 416 reply to a resume means the sidecar is already complete, as
        after a failed extraction; it is returned without re-fetching.

        Args:
            model_id: Model id reported in progress updates.
            url: Source URL.
            partial: Sidecar path; appended to when it already holds bytes.
            on_progress: Called once before the first chunk and after every chunk.
            cancel: Checked between chunks; when set the transfer stops.

        Returns:
            Size of the completed partial file in bytes.

        Raises:
            TransportError: On connection failure or a non-2xx status.
            OperationCancelledError: If cancel was set mid-transfer.
            FilesystemError: If the sidecar cannot be written.
        """
        resume_from = partial.stat().st_size if partial.exists() else 0
        headers: dict[str, str] = {}
        if resume_from > 0:
            logger.info(f"Resuming download of model {model_id} from byte {resume_from}")
            headers["Range"] = f"bytes={resume_from}-"
        else:
            logger.info(f"Starting fresh download of model {model_id} from {url}")

        try:
            with self._get_client().stream("GET", url, headers=headers) as response:
                if resume_from > 0 and response.status_code == 416:
                    return self._already_complete(
                        response, model_id, partial, resume_from, on_progress
                    )
                if not response.is_success:
                    body = response.read().decode("utf-8", errors="replace")
                    raise TransportError(
                        f"Failed to download model: HTTP {response.status_code}",
                        status=response.status_code,
                        body=body,
                    )

                if resume_from > 0 and response.status_code != 206:
                    logger.warning(
                        f"Server ignored range request for {model_id}, restarting from byte 0"
                    )
                    resume_from = 0

                content_length = int(response.headers.get("content-length") or 0)
                total = resume_from + content_length if content_length else 0
                return self._write_stream(
                    response, model_id, partial, resume_from, total, on_progress, cancel
                )
        except httpx.HTTPError as e:
            raise TransportError(f"Download of model {model_id} failed: {e}") from e

    @staticmethod
    def _already_complete(
        response: httpx.Response,
        model_id: str,
        partial: Path,
        resume_from: int,
        on_progress: ProgressCallback | None,
    ) -> int:
        """Handle a 416 reply to a range request.

        The sidecar already holds every byte when the server's length
        (``Content-Range: bytes */<size>``) equals its size, or when the
        server does not say.
        """
        content_range = response.headers.get("content-range", "")
        _, _, size = content_range.rpartition("/")
        if size.isdigit() and int(size) != resume_from:
            body = response.read().decode("utf-8", errors="replace")
            raise TransportError(
                f"Failed to resume download of {partial.name}: server reports "
                f"{size} bytes, have {resume_from}",
                status=response.status_code,
                body=body,
            )

        logger.info(f"Download of model {model_id} already complete ({resume_from} bytes)")
        if on_progress:
            on_progress(
                DownloadProgress(model_id=model_id, downloaded=resume_from, total=resume_from)
            )
        return resume_from

    def _write_stream(
        self,
        response: httpx.Response,
        model_id: str,
        partial: Path,
        resume_from: int,
        total: int,
        on_progress: ProgressCallback | None,
        cancel: threading.Event | None,
    ) -> int:
        downloaded = resume_from

        def report() -> None:
            if on_progress:
                on_progress(DownloadProgress(model_id=model_id, downloaded=downloaded, total=total))

        try:
            with open(partial, "ab" if resume_from > 0 else "wb") as f:
                report()
                for chunk in response.iter_bytes(self._chunk_size):
                    if cancel is not None and cancel.is_set():
                        logger.info(f"Download of model {model_id} cancelled at byte {downloaded}")
                        raise OperationCancelledError(f"Download cancelled: {model_id}")
                    if not chunk:
                        continue
                    f.write(chunk)
                    downloaded += len(chunk)
                    report()
        except OSError as e:
            raise FilesystemError(f"Failed to write {partial}: {e}") from e

        return downloaded
