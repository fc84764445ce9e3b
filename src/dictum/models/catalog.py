"""Model catalog: registry, filesystem probing and artifact lifecycle."""

from __future__ import annotations

import logging
import shutil
import threading
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

import httpx

from dictum.events import (
    MODEL_DOWNLOAD_COMPLETE,
    MODEL_DOWNLOAD_PROGRESS,
    EventSink,
    emit,
)
from dictum.exceptions import (
    ConfigurationError,
    DictumError,
    FilesystemError,
    NotFoundError,
    StateError,
)
from dictum.models.descriptors import DownloadProgress, ModelDescriptor, builtin_models
from dictum.models.download import DEFAULT_CHUNK_SIZE, Downloader, partial_path
from dictum.models.extract import extract_archive, extracting_path

if TYPE_CHECKING:
    from dictum.config import Settings

logger = logging.getLogger(__name__)

# Artifacts that may ship inside the application bundle
BUNDLED_MODELS = ("ggml-small.bin",)


class ModelCatalog:
    """Registry of known models and owner of the models directory.

    Descriptors are never added or removed after construction; only their
    status flags change. Every flag read or write goes through one lock that
    is never held across I/O, so the ``downloaded``/``downloading``/
    ``partial_size`` triple is always seen consistently.
    """

    def __init__(
        self,
        models_dir: Path,
        events: EventSink | None = None,
        client: httpx.Client | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        download_timeout_s: float = 30.0,
        resource_dir: Path | None = None,
        models: Iterable[ModelDescriptor] | None = None,
    ) -> None:
        """Initialize the catalog and probe the models directory.

        Args:
            models_dir: Directory holding artifacts and their sidecars.
            events: Sink for download and extraction notifications.
            client: HTTP client for downloads.
            chunk_size: Download chunk size in bytes.
            download_timeout_s: Network timeout for downloads.
            resource_dir: Directory of bundled artifacts to migrate.
            models: Descriptors to manage. Defaults to the built-in list.
        """
        self._models_dir = Path(models_dir)
        self._events = events
        self._lock = threading.Lock()
        self._models: dict[str, ModelDescriptor] = {
            m.id: m for m in (models if models is not None else builtin_models())
        }
        self._downloader = Downloader(
            client=client,
            chunk_size=chunk_size,
            timeout_s=download_timeout_s,
        )

        try:
            self._models_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"Cannot create models directory {self._models_dir}: {e}") from e

        if resource_dir is not None:
            self.migrate_bundled_models(resource_dir)

        self.probe()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        events: EventSink | None = None,
        client: httpx.Client | None = None,
    ) -> ModelCatalog:
        """Build a catalog from the ``models`` section of the settings.

        After the startup probe, a model is auto-selected in settings when
        none is selected yet.
        """
        catalog = cls(
            models_dir=settings.models.models_dir,
            events=events,
            client=client,
            chunk_size=settings.models.chunk_size,
            download_timeout_s=settings.models.download_timeout_s,
            resource_dir=settings.models.resource_dir,
        )
        catalog.auto_select_model(settings)
        return catalog

    @property
    def models_dir(self) -> Path:
        return self._models_dir

    def close(self) -> None:
        """Release the download client if the catalog created it."""
        self._downloader.close()

    # -- queries ----------------------------------------------------------

    def list(self) -> list[ModelDescriptor]:
        """Return a snapshot of every descriptor, in catalog order."""
        with self._lock:
            return [m.copy() for m in self._models.values()]

    def get(self, model_id: str) -> ModelDescriptor:
        """Return a snapshot of one descriptor.

        Raises:
            NotFoundError: If the id is unknown.
        """
        with self._lock:
            model = self._models.get(model_id)
            if model is None:
                raise NotFoundError(f"Model not found: {model_id}")
            return model.copy()

    def artifact_path(self, model: ModelDescriptor) -> Path:
        """Final location of a model's file or directory."""
        return self._models_dir / model.filename

    def resolve_path(self, model_id: str) -> Path:
        """Return the path of a fully downloaded artifact.

        Raises:
            NotFoundError: If the id is unknown.
            ConfigurationError: For remote models, which have no local path.
            StateError: If the artifact is missing, partial or downloading.
        """
        model = self.get(model_id)
        if model.is_remote:
            raise ConfigurationError(
                f"API-based models do not have a local file path: {model_id}"
            )
        if not model.downloaded:
            raise StateError(f"Model not available: {model_id}")
        if model.downloading:
            raise StateError(f"Model is currently downloading: {model_id}")

        path = self.artifact_path(model)
        present = path.is_dir() if model.is_directory else path.exists()
        if not present or partial_path(path).exists():
            kind = "directory" if model.is_directory else "file"
            raise StateError(f"Complete model {kind} not found: {model_id}")
        return path

    # -- status -----------------------------------------------------------

    def probe(self) -> None:
        """Re-derive status flags from the models directory.

        Leftover ``.extracting`` workspaces are always deleted: promotion is
        the last step of an extraction, so a surviving workspace can only
        come from an interrupted run.
        """
        for model in self.list():
            if model.is_remote:
                with self._lock:
                    current = self._models[model.id]
                    current.downloaded = True
                    current.downloading = False
                    current.partial_size = 0
                continue

            path = self.artifact_path(model)
            partial = partial_path(path)

            if model.is_directory:
                workspace = extracting_path(path)
                if workspace.exists():
                    logger.info(f"Cleaning up interrupted extraction for model: {model.id}")
                    shutil.rmtree(workspace, ignore_errors=True)
                downloaded = path.is_dir()
            else:
                downloaded = path.exists()

            try:
                partial_size = partial.stat().st_size
                downloading = True
            except FileNotFoundError:
                partial_size = 0
                downloading = False

            with self._lock:
                current = self._models[model.id]
                current.downloaded = downloaded
                current.downloading = downloading
                current.partial_size = partial_size

    def auto_select_model(self, settings: Settings) -> str | None:
        """Select the first downloaded model when settings have none.

        Returns:
            The newly selected model id, or None if nothing changed.
        """
        if settings.transcription.selected_model:
            return None

        for model in self.list():
            if model.downloaded:
                settings.transcription.selected_model = model.id
                logger.info(f"Auto-selecting model: {model.id} ({model.name})")
                return model.id
        return None

    def migrate_bundled_models(self, resource_dir: Path) -> list[Path]:
        """Copy artifacts shipped with the application into the models directory.

        Existing user copies are never overwritten.

        Returns:
            Paths of the artifacts that were copied.
        """
        copied: list[Path] = []
        for filename in BUNDLED_MODELS:
            bundled = Path(resource_dir) / filename
            if not bundled.exists():
                continue
            user_path = self._models_dir / filename
            if user_path.exists():
                continue
            logger.info(f"Migrating bundled model {filename} to user directory")
            try:
                shutil.copy2(bundled, user_path)
            except OSError as e:
                raise FilesystemError(f"Failed to migrate bundled model {filename}: {e}") from e
            copied.append(user_path)
        return copied

    def _update(self, model_id: str, **flags: object) -> None:
        with self._lock:
            model = self._models[model_id]
            for name, value in flags.items():
                setattr(model, name, value)

    # -- lifecycle --------------------------------------------------------

    def download(self, model_id: str, cancel: threading.Event | None = None) -> None:
        """Download (or resume) a model and install it.

        File models are renamed from their sidecar into place; directory
        models are unpacked through the archive extractor.

        Args:
            model_id: Model to fetch.
            cancel: Optional signal that stops the transfer between chunks.
                The sidecar is kept for a later resume.

        Raises:
            NotFoundError: If the id is unknown.
            TransportError: On network failure.
            OperationCancelledError: If cancel was set.
            FilesystemError: On I/O or extraction failure.
        """
        model = self.get(model_id)
        if model.is_remote or model.url is None:
            logger.info(f"Skipping download for API-based model {model_id}")
            return

        path = self.artifact_path(model)
        partial = partial_path(path)

        if path.exists():
            partial.unlink(missing_ok=True)
            self.probe()
            return

        self._update(model_id, downloading=True)

        def on_progress(progress: DownloadProgress) -> None:
            self._update(model_id, partial_size=progress.downloaded)
            emit(self._events, MODEL_DOWNLOAD_PROGRESS, progress.to_dict())

        try:
            self._downloader.fetch(
                model_id,
                model.url,
                partial,
                on_progress=on_progress,
                cancel=cancel,
            )
            if model.is_directory:
                extract_archive(partial, path, model_id, self._events)
            else:
                try:
                    partial.replace(path)
                except OSError as e:
                    raise FilesystemError(f"Failed to install model file {path}: {e}") from e
        except DictumError:
            self._update(model_id, downloading=False)
            raise

        self._update(model_id, downloaded=True, downloading=False, partial_size=0)
        logger.info(f"Model {model_id} downloaded to {path}")
        emit(self._events, MODEL_DOWNLOAD_COMPLETE, model_id)

    def cancel(self, model_id: str) -> None:
        """Mark a download as no longer in progress.

        This only updates the status flag; stopping the transfer itself is
        done through the ``cancel`` event passed to ``download()``. The
        sidecar stays on disk so the download can resume.
        """
        model = self.get(model_id)
        if model.is_remote:
            logger.info(f"Skipping cancel for API-based model {model_id}")
            return
        self._update(model_id, downloading=False)
        logger.info(f"Download cancelled for: {model_id}")

    def delete(self, model_id: str) -> None:
        """Remove a model's artifact and any partial download.

        Raises:
            NotFoundError: If the id is unknown.
            FilesystemError: If there was nothing to delete or removal failed.
        """
        model = self.get(model_id)
        if model.is_remote:
            logger.info(f"Skipping delete for API-based model {model_id}")
            return

        path = self.artifact_path(model)
        partial = partial_path(path)
        deleted_something = False

        try:
            if model.is_directory and path.is_dir():
                shutil.rmtree(path)
                deleted_something = True
            elif not model.is_directory and path.exists():
                path.unlink()
                deleted_something = True

            if partial.exists():
                partial.unlink()
                deleted_something = True
        except OSError as e:
            raise FilesystemError(f"Failed to delete model {model_id}: {e}") from e
        finally:
            self.probe()

        if not deleted_something:
            raise FilesystemError("No model files found to delete")
        logger.info(f"Deleted model files for: {model_id}")
