"""Crash-safe unpacking of directory-packaged models."""

from __future__ import annotations

import logging
import shutil
import tarfile
from pathlib import Path

from dictum.events import (
    MODEL_EXTRACTION_COMPLETED,
    MODEL_EXTRACTION_FAILED,
    MODEL_EXTRACTION_STARTED,
    EventSink,
    emit,
)
from dictum.exceptions import ExtractionError, FilesystemError

logger = logging.getLogger(__name__)

EXTRACTING_SUFFIX = ".extracting"


def extracting_path(target_dir: Path) -> Path:
    """Return the transient workspace used while unpacking into target_dir."""
    return target_dir.with_name(target_dir.name + EXTRACTING_SUFFIX)


def _remove_tree(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


def extract_archive(
    archive_path: Path,
    target_dir: Path,
    model_id: str,
    events: EventSink | None = None,
) -> Path:
    """Unpack a gzip-compressed tar into target_dir atomically.

    The archive is first extracted into a sibling ``.extracting`` workspace.
    Only once that succeeds is the result renamed onto ``target_dir``, so the
    target is either absent, the previous version, or complete. A single
    top-level directory inside the archive is promoted in place of the
    wrapper.

    Args:
        archive_path: Completed ``.tar.gz`` download (usually the ``.partial`` file).
        target_dir: Final model directory.
        model_id: Model id used in notifications.
        events: Event sink for extraction notifications.

    Returns:
        The final model directory.

    Raises:
        ExtractionError: If the archive cannot be unpacked. The workspace is
            removed and the archive is left in place for a retry.
        FilesystemError: If promoting the extracted tree fails.
    """
    workspace = extracting_path(target_dir)
    emit(events, MODEL_EXTRACTION_STARTED, model_id)
    logger.info(f"Extracting archive for model {model_id}: {archive_path}")

    try:
        if workspace.exists():
            _remove_tree(workspace)
        workspace.mkdir(parents=True)
        with tarfile.open(archive_path, "r:gz") as tar:
            tar.extractall(workspace, filter="data")
    except (tarfile.TarError, OSError, EOFError) as e:
        error_msg = f"Failed to extract archive: {e}"
        logger.error(f"{error_msg} (model {model_id})")
        shutil.rmtree(workspace, ignore_errors=True)
        emit(
            events,
            MODEL_EXTRACTION_FAILED,
            {"model_id": model_id, "error": error_msg},
        )
        raise ExtractionError(error_msg) from e

    try:
        _promote(workspace, target_dir)
    except OSError as e:
        shutil.rmtree(workspace, ignore_errors=True)
        error_msg = f"Failed to install extracted model: {e}"
        emit(
            events,
            MODEL_EXTRACTION_FAILED,
            {"model_id": model_id, "error": error_msg},
        )
        raise FilesystemError(error_msg) from e

    try:
        archive_path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove archive {archive_path}: {e}")

    logger.info(f"Successfully extracted archive for model: {model_id}")
    emit(events, MODEL_EXTRACTION_COMPLETED, model_id)
    return target_dir


def _promote(workspace: Path, target_dir: Path) -> None:
    """Move the extracted tree onto target_dir."""
    extracted_dirs = [p for p in workspace.iterdir() if p.is_dir()]

    if target_dir.exists():
        _remove_tree(target_dir)

    if len(extracted_dirs) == 1:
        extracted_dirs[0].rename(target_dir)
        shutil.rmtree(workspace, ignore_errors=True)
    else:
        workspace.rename(target_dir)
