"""Model lifecycle: catalog, resumable download and archive extraction."""

from dictum.models.catalog import ModelCatalog
from dictum.models.descriptors import (
    Backend,
    DownloadProgress,
    EngineType,
    ModelDescriptor,
    builtin_models,
)
from dictum.models.download import Downloader, partial_path
from dictum.models.extract import extract_archive, extracting_path

__all__ = [
    "Backend",
    "DownloadProgress",
    "Downloader",
    "EngineType",
    "ModelCatalog",
    "ModelDescriptor",
    "builtin_models",
    "extract_archive",
    "extracting_path",
    "partial_path",
]
