"""Data models for the model catalog."""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import Any


class EngineType(str, Enum):
    """Local inference engine able to run an artifact."""

    WHISPER = "whisper"
    PARAKEET = "parakeet"


class Backend(str, Enum):
    """Where transcription for a model actually runs."""

    LOCAL = "local"
    MISTRAL = "mistral"  # sync multipart upload
    DEEPGRAM = "deepgram"  # sync raw body
    ASSEMBLYAI = "assemblyai"  # upload, submit, poll by job id
    GLADIA = "gladia"  # upload, submit, poll result url


@dataclass
class ModelDescriptor:
    """Catalog entry for one transcription model."""

    id: str
    name: str
    description: str
    filename: str
    url: str | None
    size_mb: int
    is_directory: bool = False
    engine_type: EngineType = EngineType.WHISPER
    backend: Backend = Backend.LOCAL
    accuracy_score: float = 0.0  # 0.0 to 1.0, higher is more accurate
    speed_score: float = 0.0  # 0.0 to 1.0, higher is faster
    downloaded: bool = False
    downloading: bool = False
    partial_size: int = 0

    @property
    def is_remote(self) -> bool:
        """True for models served by a remote provider (no local artifact)."""
        return self.url is None

    def copy(self) -> ModelDescriptor:
        """Return a detached snapshot of this descriptor."""
        return replace(self)

    def to_dict(self) -> dict[str, Any]:
        """Convert descriptor to dictionary."""
        data = asdict(self)
        data["engine_type"] = self.engine_type.value
        data["backend"] = self.backend.value
        data["is_remote"] = self.is_remote
        return data


@dataclass
class DownloadProgress:
    """Byte counters for an in-flight download."""

    model_id: str
    downloaded: int
    total: int  # 0 when the server did not announce a length

    @property
    def percentage(self) -> float:
        if self.total <= 0:
            return 0.0
        return self.downloaded / self.total * 100.0

    def to_dict(self) -> dict[str, Any]:
        """Convert progress to dictionary."""
        return {
            "model_id": self.model_id,
            "downloaded": self.downloaded,
            "total": self.total,
            "percentage": self.percentage,
        }


_BLOB_URL = "https://blob.handy.computer"


def _remote(
    model_id: str,
    name: str,
    description: str,
    backend: Backend,
    accuracy: float,
    speed: float,
) -> ModelDescriptor:
    return ModelDescriptor(
        id=model_id,
        name=name,
        description=description,
        filename="",
        url=None,
        size_mb=0,
        backend=backend,
        accuracy_score=accuracy,
        speed_score=speed,
        downloaded=True,
    )


def builtin_models() -> list[ModelDescriptor]:
    """Return fresh descriptors for every model the application knows about.

    Order matters: auto-selection picks the first downloaded entry.
    """
    return [
        ModelDescriptor(
            id="small",
            name="Whisper Small",
            description="Fast and fairly accurate.",
            filename="ggml-small.bin",
            url=f"{_BLOB_URL}/ggml-small.bin",
            size_mb=487,
            accuracy_score=0.60,
            speed_score=0.85,
        ),
        ModelDescriptor(
            id="medium",
            name="Whisper Medium",
            description="Good accuracy, medium speed",
            filename="whisper-medium-q4_1.bin",
            url=f"{_BLOB_URL}/whisper-medium-q4_1.bin",
            size_mb=492,
            accuracy_score=0.75,
            speed_score=0.60,
        ),
        ModelDescriptor(
            id="turbo",
            name="Whisper Turbo",
            description="Balanced accuracy and speed.",
            filename="ggml-large-v3-turbo.bin",
            url=f"{_BLOB_URL}/ggml-large-v3-turbo.bin",
            size_mb=1600,
            accuracy_score=0.80,
            speed_score=0.40,
        ),
        ModelDescriptor(
            id="large",
            name="Whisper Large",
            description="Good accuracy, but slow.",
            filename="ggml-large-v3-q5_0.bin",
            url=f"{_BLOB_URL}/ggml-large-v3-q5_0.bin",
            size_mb=1100,
            accuracy_score=0.85,
            speed_score=0.30,
        ),
        ModelDescriptor(
            id="parakeet-tdt-0.6b-v2",
            name="Parakeet V2",
            description="English only. The best model for English speakers.",
            filename="parakeet-tdt-0.6b-v2-int8",
            url=f"{_BLOB_URL}/parakeet-v2-int8.tar.gz",
            size_mb=473,
            is_directory=True,
            engine_type=EngineType.PARAKEET,
            accuracy_score=0.85,
            speed_score=0.85,
        ),
        ModelDescriptor(
            id="parakeet-tdt-0.6b-v3",
            name="Parakeet V3",
            description="Fast and accurate",
            filename="parakeet-tdt-0.6b-v3-int8",
            url=f"{_BLOB_URL}/parakeet-v3-int8.tar.gz",
            size_mb=478,
            is_directory=True,
            engine_type=EngineType.PARAKEET,
            accuracy_score=0.80,
            speed_score=0.85,
        ),
        _remote(
            "voxtral-mini",
            "Voxtral Mini Transcribe (API)",
            "Fast cloud transcription via Mistral API.",
            Backend.MISTRAL,
            0.80,
            0.95,
        ),
        _remote(
            "nova-3",
            "Nova-3 (Deepgram API)",
            "High-accuracy cloud transcription via Deepgram API.",
            Backend.DEEPGRAM,
            0.90,
            0.75,
        ),
        _remote(
            "universal",
            "Universal (AssemblyAI API)",
            "Versatile speech recognition via AssemblyAI API.",
            Backend.ASSEMBLYAI,
            0.88,
            0.70,
        ),
        _remote(
            "whisper-zero",
            "Whisper-Zero (Gladia API)",
            "Advanced Whisper model with fewer hallucinations via Gladia API.",
            Backend.GLADIA,
            0.85,
            0.72,
        ),
    ]
