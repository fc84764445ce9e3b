"""Configuration management using Pydantic settings."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from dictum.exceptions import ConfigurationError

DEFAULT_MODELS_DIR = Path.home() / ".local" / "share" / "dictum" / "models"


class ModelsConfig(BaseModel):
    """Model storage and download configuration."""

    models_dir: Path = Field(default=DEFAULT_MODELS_DIR)
    resource_dir: Path | None = Field(
        default=None,
        description="Directory holding models bundled with the application",
    )
    chunk_size: int = Field(default=64 * 1024, ge=1024, le=16 * 1024 * 1024)
    download_timeout_s: float = Field(default=30.0, gt=0.0)


class TranscriptionConfig(BaseModel):
    """Model selection and post-processing configuration."""

    selected_model: str = Field(default="")
    selected_language: str = Field(default="auto")
    translate_to_english: bool = Field(default=False)
    custom_words: list[str] = Field(default_factory=list)
    word_correction_threshold: float = Field(default=0.18, ge=0.0, le=1.0)


class ProvidersConfig(BaseModel):
    """Remote transcription provider credentials and timeouts."""

    mistral_api_key: str | None = Field(default=None)
    deepgram_api_key: str | None = Field(default=None)
    assemblyai_api_key: str | None = Field(default=None)
    gladia_api_key: str | None = Field(default=None)
    request_timeout_s: float = Field(default=60.0, gt=0.0)
    poll_timeout_s: float | None = Field(
        default=None,
        gt=0.0,
        description="Upper bound for job polling; None polls until the job ends",
    )

    def credential_for(self, provider: str) -> str | None:
        """Return the API key for a provider name, or None when unset.

        Empty strings count as unset.
        """
        key = getattr(self, f"{provider}_api_key", None)
        return key or None


class Settings(BaseModel):
    """Application settings loaded from settings.yml."""

    models: ModelsConfig = Field(default_factory=ModelsConfig)
    transcription: TranscriptionConfig = Field(default_factory=TranscriptionConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)

    @classmethod
    def load(cls, config_path: Path | None = None) -> "Settings":
        """Load settings from YAML file.

        Args:
            config_path: Path to settings file. Defaults to ./settings.yml

        Returns:
            Loaded Settings instance

        Raises:
            ConfigurationError: If config file exists but is invalid
        """
        if config_path is None:
            config_path = Path("./settings.yml")

        if not config_path.exists():
            return cls()

        try:
            with open(config_path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse config file: {e}") from e

        if data is None:
            return cls()

        try:
            return cls.model_validate(data)
        except Exception as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def save(self, config_path: Path) -> None:
        """Write settings back to a YAML file."""
        data = self.model_dump(mode="json")
        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(config_path, "w") as f:
                yaml.safe_dump(data, f, sort_keys=False)
        except OSError as e:
            raise ConfigurationError(f"Failed to write config file: {e}") from e


_settings: Settings | None = None


def get_settings(config_path: Path | None = None) -> Settings:
    """Get application settings (singleton).

    Args:
        config_path: Optional path to config file

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings.load(config_path)
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (for testing)."""
    global _settings
    _settings = None
