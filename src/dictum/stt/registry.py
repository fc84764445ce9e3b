"""Provider registry: maps remote backends to their adapter classes."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from dictum.exceptions import NotFoundError
from dictum.models.descriptors import Backend

if TYPE_CHECKING:
    from dictum.config import ProvidersConfig
    from dictum.stt.providers.base import BaseRemoteProvider

logger = logging.getLogger(__name__)

# Registry of provider classes by backend
_PROVIDERS: dict[Backend, type[BaseRemoteProvider]] = {}


def register_provider(backend: Backend, provider_class: type[BaseRemoteProvider]) -> None:
    """Register a provider implementation.

    Args:
        backend: Remote backend served by the class.
        provider_class: Subclass of BaseRemoteProvider.

    Raises:
        ValueError: If backend is Backend.LOCAL.
    """
    if backend is Backend.LOCAL:
        raise ValueError("Local models are served by engines, not providers")
    _PROVIDERS[backend] = provider_class
    logger.debug(f"Registered transcription provider: {backend.value}")


def unregister_provider(backend: Backend) -> None:
    """Unregister a provider (mainly for testing).

    Args:
        backend: Backend to unregister.
    """
    _PROVIDERS.pop(backend, None)


def get_registered_providers() -> list[Backend]:
    """Get list of registered backends.

    Returns:
        List of backends with a provider class.
    """
    return list(_PROVIDERS.keys())


def get_provider(
    backend: Backend,
    config: ProvidersConfig,
    client: httpx.Client | None = None,
) -> BaseRemoteProvider:
    """Instantiate the provider for a backend with current credentials.

    Args:
        backend: Remote backend of the active model.
        config: Provider settings (credentials, timeouts).
        client: Shared HTTP client.

    Returns:
        Configured provider instance.

    Raises:
        NotFoundError: If no provider is registered for the backend.
    """
    if backend not in _PROVIDERS:
        available = ", ".join(b.value for b in _PROVIDERS) or "none"
        raise NotFoundError(
            f"Provider '{backend.value}' not found. Available: {available}"
        )
    return _PROVIDERS[backend].from_settings(config, client=client)


def _register_builtin_providers() -> None:
    """Register built-in providers. Called on module import."""
    from dictum.stt.providers.assemblyai import AssemblyAIProvider
    from dictum.stt.providers.deepgram import DeepgramProvider
    from dictum.stt.providers.gladia import GladiaProvider
    from dictum.stt.providers.mistral import MistralProvider

    register_provider(Backend.MISTRAL, MistralProvider)
    register_provider(Backend.DEEPGRAM, DeepgramProvider)
    register_provider(Backend.ASSEMBLYAI, AssemblyAIProvider)
    register_provider(Backend.GLADIA, GladiaProvider)


# Register built-in providers on module import
_register_builtin_providers()
