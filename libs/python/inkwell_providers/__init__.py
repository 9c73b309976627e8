"""Adapters that turn the generation service's providers into plain text."""

from .base import (
    CallOptions,
    Completion,
    LLMProvider,
    ProviderCapabilities,
    ProviderRequest,
    ProviderResponse,
)
from .config import ProviderConfig, ProviderSettings, load_provider_config
from .factory import ProviderFactory, canonical_provider_name
from .mock import MockProvider

__all__ = [
    "CallOptions",
    "Completion",
    "LLMProvider",
    "ProviderCapabilities",
    "ProviderRequest",
    "ProviderResponse",
    "ProviderConfig",
    "ProviderSettings",
    "load_provider_config",
    "ProviderFactory",
    "canonical_provider_name",
    "MockProvider",
]
