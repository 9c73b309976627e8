"""Maps provider names to adapter classes."""

from __future__ import annotations

from typing import Dict, Type

from .anthropic import AnthropicProvider
from .base import LLMProvider
from .config import ProviderConfig, load_provider_config
from .exceptions import ProviderConfigError
from .gemini import GeminiProvider
from .mock import MockProvider
from .openai import OpenAIProvider

NVIDIA_BASE_URL = "https://integrate.api.nvidia.com/v1"

PROVIDER_MAP: Dict[str, Type[LLMProvider]] = {
    "openai": OpenAIProvider,
    "nvidia": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "google": GeminiProvider,
    "mock": MockProvider,
}

PROVIDER_ALIASES = {"gemini": "google"}

# OpenAI-compatible services reached through the OpenAI adapter.
DEFAULT_BASE_URLS = {"nvidia": NVIDIA_BASE_URL}


def canonical_provider_name(name: str) -> str:
    key = name.strip().lower()
    return PROVIDER_ALIASES.get(key, key)


class ProviderFactory:
    @staticmethod
    def create(config: ProviderConfig | None = None) -> LLMProvider:
        """Adapter for ``config`` (or the environment when omitted)."""

        if config is None:
            config = load_provider_config()
        key = canonical_provider_name(config.name)
        provider_cls = PROVIDER_MAP.get(key)
        if provider_cls is None:
            raise ProviderConfigError(f"Unknown provider: {config.name}", provider=config.name)

        updates: dict[str, str] = {"name": key}
        if not config.base_url and key in DEFAULT_BASE_URLS:
            updates["base_url"] = DEFAULT_BASE_URLS[key]
        return provider_cls(config.model_copy(update=updates))
