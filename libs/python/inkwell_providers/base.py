"""Provider-neutral request/response types and the adapter base class."""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, MutableMapping

from .pricing import estimate_cost

if TYPE_CHECKING:  # pragma: no cover - imported for type checking only
    from .config import ProviderConfig

# Used when neither the request nor the provider settings cap the output.
FALLBACK_MAX_OUTPUT_TOKENS = 2000


@dataclass(slots=True)
class ProviderRequest:
    """One generation call as the engine describes it."""

    prompt: str
    system_prompt: str | None = None
    json_output: bool = False
    temperature: float | None = None
    max_output_tokens: int | None = None
    top_p: float | None = None
    metadata: MutableMapping[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class CallOptions:
    """Sampling parameters after request overrides are applied to settings."""

    temperature: float
    max_output_tokens: int
    top_p: float | None = None


@dataclass(slots=True)
class Completion:
    """What an adapter extracted from its provider's native response."""

    text: str
    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    raw: Any = None


@dataclass(slots=True)
class ProviderResponse:
    """Normalised result of a generation call."""

    text: str
    model: str
    provider: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    cost_usd: float | None = None
    latency_ms: float | None = None
    raw: Any = None
    received_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(slots=True)
class ProviderCapabilities:
    supports_json_mode: bool = False
    supports_system_prompt: bool = True
    max_output_tokens: int | None = None


class LLMProvider(ABC):
    """Base class for provider adapters.

    Subclasses implement :meth:`_complete`, turning a request into a
    :class:`Completion`. :meth:`generate` resolves sampling options, times the
    call and attaches the cost estimate.
    """

    name: str = "provider"
    native_json_mode: bool = False

    def __init__(self, config: "ProviderConfig") -> None:
        self._config = config
        self.name = config.name

    @property
    def model(self) -> str:
        return self._config.model

    def capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(
            supports_json_mode=self.native_json_mode,
            max_output_tokens=self._config.settings.max_output_tokens,
        )

    def resolve_options(self, request: ProviderRequest) -> CallOptions:
        settings = self._config.settings
        temperature = request.temperature
        if temperature is None:
            temperature = settings.temperature
        max_output = request.max_output_tokens or settings.max_output_tokens
        top_p = request.top_p if request.top_p is not None else settings.top_p
        return CallOptions(
            temperature=temperature,
            max_output_tokens=max_output or FALLBACK_MAX_OUTPUT_TOKENS,
            top_p=top_p,
        )

    @abstractmethod
    async def _complete(self, request: ProviderRequest, options: CallOptions) -> Completion:
        """Call the provider and extract text and usage."""

    async def generate(self, request: ProviderRequest) -> ProviderResponse:
        options = self.resolve_options(request)
        started = time.perf_counter()
        completion = await self._complete(request, options)
        latency_ms = (time.perf_counter() - started) * 1000
        return ProviderResponse(
            text=completion.text.strip(),
            model=completion.model,
            provider=self.name,
            prompt_tokens=completion.prompt_tokens,
            completion_tokens=completion.completion_tokens,
            cost_usd=estimate_cost(
                self.name, completion.model, completion.prompt_tokens, completion.completion_tokens
            ),
            latency_ms=latency_ms,
            raw=completion.raw,
        )

    def generate_sync(self, request: ProviderRequest) -> ProviderResponse:
        """Blocking helper for scripts without a running event loop."""

        return asyncio.run(self.generate(request))
