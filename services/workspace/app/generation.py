"""Client for the external content-generation service.

The engine only ever sees plain text. Provider specific response shapes are
normalised by the adapters in :mod:`inkwell_providers`; every failure mode
(missing credential, transport error, timeout, empty text) surfaces here as
:class:`GenerationUnavailableError` so each component can apply its own
fallback.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from inkwell_observability import (
    log_context,
    observe_generation_failure,
    observe_provider_response,
)
from inkwell_providers import LLMProvider, ProviderConfig, ProviderFactory, ProviderRequest
from inkwell_providers.exceptions import ProviderError

from .config import SERVICE_NAME, generation_timeout_seconds
from .context import fit_prompt
from .errors import GenerationUnavailableError, NotConfiguredError
from .models import ConnectionTestRequest
from .settings import provider_config_from_settings, read_settings

logger = logging.getLogger(__name__)

MIN_API_KEY_LENGTH = 10


class GenerationService:
    """Generates text through one configured provider.

    Configuration is injected explicitly; ``provider`` may be supplied to
    bypass the factory (test doubles, pre-built clients).
    """

    def __init__(
        self,
        config: ProviderConfig | None,
        provider: LLMProvider | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._config = config
        self._provider = provider
        if timeout_seconds is None and config is not None:
            timeout_seconds = config.settings.timeout_seconds
        self._timeout_seconds = timeout_seconds or generation_timeout_seconds()

    @property
    def provider_name(self) -> str:
        return self._config.name if self._config is not None else "unconfigured"

    @property
    def timeout_seconds(self) -> float:
        return self._timeout_seconds

    def with_timeout(self, timeout_seconds: float) -> "GenerationService":
        """Same provider and configuration with a different per-call timeout."""

        return GenerationService(self._config, provider=self._provider, timeout_seconds=timeout_seconds)

    def is_configured(self) -> bool:
        return self._config is not None and self._config.has_credential

    def _count_failure(self, stage: str, reason: str) -> None:
        observe_generation_failure(
            stage=stage, provider=self.provider_name, service_name=SERVICE_NAME, reason=reason
        )

    def _resolve_provider(self) -> LLMProvider:
        if self._provider is None:
            try:
                self._provider = ProviderFactory.create(self._config)
            except ProviderError as exc:
                raise GenerationUnavailableError(str(exc)) from exc
        return self._provider

    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        *,
        stage: str = "generic",
        json_output: bool = False,
        temperature: float | None = None,
    ) -> str:
        if not self.is_configured():
            raise NotConfiguredError("Generation service credential is not configured")
        provider = self._resolve_provider()

        trimmed_prompt, was_trimmed = fit_prompt(prompt)
        request = ProviderRequest(
            prompt=trimmed_prompt,
            system_prompt=system_prompt or None,
            json_output=json_output,
            temperature=temperature,
            metadata={"stage": stage, "trimmed": was_trimmed},
        )

        with log_context(stage=stage, provider=self.provider_name):
            try:
                response = await asyncio.wait_for(
                    provider.generate(request), timeout=self._timeout_seconds
                )
            except asyncio.TimeoutError as exc:
                logger.warning(
                    "Generation call timed out",
                    extra={"timeout_seconds": self._timeout_seconds},
                )
                self._count_failure(stage, "timeout")
                raise GenerationUnavailableError(
                    f"Generation timed out after {self._timeout_seconds:g}s"
                ) from exc
            except Exception as exc:
                # Provider failures of every kind mean the service is
                # unavailable for this call.
                logger.warning("Generation call failed", extra={"error": str(exc)})
                self._count_failure(stage, "error")
                raise GenerationUnavailableError(f"Generation failed: {exc}") from exc

            text = (response.text or "").strip()
            if not text:
                self._count_failure(stage, "empty")
                raise GenerationUnavailableError("Generation returned no text")

            observe_provider_response(
                stage=stage,
                provider=self.provider_name,
                service_name=SERVICE_NAME,
                response=response,
            )
            logger.debug(
                "Generation call completed",
                extra={
                    "prompt_tokens": response.prompt_tokens,
                    "completion_tokens": response.completion_tokens,
                    "latency_ms": response.latency_ms,
                },
            )
        return text


async def load_generation_service(timeout_seconds: float | None = None) -> GenerationService:
    """Build a service from the persisted settings (or the environment)."""

    settings = await read_settings()
    return GenerationService(
        provider_config_from_settings(settings), timeout_seconds=timeout_seconds
    )


@dataclass(frozen=True)
class ConnectionTestResult:
    success: bool
    message: str


async def check_connection(
    request: ConnectionTestRequest,
    provider: LLMProvider | None = None,
) -> ConnectionTestResult:
    """Issue a minimal generation with candidate credentials; persists nothing."""

    if len(request.api_key.strip()) < MIN_API_KEY_LENGTH:
        return ConnectionTestResult(False, "API key is too short; check that it was copied fully")

    config = ProviderConfig(
        name=request.provider,
        api_key=request.api_key.strip(),
        model=request.model,
    )
    service = GenerationService(config, provider=provider, timeout_seconds=request.timeout_seconds)
    try:
        await service.generate(
            'Reply with the words "connection ok".',
            "You are a terse assistant.",
            stage="connection_test",
            temperature=0.0,
        )
    except GenerationUnavailableError as exc:
        return ConnectionTestResult(False, str(exc))
    return ConnectionTestResult(True, "Generation service reachable")

