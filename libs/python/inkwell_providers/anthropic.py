"""Anthropic Messages API adapter."""

from __future__ import annotations

from typing import Any

from anthropic import AsyncAnthropic

from .base import CallOptions, Completion, LLMProvider, ProviderRequest
from .config import ProviderConfig
from .exceptions import ProviderResponseError

# The Messages API rejects temperatures above 1.
MAX_TEMPERATURE = 1.0


class AnthropicProvider(LLMProvider):
    name = "anthropic"

    def __init__(self, config: ProviderConfig) -> None:
        super().__init__(config)
        self._client = AsyncAnthropic(api_key=config.api_key, base_url=config.base_url)

    async def _complete(self, request: ProviderRequest, options: CallOptions) -> Completion:
        params: dict[str, Any] = {
            "model": self.model,
            "max_tokens": options.max_output_tokens,
            "temperature": min(options.temperature, MAX_TEMPERATURE),
            "messages": [{"role": "user", "content": request.prompt}],
        }
        if request.system_prompt:
            params["system"] = request.system_prompt
        if options.top_p is not None:
            params["top_p"] = options.top_p

        message = await self._client.messages.create(**params)

        blocks = getattr(message, "content", None) or []
        text = "".join(block.text for block in blocks if getattr(block, "type", None) == "text")
        if not text:
            raise ProviderResponseError("Anthropic response has no text blocks", provider=self.name)

        usage = getattr(message, "usage", None)
        return Completion(
            text=text,
            model=getattr(message, "model", None) or self.model,
            prompt_tokens=getattr(usage, "input_tokens", 0) or 0,
            completion_tokens=getattr(usage, "output_tokens", 0) or 0,
            raw=message,
        )
