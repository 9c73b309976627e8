"""Chat Completions adapter for OpenAI and OpenAI-compatible endpoints."""

from __future__ import annotations

from typing import Any

from openai import AsyncOpenAI

from .base import CallOptions, Completion, LLMProvider, ProviderRequest
from .config import ProviderConfig
from .exceptions import ProviderResponseError


class OpenAIProvider(LLMProvider):
    name = "openai"

    def __init__(self, config: ProviderConfig) -> None:
        super().__init__(config)
        # Compatible gateways (NVIDIA) accept the same payload but not
        # every one honours ``response_format``.
        self.native_json_mode = config.name == "openai"
        self._client = AsyncOpenAI(api_key=config.api_key, base_url=config.base_url)

    def _messages(self, request: ProviderRequest) -> list[dict[str, str]]:
        messages = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": request.prompt})
        return messages

    async def _complete(self, request: ProviderRequest, options: CallOptions) -> Completion:
        params: dict[str, Any] = {
            "model": self.model,
            "messages": self._messages(request),
            "temperature": options.temperature,
            "max_tokens": options.max_output_tokens,
        }
        if options.top_p is not None:
            params["top_p"] = options.top_p
        if request.json_output and self.native_json_mode:
            params["response_format"] = {"type": "json_object"}

        response = await self._client.chat.completions.create(**params)

        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices else None
        if content is None:
            raise ProviderResponseError("OpenAI response has no message content", provider=self.name)

        usage = getattr(response, "usage", None)
        return Completion(
            text=content,
            model=getattr(response, "model", None) or self.model,
            prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
            raw=response,
        )
