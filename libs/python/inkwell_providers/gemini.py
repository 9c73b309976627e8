"""Google Gemini adapter built on the ``google-genai`` async client."""

from __future__ import annotations

from google import genai
from google.genai import types

from .base import CallOptions, Completion, LLMProvider, ProviderRequest
from .config import ProviderConfig
from .exceptions import ProviderResponseError


class GeminiProvider(LLMProvider):
    name = "google"
    native_json_mode = True

    def __init__(self, config: ProviderConfig) -> None:
        super().__init__(config)
        self._client = genai.Client(api_key=config.api_key)

    def _content_config(self, request: ProviderRequest, options: CallOptions) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            system_instruction=request.system_prompt or None,
            temperature=options.temperature,
            top_p=options.top_p,
            max_output_tokens=options.max_output_tokens,
            response_mime_type="application/json" if request.json_output else None,
        )

    async def _complete(self, request: ProviderRequest, options: CallOptions) -> Completion:
        response = await self._client.aio.models.generate_content(
            model=self.model,
            contents=request.prompt,
            config=self._content_config(request, options),
        )

        try:
            text = response.text
        except ValueError as exc:
            # Raised by the SDK when the candidate was blocked.
            raise ProviderResponseError(f"Gemini returned no text: {exc}", provider=self.name) from exc
        if text is None:
            raise ProviderResponseError("Gemini returned no text", provider=self.name)

        usage = getattr(response, "usage_metadata", None)
        return Completion(
            text=text,
            model=self.model,
            prompt_tokens=getattr(usage, "prompt_token_count", 0) or 0,
            completion_tokens=getattr(usage, "candidates_token_count", 0) or 0,
            raw=response,
        )
