"""Tests for the mock provider, the factory and response normalisation."""

import asyncio
import json
from types import SimpleNamespace

import pytest

from inkwell_providers import (
    MockProvider,
    ProviderConfig,
    ProviderFactory,
    ProviderRequest,
    ProviderSettings,
)
from inkwell_providers.anthropic import AnthropicProvider
from inkwell_providers.exceptions import ProviderConfigError, ProviderResponseError
from inkwell_providers.factory import NVIDIA_BASE_URL
from inkwell_providers.gemini import GeminiProvider
from inkwell_providers.openai import OpenAIProvider
from inkwell_providers.pricing import Rate, estimate_cost, lookup_rate


def _config(name: str, model: str = "model") -> ProviderConfig:
    return ProviderConfig(name=name, api_key="test-key", model=model, settings=ProviderSettings())


def test_mock_generate_sync() -> None:
    provider = MockProvider()
    request = ProviderRequest(prompt="Hello world")
    response = asyncio.run(provider.generate(request))
    assert response.model == "mock"
    assert "Mock response" in response.text
    assert response.prompt_tokens > 0


def test_factory_creates_mock_when_config_provided() -> None:
    provider = ProviderFactory.create(_config("mock"))
    assert isinstance(provider, MockProvider)


def test_mock_json_mode() -> None:
    provider = MockProvider()
    request = ProviderRequest(prompt="List facts", json_output=True)
    response = asyncio.run(provider.generate(request))
    assert response.text.startswith("{")


def test_mock_planning_payload_has_three_chapters() -> None:
    request = ProviderRequest(prompt="Plan", metadata={"stage": "planning"})
    response = MockProvider().generate_sync(request)
    chapters = json.loads(response.text)["chapters"]
    assert len(chapters) == 3
    assert all(chapter["chapterTitle"] for chapter in chapters)


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("openai", OpenAIProvider),
        ("nvidia", OpenAIProvider),
        ("anthropic", AnthropicProvider),
        ("google", GeminiProvider),
        ("Gemini", GeminiProvider),
    ],
)
def test_factory_maps_provider_names(name, expected) -> None:
    assert isinstance(ProviderFactory.create(_config(name)), expected)


def test_factory_points_nvidia_at_compatible_endpoint() -> None:
    provider = ProviderFactory.create(_config("nvidia"))
    assert provider._config.base_url == NVIDIA_BASE_URL
    assert provider.name == "nvidia"
    assert not provider.capabilities().supports_json_mode


def test_factory_normalises_aliases() -> None:
    assert ProviderFactory.create(_config(" Gemini ")).name == "google"


def test_factory_rejects_unknown_provider() -> None:
    with pytest.raises(ProviderConfigError):
        ProviderFactory.create(_config("carrier-pigeon"))


class _Recorder:
    def __init__(self, response):
        self.response = response
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        return self.response


def test_openai_response_is_normalised() -> None:
    provider = OpenAIProvider(_config("openai", "gpt-4o-mini"))
    completions = _Recorder(
        SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="  Chapter text  "))],
            usage=SimpleNamespace(prompt_tokens=1000, completion_tokens=2000),
            model="gpt-4o-mini",
        )
    )
    provider._client = SimpleNamespace(chat=SimpleNamespace(completions=completions))

    request = ProviderRequest(prompt="Write", system_prompt="Style", json_output=True)
    response = asyncio.run(provider.generate(request))

    assert response.text == "Chapter text"
    assert response.cost_usd == pytest.approx(0.00135)
    assert completions.kwargs["messages"][0] == {"role": "system", "content": "Style"}
    assert completions.kwargs["response_format"] == {"type": "json_object"}
    assert completions.kwargs["max_tokens"] == 2000


def test_openai_missing_choices_raise() -> None:
    provider = OpenAIProvider(_config("openai"))
    provider._client = SimpleNamespace(
        chat=SimpleNamespace(completions=_Recorder(SimpleNamespace(choices=[], model="m")))
    )
    with pytest.raises(ProviderResponseError):
        asyncio.run(provider.generate(ProviderRequest(prompt="Write")))


def test_anthropic_joins_text_blocks() -> None:
    provider = AnthropicProvider(_config("anthropic", "claude-sonnet-4-5"))
    messages = _Recorder(
        SimpleNamespace(
            content=[
                SimpleNamespace(type="text", text="Part one. "),
                SimpleNamespace(type="tool_use", text="ignored"),
                SimpleNamespace(type="text", text="Part two."),
            ],
            usage=SimpleNamespace(input_tokens=10, output_tokens=20),
            model="claude-sonnet-4-5",
        )
    )
    provider._client = SimpleNamespace(messages=messages)

    response = asyncio.run(provider.generate(ProviderRequest(prompt="Write", system_prompt="Style")))

    assert response.text == "Part one. Part two."
    assert response.prompt_tokens == 10
    assert messages.kwargs["system"] == "Style"
    assert messages.kwargs["max_tokens"] == 2000


def test_anthropic_without_text_raises() -> None:
    provider = AnthropicProvider(_config("anthropic"))
    provider._client = SimpleNamespace(messages=_Recorder(SimpleNamespace(content=[])))
    with pytest.raises(ProviderResponseError):
        asyncio.run(provider.generate(ProviderRequest(prompt="Write")))


def test_gemini_response_is_normalised() -> None:
    provider = GeminiProvider(_config("google", "gemini-2.5-flash"))
    models = SimpleNamespace()
    captured = {}

    async def generate_content(**kwargs):
        captured.update(kwargs)
        return SimpleNamespace(
            text=" Gemini prose ",
            usage_metadata=SimpleNamespace(prompt_token_count=3, candidates_token_count=None),
        )

    models.generate_content = generate_content
    provider._client = SimpleNamespace(aio=SimpleNamespace(models=models))

    response = asyncio.run(provider.generate(ProviderRequest(prompt="Write", json_output=True)))

    assert response.text == "Gemini prose"
    assert response.completion_tokens == 0
    assert captured["model"] == "gemini-2.5-flash"
    assert captured["config"].response_mime_type == "application/json"


def test_estimate_cost_tables() -> None:
    assert estimate_cost("mock", "mock", 100, 100) == 0.0
    assert estimate_cost("openai", "unknown-model", 100, 100) is None
    assert estimate_cost("anthropic", "claude-sonnet-4-5", 1_000_000, 0) == 3.0
    assert estimate_cost("gemini", "gemini-2.5-flash", 0, 1_000_000) == 2.5


def test_dated_models_use_longest_prefix_rate() -> None:
    assert lookup_rate("openai", "gpt-4o-mini-2024-07-18") == Rate(0.15, 0.6)
    assert lookup_rate("openai", "gpt-4o-2024-08-06") == Rate(2.5, 10.0)
    assert lookup_rate("nvidia", "meta/llama-3.1-70b-instruct") is None


def test_request_overrides_provider_settings() -> None:
    config = ProviderConfig(
        name="mock",
        api_key="k",
        model="mock",
        settings=ProviderSettings(temperature=0.9, max_output_tokens=None, top_p=0.5),
    )
    provider = MockProvider(config)

    defaults = provider.resolve_options(ProviderRequest(prompt="x"))
    overridden = provider.resolve_options(
        ProviderRequest(prompt="x", temperature=0.0, max_output_tokens=64, top_p=0.1)
    )

    assert (defaults.temperature, defaults.max_output_tokens, defaults.top_p) == (0.9, 2000, 0.5)
    assert (overridden.temperature, overridden.max_output_tokens, overridden.top_p) == (0.0, 64, 0.1)


def test_response_carries_provider_name_and_latency() -> None:
    response = MockProvider().generate_sync(ProviderRequest(prompt="Hello"))
    assert response.provider == "mock"
    assert response.cost_usd == 0.0
    assert response.latency_ms is not None and response.latency_ms >= 0
