"""Tests for provider configuration loading."""

import os

import pytest

from inkwell_providers import ProviderConfig, ProviderSettings, load_provider_config
from inkwell_providers.config import DEFAULT_PROVIDER, PROVIDER_ENV_VAR
from inkwell_providers.exceptions import ProviderConfigError


@pytest.fixture(autouse=True)
def clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith(("OPENAI_", "ANTHROPIC_", "GEMINI_", "GOOGLE_", "NVIDIA_")):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv(PROVIDER_ENV_VAR, raising=False)


def test_load_openai_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(PROVIDER_ENV_VAR, "openai")
    monkeypatch.setenv("OPENAI_API_KEY", "key")
    monkeypatch.setenv("OPENAI_MODEL", "gpt-4.1")
    cfg = load_provider_config()
    assert cfg.name == "openai"
    assert cfg.api_key == "key"
    assert cfg.settings.temperature == 0.7
    assert cfg.settings.max_output_tokens == 2000
    assert cfg.settings.timeout_seconds is None


def test_default_provider_is_openai(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "key")
    monkeypatch.setenv("OPENAI_MODEL", "gpt-4o-mini")
    assert DEFAULT_PROVIDER == "openai"
    assert load_provider_config().name == "openai"


def test_missing_variables_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(PROVIDER_ENV_VAR, "anthropic")
    with pytest.raises(ProviderConfigError):
        load_provider_config()


def test_custom_prefix_and_tuning(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MYPROV_API_KEY", "abc")
    monkeypatch.setenv("MYPROV_MODEL", "model")
    monkeypatch.setenv("MYPROV_TEMPERATURE", "0.4")
    monkeypatch.setenv("MYPROV_MAX_OUTPUT_TOKENS", "512")
    monkeypatch.setenv("MYPROV_TOP_P", "0.9")
    monkeypatch.setenv("MYPROV_TIMEOUT_SECONDS", "30")
    cfg = load_provider_config(prefix="myprov")
    assert cfg.name == "myprov"
    assert cfg.settings.temperature == 0.4
    assert cfg.settings.max_output_tokens == 512
    assert cfg.settings.top_p == 0.9
    assert cfg.settings.timeout_seconds == 30


@pytest.mark.parametrize(
    ("key", "value"),
    [("TEMPERATURE", "warm"), ("MAX_OUTPUT_TOKENS", "many"), ("TOP_P", "x"), ("TIMEOUT_SECONDS", "soon")],
)
def test_invalid_tuning_values_raise(monkeypatch: pytest.MonkeyPatch, key: str, value: str) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "key")
    monkeypatch.setenv("OPENAI_MODEL", "gpt-4o")
    monkeypatch.setenv(f"OPENAI_{key}", value)
    with pytest.raises(ProviderConfigError):
        load_provider_config()


def test_config_is_frozen() -> None:
    cfg = ProviderConfig(name="openai", api_key="k", model="m", settings=ProviderSettings())
    with pytest.raises(Exception):
        cfg.api_key = "other"


def test_explicit_environment_mapping_and_base_url() -> None:
    env = {
        "LLM_PROVIDER": "nvidia",
        "NVIDIA_API_KEY": " nv-key ",
        "NVIDIA_MODEL": "meta/llama-3.1-70b-instruct",
        "NVIDIA_BASE_URL": "https://gateway.example/v1",
        "NVIDIA_MAX_OUTPUT_TOKENS": "0",
    }
    cfg = load_provider_config(environ=env)
    assert cfg.name == "nvidia"
    assert cfg.api_key == "nv-key"
    assert cfg.base_url == "https://gateway.example/v1"
    assert cfg.settings.max_output_tokens is None
    assert cfg.has_credential


def test_out_of_range_tuning_is_a_config_error() -> None:
    env = {"OPENAI_API_KEY": "key", "OPENAI_MODEL": "gpt-4o", "OPENAI_TEMPERATURE": "5"}
    with pytest.raises(ProviderConfigError):
        load_provider_config(environ=env)
