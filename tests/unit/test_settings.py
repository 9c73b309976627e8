"""Tests for the settings document and provider resolution."""

from __future__ import annotations

import json

import pytest

from inkwell_schemas import SettingsData, Theme
from services.workspace.app import storage
from services.workspace.app.errors import InvalidInputError
from services.workspace.app.generation import load_generation_service
from services.workspace.app.settings import (
    mask_api_key,
    provider_config_from_settings,
    public_settings,
    read_settings,
    update_settings,
)

pytestmark = pytest.mark.anyio("asyncio")


@pytest.fixture
def anyio_backend():
    return "asyncio"


async def test_default_settings_are_materialised(data_root) -> None:
    settings = await read_settings()

    assert settings.provider == "openai"
    assert settings.model == "gpt-4o-mini"
    assert settings.theme == Theme.LIGHT
    stored = json.loads(storage.settings_path().read_text(encoding="utf-8"))
    assert stored == {
        "provider": "openai",
        "model": "gpt-4o-mini",
        "apiKeyMasked": "",
        "theme": "light",
    }


async def test_update_merges_over_existing(data_root) -> None:
    await update_settings({"provider": "Anthropic", "apiKeyMasked": "sk-ant-1234567890"})
    updated = await update_settings({"theme": "dark"})

    assert updated.provider == "anthropic"
    assert updated.api_key_masked == "sk-ant-1234567890"
    assert updated.theme == Theme.DARK
    assert await read_settings() == updated


async def test_invalid_settings_update_rejected(data_root) -> None:
    with pytest.raises(InvalidInputError):
        await update_settings({"theme": "sepia"})
    assert (await read_settings()).theme == Theme.LIGHT


async def test_public_settings_mask_the_credential(data_root) -> None:
    await update_settings({"apiKeyMasked": "sk-live-abcdefghijkl"})

    shown = await public_settings()

    assert shown.api_key_masked.startswith("sk-l")
    assert shown.api_key_masked.endswith("ijkl")
    assert "abcdefgh" not in shown.api_key_masked
    assert (await read_settings()).api_key_masked == "sk-live-abcdefghijkl"


def test_mask_api_key_short_values() -> None:
    assert mask_api_key("") == ""
    assert mask_api_key("abc") == "***"


def test_provider_config_from_stored_credential(data_root) -> None:
    settings = SettingsData(provider="gemini", model="gemini-2.0-flash", api_key_masked=" key-123 ")
    config = provider_config_from_settings(settings)
    assert config.name == "google"
    assert config.api_key == "key-123"
    assert config.model == "gemini-2.0-flash"


def test_mock_provider_needs_no_credential(data_root) -> None:
    config = provider_config_from_settings(SettingsData(provider="mock"))
    assert config.name == "mock"


def test_missing_credential_falls_back_to_environment(data_root, monkeypatch) -> None:
    assert provider_config_from_settings(SettingsData()) is None

    monkeypatch.setenv("LLM_PROVIDER", "openai")
    monkeypatch.setenv("OPENAI_API_KEY", "env-key-123456")
    monkeypatch.setenv("OPENAI_MODEL", "gpt-4.1-mini")
    config = provider_config_from_settings(SettingsData())
    assert config.api_key == "env-key-123456"
    assert config.model == "gpt-4.1-mini"


def test_environment_fallback_uses_the_selected_provider(data_root, monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "env-key-123456")
    monkeypatch.setenv("OPENAI_MODEL", "gpt-4.1-mini")
    settings = SettingsData(provider="anthropic", model="claude-3-5-haiku-latest")

    assert provider_config_from_settings(settings) is None

    monkeypatch.setenv("ANTHROPIC_API_KEY", "anthropic-key-123456")
    monkeypatch.setenv("ANTHROPIC_MODEL", "claude-3-5-haiku-latest")
    config = provider_config_from_settings(settings)
    assert config.name == "anthropic"
    assert config.api_key == "anthropic-key-123456"


async def test_generation_service_follows_settings(data_root) -> None:
    assert not (await load_generation_service()).is_configured()

    await update_settings({"provider": "mock"})
    service = await load_generation_service(timeout_seconds=5)

    assert service.is_configured()
    assert service.provider_name == "mock"
    assert service.timeout_seconds == 5
