"""Global settings document and provider configuration derived from it."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from inkwell_providers import (
    ProviderConfig,
    ProviderSettings,
    canonical_provider_name,
    load_provider_config,
)
from inkwell_providers.exceptions import ProviderConfigError
from inkwell_schemas import SettingsData

from . import storage
from .locks import DOCUMENT_LOCKS, SETTINGS_LOCK_KEY
from .models import SettingsUpdateRequest, parse_request, provided_fields

logger = logging.getLogger(__name__)


async def read_settings() -> SettingsData:
    """Current settings; the default document is written on first access."""

    return await storage.load_settings()


async def update_settings(
    request: SettingsUpdateRequest | Mapping[str, Any],
) -> SettingsData:
    """Merge the supplied fields over the stored document."""

    update = parse_request(SettingsUpdateRequest, request)
    changes = provided_fields(update)
    if "provider" in changes:
        changes["provider"] = changes["provider"].strip().lower()

    async with DOCUMENT_LOCKS.get(SETTINGS_LOCK_KEY):
        current = await storage.load_settings()
        merged = SettingsData.model_validate({**current.model_dump(), **changes})
        await storage.save_settings(merged)

    logger.info(
        "Settings updated",
        extra={
            "provider": merged.provider,
            "fields": sorted(key for key in changes if key != "api_key_masked"),
            "credential_changed": "api_key_masked" in changes,
        },
    )
    return merged


def mask_api_key(api_key: str) -> str:
    key = api_key.strip()
    if not key:
        return ""
    if len(key) <= 8:
        return "*" * len(key)
    return f"{key[:4]}{'*' * (len(key) - 8)}{key[-4:]}"


async def public_settings() -> SettingsData:
    """Settings safe to display: the credential is masked."""

    settings = await read_settings()
    return settings.model_copy(update={"api_key_masked": mask_api_key(settings.api_key_masked)})


def provider_config_from_settings(settings: SettingsData) -> ProviderConfig | None:
    """Provider configuration for ``settings`` or ``None`` when not configured.

    A document without a credential falls back to the environment variables
    of its own provider (``OPENAI_API_KEY``, ``ANTHROPIC_MODEL``, ...).
    """

    name = canonical_provider_name(settings.provider)

    if name == "mock":
        return ProviderConfig(name="mock", api_key="mock", model="mock", settings=ProviderSettings())

    if settings.has_credential():
        return ProviderConfig(
            name=name,
            api_key=settings.api_key_masked.strip(),
            model=settings.model,
        )

    try:
        return load_provider_config(prefix=name)
    except ProviderConfigError:
        logger.debug("No provider credential configured", extra={"provider": name})
        return None
