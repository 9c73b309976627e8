"""Provider selection and tuning, from explicit values or the environment."""

from __future__ import annotations

import os
from typing import Callable, Mapping

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import ProviderConfigError

PROVIDER_ENV_VAR = "LLM_PROVIDER"
DEFAULT_PROVIDER = "openai"


class ProviderSettings(BaseModel):
    """Sampling defaults applied when a request does not override them."""

    model_config = ConfigDict(frozen=True)

    temperature: float = Field(0.7, ge=0, le=2)
    max_output_tokens: int | None = Field(2000, ge=16)
    top_p: float | None = Field(None, ge=0, le=1)
    timeout_seconds: float | None = Field(None, gt=0)


class ProviderConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    api_key: str
    model: str
    base_url: str | None = None
    settings: ProviderSettings = Field(default_factory=ProviderSettings)

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key.strip())


def _positive_int_or_none(raw: str) -> int | None:
    value = int(raw)
    return value if value > 0 else None


# Optional tuning variables: suffix -> (settings field, parser, error hint).
_TUNING_VARS: Mapping[str, tuple[str, Callable[[str], object], str]] = {
    "TEMPERATURE": ("temperature", float, "a number between 0 and 2"),
    "MAX_OUTPUT_TOKENS": ("max_output_tokens", _positive_int_or_none, "an integer"),
    "TOP_P": ("top_p", float, "a number between 0 and 1"),
    "TIMEOUT_SECONDS": ("timeout_seconds", float, "a number of seconds"),
}


def _read_settings(env_prefix: str, environ: Mapping[str, str]) -> ProviderSettings:
    values: dict[str, object] = {}
    for suffix, (field_name, parse, hint) in _TUNING_VARS.items():
        raw = environ.get(f"{env_prefix}_{suffix}", "").strip()
        if not raw:
            continue
        try:
            values[field_name] = parse(raw)
        except ValueError as exc:
            raise ProviderConfigError(f"{env_prefix}_{suffix} must be {hint}") from exc
    try:
        return ProviderSettings(**values)
    except ValueError as exc:
        raise ProviderConfigError(f"Invalid {env_prefix} tuning: {exc}") from exc


def load_provider_config(
    prefix: str | None = None, environ: Mapping[str, str] | None = None
) -> ProviderConfig:
    """Build a :class:`ProviderConfig` from ``<PREFIX>_*`` environment variables.

    The prefix defaults to ``$LLM_PROVIDER`` (or ``openai``). ``_API_KEY`` and
    ``_MODEL`` are required; ``_BASE_URL``, ``_TEMPERATURE``,
    ``_MAX_OUTPUT_TOKENS``, ``_TOP_P`` and ``_TIMEOUT_SECONDS`` are optional.

    Raises:
        ProviderConfigError: a required variable is missing or a tuning value
            does not parse.
    """

    env = os.environ if environ is None else environ
    provider_name = (prefix or env.get(PROVIDER_ENV_VAR) or DEFAULT_PROVIDER).strip()
    env_prefix = provider_name.upper()

    api_key = env.get(f"{env_prefix}_API_KEY", "").strip()
    model = env.get(f"{env_prefix}_MODEL", "").strip()
    if not api_key or not model:
        raise ProviderConfigError(
            f"{env_prefix}_API_KEY and {env_prefix}_MODEL must both be set",
            provider=provider_name.lower(),
        )

    return ProviderConfig(
        name=provider_name.lower(),
        api_key=api_key,
        model=model,
        base_url=env.get(f"{env_prefix}_BASE_URL", "").strip() or None,
        settings=_read_settings(env_prefix, env),
    )
