"""Token price lookup used to attach cost estimates to responses."""

from __future__ import annotations

from typing import Mapping, NamedTuple


class Rate(NamedTuple):
    """USD per one million input and output tokens."""

    input: float
    output: float


# Keyed by provider family. Model names are matched by longest prefix so
# dated snapshots ("gpt-4o-mini-2024-07-18") use their base model's rate.
PRICE_TABLE: Mapping[str, Mapping[str, Rate]] = {
    "openai": {
        "gpt-4o": Rate(2.5, 10.0),
        "gpt-4o-mini": Rate(0.15, 0.6),
        "gpt-4.1": Rate(2.0, 8.0),
        "gpt-4.1-mini": Rate(0.4, 1.6),
        "gpt-5": Rate(1.25, 10.0),
        "gpt-5-mini": Rate(0.25, 2.0),
    },
    "google": {
        "gemini-2.5-pro": Rate(1.25, 10.0),
        "gemini-2.5-flash": Rate(0.30, 2.5),
    },
    "anthropic": {
        "claude-3-5-haiku": Rate(0.8, 4.0),
        "claude-sonnet-4-5": Rate(3.0, 15.0),
        "claude-opus-4-1": Rate(15.0, 75.0),
    },
}

FREE_PROVIDERS = frozenset({"mock"})
_FAMILY_ALIASES = {"gemini": "google"}


def lookup_rate(provider: str, model: str) -> Rate | None:
    family = (provider or "").lower()
    table = PRICE_TABLE.get(_FAMILY_ALIASES.get(family, family))
    if not table:
        return None
    model_key = (model or "").lower()
    matches = [name for name in table if model_key.startswith(name)]
    if not matches:
        return None
    return table[max(matches, key=len)]


def estimate_cost(
    provider: str,
    model: str,
    prompt_tokens: int | float | None,
    completion_tokens: int | float | None,
) -> float | None:
    """Approximate USD cost of one call, or ``None`` when the model is unpriced."""

    if (provider or "").lower() in FREE_PROVIDERS:
        return 0.0
    rate = lookup_rate(provider, model)
    if rate is None:
        return None
    prompt = max(float(prompt_tokens or 0), 0.0)
    completion = max(float(completion_tokens or 0), 0.0)
    return round((prompt * rate.input + completion * rate.output) / 1_000_000, 6)


__all__ = ["PRICE_TABLE", "Rate", "estimate_cost", "lookup_rate"]
