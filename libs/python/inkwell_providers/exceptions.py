"""Errors raised by provider adapters."""

from __future__ import annotations


class ProviderError(RuntimeError):
    """A provider could not be built or did not produce usable output."""

    def __init__(self, message: str, *, provider: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider


class ProviderConfigError(ProviderError):
    """Provider name, credential or tuning values are missing or invalid."""


class ProviderResponseError(ProviderError):
    """The provider answered, but without text the engine can use."""
