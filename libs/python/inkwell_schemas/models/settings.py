"""Global settings document shared by every book."""

from __future__ import annotations

from pydantic import Field

from ..enums import Theme
from .book import WorkspaceDocument

DEFAULT_PROVIDER = "openai"
DEFAULT_MODEL = "gpt-4o-mini"


class SettingsData(WorkspaceDocument):
    """Provider selection and UI preferences stored in ``settings.json``.

    ``api_key_masked`` holds the credential itself; the name is kept for
    compatibility with existing settings files.
    """

    provider: str = Field(DEFAULT_PROVIDER, min_length=1)
    model: str = Field(DEFAULT_MODEL, min_length=1)
    api_key_masked: str = ""
    theme: Theme = Theme.LIGHT

    def has_credential(self) -> bool:
        return bool(self.api_key_masked.strip())
