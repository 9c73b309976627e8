"""Pydantic models and enums describing a book workspace."""

from .enums import TERMINAL_OUTLINE_STATUSES, ClueStatus, OutlineStatus, Theme
from .models import (
    BOOK_ID_PATTERN,
    CHAPTER_ID_PATTERN,
    BookMeta,
    ChapterData,
    Clue,
    LoreData,
    OutlineNode,
    SettingsData,
    StylePreset,
    WorkspaceDocument,
)
from .utils import count_content_characters, utc_now_iso

__all__ = [
    "BOOK_ID_PATTERN",
    "CHAPTER_ID_PATTERN",
    "TERMINAL_OUTLINE_STATUSES",
    "BookMeta",
    "ChapterData",
    "Clue",
    "ClueStatus",
    "LoreData",
    "OutlineNode",
    "OutlineStatus",
    "SettingsData",
    "StylePreset",
    "Theme",
    "WorkspaceDocument",
    "count_content_characters",
    "utc_now_iso",
]
