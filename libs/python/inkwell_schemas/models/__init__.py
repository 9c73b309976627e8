from .book import (
    BOOK_ID_PATTERN,
    CHAPTER_ID_PATTERN,
    BookMeta,
    ChapterData,
    Clue,
    LoreData,
    OutlineNode,
    StylePreset,
    WorkspaceDocument,
)
from .settings import SettingsData

__all__ = [
    "BOOK_ID_PATTERN",
    "CHAPTER_ID_PATTERN",
    "BookMeta",
    "ChapterData",
    "Clue",
    "LoreData",
    "OutlineNode",
    "SettingsData",
    "StylePreset",
    "WorkspaceDocument",
]
