"""Domain models describing a book workspace and its documents.

Attributes use snake_case; persisted documents use the camelCase keys produced
by the shared alias generator so files stay readable by earlier versions.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator
from pydantic.alias_generators import to_camel

from ..enums import ClueStatus, OutlineStatus
from ..utils.validators import count_content_characters, utc_now_iso

BOOK_ID_PATTERN = r"^book_[A-Za-z0-9_-]+$"
CHAPTER_ID_PATTERN = r"^ch_\d{3}$"


class WorkspaceDocument(BaseModel):
    """Base class for every model persisted as a workspace JSON document."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class StylePreset(WorkspaceDocument):
    """Reusable generation style; books keep a snapshot, never a live reference."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    system_prompt: str = ""
    vocabulary: list[str] = Field(default_factory=list)
    prohibited_words: list[str] = Field(default_factory=list)
    is_default: bool = False


class BookMeta(WorkspaceDocument):
    """Identity and authoring parameters for one book."""

    id: str = Field(..., pattern=BOOK_ID_PATTERN)
    title: str = Field(..., min_length=1)
    one_liner: str = ""
    genre: str = ""
    readers: str = ""
    target_words: PositiveInt = 120000
    pace: str = "normal"
    style_snapshot: Optional[StylePreset] = None
    final_goal: str = ""
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)


class Clue(WorkspaceDocument):
    """A foreshadowing thread tracked in the lore ledger."""

    id: str
    title: str = Field(..., min_length=1)
    status: ClueStatus = ClueStatus.PENDING


class LoreData(WorkspaceDocument):
    """Consistency ledger for one book."""

    world: str = ""
    factions: list[str] = Field(default_factory=list)
    protagonist: str = ""
    side_characters: list[str] = Field(default_factory=list)
    clues: list[Clue] = Field(default_factory=list)

    @field_validator("clues")
    @classmethod
    def collapse_duplicate_titles(cls, clues: list[Clue]) -> list[Clue]:
        # Titles are unique; a duplicate folds into the first entry and a
        # resolved duplicate wins over a pending one.
        by_title: dict[str, Clue] = {}
        for clue in clues:
            kept = by_title.get(clue.title)
            if kept is None:
                by_title[clue.title] = clue
            elif clue.status == ClueStatus.RESOLVED:
                kept.status = ClueStatus.RESOLVED
        return list(by_title.values())

    def pending_clue_titles(self) -> list[str]:
        return [clue.title for clue in self.clues if clue.status == ClueStatus.PENDING]


class OutlineNode(WorkspaceDocument):
    """A planned narrative unit within the rolling outline window."""

    chapter_id: str = Field(..., pattern=CHAPTER_ID_PATTERN)
    chapter_title: str = Field(..., min_length=1)
    chapter_content_outline: str = ""
    characters: list[str] = Field(default_factory=list)
    clues: list[str] = Field(default_factory=list)
    status: OutlineStatus = OutlineStatus.PLANNED
    summary: Optional[str] = None
    character_notes: Optional[dict[str, str]] = None

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ChapterData(WorkspaceDocument):
    """Prose persisted for one outline node."""

    chapter_id: str = Field(..., pattern=CHAPTER_ID_PATTERN)
    title: str
    content: str
    word_count: int = Field(0, ge=0)
    updated_at: str = Field(default_factory=utc_now_iso)

    @classmethod
    def from_content(cls, chapter_id: str, title: str, content: str) -> "ChapterData":
        return cls(
            chapter_id=chapter_id,
            title=title,
            content=content,
            word_count=count_content_characters(content),
        )
