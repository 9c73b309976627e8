"""Book lifecycle, workspace reads and progress accounting."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from inkwell_observability import log_context
from inkwell_schemas import (
    BookMeta,
    ChapterData,
    Clue,
    ClueStatus,
    LoreData,
    OutlineNode,
    OutlineStatus,
    StylePreset,
    utc_now_iso,
)

from . import storage
from .errors import NotFoundError, StorageError
from .locks import DOCUMENT_LOCKS, GENERATIONS
from .models import (
    BookCreateRequest,
    BookUpdateRequest,
    ChapterUpdateRequest,
    parse_request,
    provided_fields,
)
from .styles import get_default_style, get_style

logger = logging.getLogger(__name__)

MAX_BOOK_ID_ATTEMPTS = 5


@dataclass
class WorkspaceSnapshot:
    meta: Optional[BookMeta]
    lore: LoreData
    outline: list[OutlineNode]


@dataclass
class ClueCounts:
    total: int = 0
    pending: int = 0
    resolved: int = 0


@dataclass
class BookStats:
    progress: int
    total_word_count: int
    completed_chapters: int
    clue_stats: ClueCounts
    outline_stats: dict[str, int]
    updated_at: str


@dataclass
class ClueListing:
    pending: list[Clue] = field(default_factory=list)
    resolved: list[Clue] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.pending) + len(self.resolved)


async def _snapshot_style(style_id: Optional[str]) -> Optional[StylePreset]:
    if style_id:
        return (await get_style(style_id)).model_copy(deep=True)
    default = await get_default_style()
    return default.model_copy(deep=True) if default is not None else None


async def _allocate_book_id() -> str:
    for _ in range(MAX_BOOK_ID_ATTEMPTS):
        book_id = storage.create_book_id()
        if not await storage.book_exists(book_id):
            return book_id
        logger.warning("Book id collision; regenerating", extra={"book_id": book_id})
    raise StorageError("Could not allocate an unused book id")


async def create_book(request: BookCreateRequest | Mapping[str, Any]) -> BookMeta:
    """Create ``meta.json`` plus an empty lore ledger and outline."""

    payload = parse_request(BookCreateRequest, request)
    style_snapshot = await _snapshot_style(payload.style_id)
    book_id = await _allocate_book_id()

    now = utc_now_iso()
    meta = BookMeta(
        id=book_id,
        title=payload.title,
        one_liner=payload.one_liner,
        genre=payload.genre,
        readers=payload.readers,
        target_words=payload.target_words,
        pace=payload.pace,
        style_snapshot=style_snapshot,
        created_at=now,
        updated_at=now,
    )
    async with DOCUMENT_LOCKS.get(book_id):
        await storage.save_book_meta(meta)
        await storage.save_lore(book_id, storage.default_lore())
        await storage.save_outline(book_id, [])

    with log_context(book_id=book_id):
        logger.info(
            "Book created",
            extra={"style_id": style_snapshot.id if style_snapshot else None},
        )
    return meta


async def get_book_meta(book_id: str) -> BookMeta:
    meta = await storage.load_book_meta(storage.require_book_id(book_id))
    if meta is None:
        raise NotFoundError(f"Book not found: {book_id}")
    return meta


async def update_book_meta(
    book_id: str, request: BookUpdateRequest | Mapping[str, Any]
) -> BookMeta:
    payload = parse_request(BookUpdateRequest, request)
    changes = provided_fields(payload)
    style_id = changes.pop("style_id", None)
    if style_id is not None:
        changes["style_snapshot"] = await _snapshot_style(style_id)

    async with DOCUMENT_LOCKS.get(storage.require_book_id(book_id)):
        meta = await get_book_meta(book_id)
        updated = meta.model_copy(update={**changes, "updated_at": utc_now_iso()})
        updated = BookMeta.model_validate(updated.model_dump())
        await storage.save_book_meta(updated)

    with log_context(book_id=book_id):
        logger.info("Book metadata updated", extra={"fields": sorted(changes)})
    return updated


async def touch_book(book_id: str) -> None:
    """Bump ``updated_at``; missing books are left alone."""

    async with DOCUMENT_LOCKS.get(book_id):
        meta = await storage.load_book_meta(book_id)
        if meta is None:
            return
        await storage.save_book_meta(meta.model_copy(update={"updated_at": utc_now_iso()}))


async def read_workspace(book_id: str) -> WorkspaceSnapshot:
    """Aggregate read; ``meta`` is ``None`` when the book does not exist."""

    storage.require_book_id(book_id)
    meta = await storage.load_book_meta(book_id)
    if meta is None:
        return WorkspaceSnapshot(meta=None, lore=storage.default_lore(), outline=[])
    lore = await storage.load_lore(book_id)
    outline = await storage.load_outline(book_id)
    return WorkspaceSnapshot(meta=meta, lore=lore, outline=outline)


async def list_books() -> list[BookMeta]:
    return await storage.list_books()


async def get_chapter(book_id: str, chapter_id: str) -> ChapterData:
    storage.require_book_id(book_id)
    storage.require_chapter_id(chapter_id)
    chapter = await storage.load_chapter(book_id, chapter_id)
    if chapter is None:
        raise NotFoundError(f"Chapter {chapter_id} not found in {book_id}")
    return chapter


async def update_chapter(
    book_id: str,
    chapter_id: str,
    request: ChapterUpdateRequest | Mapping[str, Any],
) -> ChapterData:
    """Replace chapter text with a manual edit and recompute its word count."""

    payload = parse_request(ChapterUpdateRequest, request)
    await get_chapter(book_id, chapter_id)

    chapter = ChapterData.from_content(chapter_id, payload.title, payload.content)
    async with DOCUMENT_LOCKS.get(book_id):
        await storage.save_chapter(book_id, chapter)
    await touch_book(book_id)

    with log_context(book_id=book_id, chapter_id=chapter_id):
        logger.info("Chapter edited", extra={"word_count": chapter.word_count})
    return chapter


async def read_book(book_id: str) -> list[ChapterData]:
    """Chapters in outline order; nodes without a chapter file are skipped."""

    await get_book_meta(book_id)
    chapters = []
    for node in await storage.load_outline(book_id):
        chapter = await storage.load_chapter(book_id, node.chapter_id)
        if chapter is not None:
            chapters.append(chapter)
    return chapters


async def book_stats(book_id: str) -> BookStats:
    meta = await get_book_meta(book_id)
    lore = await storage.load_lore(book_id)
    outline = await storage.load_outline(book_id)

    total_words = 0
    completed = 0
    for node in outline:
        if node.status != OutlineStatus.GENERATED:
            continue
        completed += 1
        chapter = await storage.load_chapter(book_id, node.chapter_id)
        if chapter is not None:
            total_words += chapter.word_count

    progress = 0
    if meta.target_words > 0:
        progress = min(100, round(total_words / meta.target_words * 100))

    outline_stats = {"total": len(outline)}
    for status in OutlineStatus:
        outline_stats[status.value] = sum(1 for node in outline if node.status == status)

    pending = sum(1 for clue in lore.clues if clue.status == ClueStatus.PENDING)
    return BookStats(
        progress=progress,
        total_word_count=total_words,
        completed_chapters=completed,
        clue_stats=ClueCounts(
            total=len(lore.clues), pending=pending, resolved=len(lore.clues) - pending
        ),
        outline_stats=outline_stats,
        updated_at=meta.updated_at,
    )


async def list_clues(book_id: str) -> ClueListing:
    await get_book_meta(book_id)
    lore = await storage.load_lore(book_id)
    listing = ClueListing()
    for clue in lore.clues:
        if clue.status == ClueStatus.RESOLVED:
            listing.resolved.append(clue)
        else:
            listing.pending.append(clue)
    return listing


async def recover_interrupted_generations(book_id: str) -> list[str]:
    """Mark nodes left in ``generating`` by a crashed process as ``failed``.

    Chapters whose generation is in flight in this process are left alone.
    Returns the chapter ids that were repaired.
    """

    await get_book_meta(book_id)
    async with DOCUMENT_LOCKS.get(book_id):
        outline = await storage.load_outline(book_id)
        repaired = []
        for node in outline:
            if node.status != OutlineStatus.GENERATING:
                continue
            if GENERATIONS.is_in_flight(book_id, node.chapter_id):
                continue
            node.status = OutlineStatus.FAILED
            repaired.append(node.chapter_id)
        if repaired:
            await storage.save_outline(book_id, outline)

    if repaired:
        with log_context(book_id=book_id):
            logger.warning("Recovered interrupted generations", extra={"chapters": repaired})
    return repaired
