"""Chapter drafting: drives one outline node through its status lifecycle."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from time import perf_counter
from typing import Optional

import anyio
from inkwell_observability import log_context, observe_chapter_status, observe_stage_duration
from inkwell_schemas import BookMeta, ChapterData, LoreData, OutlineNode, OutlineStatus

from .. import storage
from ..config import SERVICE_NAME
from ..context import preview_text, tail_text
from ..errors import (
    GenerationInProgressError,
    GenerationUnavailableError,
    NotFoundError,
    WorkspaceError,
)
from ..generation import GenerationService, load_generation_service
from ..locks import DOCUMENT_LOCKS, GENERATIONS
from ..lore.engine import reconcile
from ..planning.engine import OUTLINE_WINDOW
from ..workspace import touch_book
from .prompts import (
    CHAPTER_PROMPT,
    CHAPTER_SYSTEM_PROMPT,
    FALLBACK_NOTICE,
    NEXT_SECTION,
    PREVIOUS_SECTION,
    PROHIBITED_DIRECTIVE,
    STYLE_DIRECTIVE,
    VOCABULARY_DIRECTIVE,
    WORLD_DIRECTIVE,
)

logger = logging.getLogger(__name__)

STAGE = "chapter_draft"
WORLD_DIRECTIVE_CHARS = 500


@dataclass
class ChapterContext:
    node: OutlineNode
    previous_tail: str = ""
    next_brief: str = ""
    system_prompt: str = CHAPTER_SYSTEM_PROMPT


@dataclass
class ChapterOutcome:
    chapter_id: str
    chapter: Optional[ChapterData] = None
    error: Optional[WorkspaceError] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class BatchGenerationResult:
    outcomes: list[ChapterOutcome] = field(default_factory=list)

    @property
    def generated(self) -> list[ChapterData]:
        return [item.chapter for item in self.outcomes if item.chapter is not None]

    @property
    def failed(self) -> list[str]:
        return [item.chapter_id for item in self.outcomes if not item.succeeded]


def build_system_prompt(meta: BookMeta, lore: LoreData) -> str:
    """Base instructions plus the book's style snapshot and world directive."""

    directives = [CHAPTER_SYSTEM_PROMPT]
    style = meta.style_snapshot
    if style is not None:
        if style.system_prompt.strip():
            directives.append(STYLE_DIRECTIVE.format(style=style.system_prompt.strip()))
        if style.vocabulary:
            directives.append(VOCABULARY_DIRECTIVE.format(words=", ".join(style.vocabulary)))
        if style.prohibited_words:
            directives.append(PROHIBITED_DIRECTIVE.format(words=", ".join(style.prohibited_words)))
    if lore.world.strip():
        directives.append(
            WORLD_DIRECTIVE.format(world=preview_text(lore.world, WORLD_DIRECTIVE_CHARS))
        )
    return "\n\n".join(directives)


async def assemble_context(
    book_id: str,
    outline: list[OutlineNode],
    node: OutlineNode,
    meta: BookMeta,
    lore: LoreData,
) -> ChapterContext:
    index = next(i for i, item in enumerate(outline) if item.chapter_id == node.chapter_id)
    context = ChapterContext(node=node, system_prompt=build_system_prompt(meta, lore))

    if index > 0 and outline[index - 1].status == OutlineStatus.GENERATED:
        previous = await storage.load_chapter(book_id, outline[index - 1].chapter_id)
        if previous is not None:
            context.previous_tail = tail_text(previous.content)
    if index + 1 < len(outline):
        context.next_brief = preview_text(outline[index + 1].chapter_content_outline)
    return context


def build_chapter_prompt(context: ChapterContext) -> str:
    return CHAPTER_PROMPT.format(
        title=context.node.chapter_title,
        outline=context.node.chapter_content_outline or context.node.chapter_title,
        previous_section=(
            PREVIOUS_SECTION.format(tail=context.previous_tail) if context.previous_tail else ""
        ),
        next_section=NEXT_SECTION.format(brief=context.next_brief) if context.next_brief else "",
    )


def fallback_chapter(node: OutlineNode) -> ChapterData:
    """Placeholder chapter built only from the outline node."""

    parts = [node.chapter_title]
    if node.chapter_content_outline.strip():
        parts.append(node.chapter_content_outline.strip())
    parts.append(FALLBACK_NOTICE)
    return ChapterData.from_content(node.chapter_id, node.chapter_title, "\n\n".join(parts))


async def _set_status(book_id: str, chapter_id: str, status: OutlineStatus) -> Optional[OutlineNode]:
    """Move a node out of ``generating``; a node in any other state is left as is."""

    async with DOCUMENT_LOCKS.get(book_id):
        outline = await storage.load_outline(book_id)
        node = next((item for item in outline if item.chapter_id == chapter_id), None)
        if node is None or node.status != OutlineStatus.GENERATING:
            logger.warning(
                "Outline node changed before status update",
                extra={"status": status.value, "found": node.status.value if node else None},
            )
            return None
        node.status = status
        await storage.save_outline(book_id, outline)
    logger.info("Chapter status changed", extra={"status": status.value})
    observe_chapter_status(status.value, service_name=SERVICE_NAME)
    return node


async def _commit_failure(book_id: str, node: OutlineNode) -> None:
    # Shielded so a cancelled caller still leaves the placeholder behind.
    with anyio.CancelScope(shield=True):
        await storage.save_chapter(book_id, fallback_chapter(node))
        await _set_status(book_id, node.chapter_id, OutlineStatus.FAILED)
        await touch_book(book_id)


async def _enter_generating(book_id: str, chapter_id: str) -> tuple[list[OutlineNode], OutlineNode]:
    async with DOCUMENT_LOCKS.get(book_id):
        outline = await storage.load_outline(book_id)
        node = next((item for item in outline if item.chapter_id == chapter_id), None)
        if node is None:
            raise NotFoundError(f"Outline node {chapter_id} not found in {book_id}")
        node.status = OutlineStatus.GENERATING
        await storage.save_outline(book_id, outline)
    logger.info("Chapter status changed", extra={"status": OutlineStatus.GENERATING.value})
    observe_chapter_status(OutlineStatus.GENERATING.value, service_name=SERVICE_NAME)
    return outline, node


async def generate_chapter_draft(
    book_id: str,
    chapter_id: str,
    service: Optional[GenerationService] = None,
    timeout_seconds: Optional[float] = None,
) -> ChapterData:
    """Generate and persist the chapter for one outline node.

    The node is persisted as ``generating`` before the generation call. On
    success the chapter is saved, the node becomes ``generated`` and the lore
    ledger is reconciled on a best-effort basis. On failure a placeholder
    chapter is saved, the node becomes ``failed`` and the error is re-raised;
    cancellation of the caller is handled the same way. ``timeout_seconds``
    overrides the per-call timeout of a supplied ``service`` as well.
    A second call for a chapter already in flight raises
    :class:`GenerationInProgressError` without touching any document.
    """

    storage.require_book_id(book_id)
    storage.require_chapter_id(chapter_id)

    with GENERATIONS.claim(book_id, chapter_id), log_context(
        book_id=book_id, chapter_id=chapter_id, stage=STAGE
    ):
        meta = await storage.load_book_meta(book_id)
        if meta is None:
            raise NotFoundError(f"Book not found: {book_id}")
        outline, node = await _enter_generating(book_id, chapter_id)

        stage_start = perf_counter()
        outcome = "success"
        try:
            try:
                lore = await storage.load_lore(book_id)
                context = await assemble_context(book_id, outline, node, meta, lore)
                if service is None:
                    service = await load_generation_service(timeout_seconds)
                elif timeout_seconds is not None:
                    service = service.with_timeout(timeout_seconds)
                content = await service.generate(
                    build_chapter_prompt(context), context.system_prompt, stage=STAGE
                )
            except Exception as exc:
                outcome = "fallback" if isinstance(exc, GenerationUnavailableError) else "error"
                logger.warning("Chapter generation failed; saving placeholder", extra={"error": str(exc)})
                await _commit_failure(book_id, node)
                raise
            except anyio.get_cancelled_exc_class():
                outcome = "cancelled"
                logger.warning("Chapter generation cancelled; saving placeholder")
                await _commit_failure(book_id, node)
                raise

            chapter = ChapterData.from_content(chapter_id, node.chapter_title, content)
            with anyio.CancelScope(shield=True):
                await storage.save_chapter(book_id, chapter)
                committed = await _set_status(book_id, chapter_id, OutlineStatus.GENERATED)
                await touch_book(book_id)
            logger.info("Chapter generated", extra={"word_count": chapter.word_count})
        finally:
            observe_stage_duration(
                stage=STAGE,
                duration_seconds=perf_counter() - stage_start,
                service_name=SERVICE_NAME,
                status=outcome,
            )

        if committed is None:
            return chapter
        try:
            await reconcile(book_id, chapter, node, service)
        except Exception:
            # Chapter and status are already committed; the ledger just lags.
            logger.exception("Lore reconciliation after chapter generation failed")
    return chapter


async def generate_next_three(
    book_id: str,
    service: Optional[GenerationService] = None,
    timeout_seconds: Optional[float] = None,
) -> BatchGenerationResult:
    """Draft ``ch_001``..``ch_003`` in order, keeping every committed result.

    A chapter that fails (generation unavailable, already in flight, missing
    outline node) is recorded and the remaining chapters still run. Storage
    failures stop the batch.
    """

    storage.require_book_id(book_id)
    if await storage.load_book_meta(book_id) is None:
        raise NotFoundError(f"Book not found: {book_id}")
    if service is None:
        service = await load_generation_service(timeout_seconds)

    result = BatchGenerationResult()
    with log_context(book_id=book_id, stage="batch_generation"):
        for chapter_id in OUTLINE_WINDOW:
            try:
                chapter = await generate_chapter_draft(
                    book_id, chapter_id, service, timeout_seconds
                )
            except (GenerationUnavailableError, GenerationInProgressError, NotFoundError) as exc:
                result.outcomes.append(ChapterOutcome(chapter_id=chapter_id, error=exc))
                continue
            result.outcomes.append(ChapterOutcome(chapter_id=chapter_id, chapter=chapter))

        logger.info(
            "Batch generation finished",
            extra={"generated": len(result.generated), "failed": result.failed},
        )
    return result
