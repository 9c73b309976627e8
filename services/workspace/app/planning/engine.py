"""Rolling three-chapter outline planner with a deterministic fallback."""

from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Optional

from inkwell_observability import log_context, observe_stage_duration
from inkwell_schemas import BookMeta, LoreData, OutlineNode, OutlineStatus

from .. import storage
from ..config import SERVICE_NAME
from ..errors import GenerationUnavailableError, NotFoundError
from ..extraction import extract_json_object, string_list
from ..generation import GenerationService, load_generation_service
from ..locks import DOCUMENT_LOCKS, GENERATIONS, OUTLINE_CLAIM
from ..workspace import touch_book
from .prompts import (
    CLUE_SECTION,
    FALLBACK_CHAPTERS,
    PLANNING_PROMPT,
    PLANNING_SYSTEM_PROMPT,
    PREVIOUS_SECTION,
)

logger = logging.getLogger(__name__)

STAGE = "planning"
OUTLINE_WINDOW = ("ch_001", "ch_002", "ch_003")


def fallback_outline() -> list[OutlineNode]:
    return [
        OutlineNode(chapter_id=chapter_id, status=OutlineStatus.LOCKED, **template)
        for chapter_id, template in zip(OUTLINE_WINDOW, FALLBACK_CHAPTERS)
    ]


def build_planning_prompt(
    meta: BookMeta, lore: LoreData, previous: list[OutlineNode]
) -> str:
    summaries = [
        f"{node.chapter_title}: {node.summary}" for node in previous if node.summary
    ]
    pending = lore.pending_clue_titles()
    return PLANNING_PROMPT.format(
        title=meta.title,
        genre=meta.genre or "unspecified",
        world=lore.world or "not yet defined",
        final_goal=meta.final_goal or "not yet defined",
        previous_section=PREVIOUS_SECTION.format(summaries="; ".join(summaries)) if summaries else "",
        clue_section=CLUE_SECTION.format(clues=", ".join(pending)) if pending else "",
    )


def _first(entry: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in entry:
            return entry[key]
    return None


def parse_outline(text: str) -> tuple[list[OutlineNode], int]:
    """Planned nodes for every window position the response supplied.

    Positions the response left out, or described unusably, come from the
    built-in template so the result always has three locked nodes. The second
    element counts the positions taken from the response.
    """

    extracted = extract_json_object(text)
    chapters = extracted.data.get("chapters") if not extracted.degraded else None
    if not isinstance(chapters, list):
        chapters = []

    nodes = fallback_outline()
    parsed = 0
    for index, entry in enumerate(chapters[: len(OUTLINE_WINDOW)]):
        if not isinstance(entry, dict):
            continue
        title = _first(entry, "chapterTitle", "chapter_title", "title")
        if not isinstance(title, str) or not title.strip():
            continue
        brief = _first(entry, "chapterContentOutline", "chapter_content_outline", "outline")
        nodes[index] = OutlineNode(
            chapter_id=OUTLINE_WINDOW[index],
            chapter_title=title.strip(),
            chapter_content_outline=brief.strip() if isinstance(brief, str) else "",
            characters=string_list(entry.get("characters")),
            clues=string_list(entry.get("clues")),
            status=OutlineStatus.LOCKED,
        )
        parsed += 1
    return nodes, parsed


async def ensure_outline_three(
    book_id: str, service: Optional[GenerationService] = None
) -> list[OutlineNode]:
    """Plan the next three chapters and persist them as the outline window.

    Any generation failure falls back to the built-in template, so the book
    always ends up with ``ch_001``..``ch_003`` in ``locked`` state.
    While any chapter of the book is generating, or another plan is running,
    it raises :class:`GenerationInProgressError` and leaves the outline alone.
    """

    storage.require_book_id(book_id)
    meta = await storage.load_book_meta(book_id)
    if meta is None:
        raise NotFoundError(f"Book not found: {book_id}")

    stage_start = perf_counter()
    outcome = "success"
    with GENERATIONS.claim(book_id, OUTLINE_CLAIM), log_context(book_id=book_id, stage=STAGE):
        try:
            lore = await storage.load_lore(book_id)
            previous = await storage.load_outline(book_id)
            logger.info("Planning next three chapters", extra={"previous_nodes": len(previous)})

            if service is None:
                service = await load_generation_service()
            try:
                text = await service.generate(
                    build_planning_prompt(meta, lore, previous),
                    PLANNING_SYSTEM_PROMPT,
                    stage=STAGE,
                    json_output=True,
                )
            except GenerationUnavailableError as exc:
                outcome = "fallback"
                logger.warning("Planning fell back to template", extra={"error": str(exc)})
                outline = fallback_outline()
            else:
                outline, parsed = parse_outline(text)
                if parsed == 0:
                    outcome = "fallback"
                    logger.warning("Planning response unusable; template applied")
                elif parsed < len(OUTLINE_WINDOW):
                    logger.warning(
                        "Planning response incomplete; template filled the gaps",
                        extra={"parsed_chapters": parsed},
                    )

            async with DOCUMENT_LOCKS.get(book_id):
                await storage.save_outline(book_id, outline)
            await touch_book(book_id)
            logger.info("Outline planned", extra={"status": outcome})
        except Exception:
            outcome = "error"
            logger.exception("Outline planning failed")
            raise
        finally:
            observe_stage_duration(
                stage=STAGE,
                duration_seconds=perf_counter() - stage_start,
                service_name=SERVICE_NAME,
                status=outcome,
            )
    return outline
