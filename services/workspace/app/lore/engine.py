"""Lore ledger maintenance: post-chapter reconciliation and world expansion."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any, Mapping, Optional

from inkwell_observability import log_context, observe_stage_duration
from inkwell_schemas import ChapterData, Clue, ClueStatus, LoreData, OutlineNode, utc_now_iso

from .. import storage
from ..config import SERVICE_NAME
from ..errors import GenerationUnavailableError, NotFoundError
from ..extraction import extract_json_object, string_list
from ..generation import GenerationService, load_generation_service
from ..locks import DOCUMENT_LOCKS
from ..models import LoreExpansionRequest, parse_request, provided_fields
from ..workspace import get_book_meta
from .prompts import (
    CHARACTER_NOTES_PROMPT,
    CLUE_TRACKING_PROMPT,
    LORE_EXPANSION_PROMPT,
    LORE_EXPANSION_SYSTEM_PROMPT,
    NOTE_APPEARS,
    NOTE_UNCHANGED,
    SEED_SECTION,
    SUMMARY_PROMPT,
)

logger = logging.getLogger(__name__)

RECONCILE_STAGE = "reconcile"
EXPANSION_STAGE = "lore_expansion"
WORLD_FALLBACK_CHARS = 1000


@dataclass
class ClueTracking:
    """Clue changes detected in one chapter; ``degraded`` marks a neutral result."""

    resolved: list[str] = field(default_factory=list)
    new_clues: list[str] = field(default_factory=list)
    degraded: bool = False


@dataclass
class ReconciliationResult:
    summary: str
    character_notes: dict[str, str]
    clue_tracking: ClueTracking
    lore: LoreData
    outline_node: Optional[OutlineNode]


@dataclass
class LoreExpansionResult:
    lore: LoreData
    final_goal: str


def apply_clue_tracking(lore: LoreData, tracking: ClueTracking) -> LoreData:
    """Ledger with ``tracking`` applied.

    Listed clues flip to resolved and never back; new titles are appended as
    pending unless a clue with that exact title already exists. Applying the
    same tracking twice leaves the ledger unchanged.
    """

    resolved = set(tracking.resolved)
    clues = [
        clue.model_copy(update={"status": ClueStatus.RESOLVED})
        if clue.title in resolved
        else clue.model_copy()
        for clue in lore.clues
    ]
    known = {clue.title for clue in clues}
    for title in tracking.new_clues:
        if title in known:
            continue
        clues.append(Clue(id=storage.create_prefixed_id("clue", 5), title=title))
        known.add(title)
    return lore.model_copy(update={"clues": clues})


async def track_clues(
    service: GenerationService, content: str, clue_titles: list[str]
) -> ClueTracking:
    """Ask which clues the chapter resolves or plants; never raises."""

    try:
        text = await service.generate(
            CLUE_TRACKING_PROMPT.format(content=content, clues="\n".join(clue_titles)),
            stage="clue_tracking",
            json_output=True,
        )
    except GenerationUnavailableError as exc:
        logger.warning("Clue tracking unavailable", extra={"error": str(exc)})
        return ClueTracking(degraded=True)

    extracted = extract_json_object(text)
    if extracted.degraded:
        logger.warning("Clue tracking response had no JSON object")
        return ClueTracking(degraded=True)
    new_clues = extracted.data.get("newClues", extracted.data.get("new_clues"))
    return ClueTracking(
        resolved=string_list(extracted.data.get("resolved")),
        new_clues=string_list(new_clues),
    )


async def character_notes(
    service: GenerationService, content: str, characters: list[str]
) -> dict[str, str]:
    """One-line state note per listed character; empty when unavailable."""

    if not characters:
        return {}
    try:
        text = await service.generate(
            CHARACTER_NOTES_PROMPT.format(characters=", ".join(characters), content=content),
            stage="character_notes",
            json_output=True,
        )
    except GenerationUnavailableError as exc:
        logger.warning("Character notes unavailable", extra={"error": str(exc)})
        return {}

    extracted = extract_json_object(text)
    notes: dict[str, str] = {}
    for name in characters:
        value = extracted.data.get(name)
        if isinstance(value, str) and value.strip():
            notes[name] = value.strip()
        else:
            notes[name] = NOTE_APPEARS if name in text else NOTE_UNCHANGED
    return notes


async def reconcile(
    book_id: str,
    chapter: ChapterData,
    outline_node: Optional[OutlineNode],
    service: GenerationService,
) -> ReconciliationResult:
    """Update the ledger and outline annotations from a generated chapter.

    A failed summary call propagates; character notes and clue tracking
    degrade to neutral values. Lore and outline are written separately.
    """

    summary = await service.generate(
        SUMMARY_PROMPT.format(content=chapter.content), stage="chapter_summary"
    )
    characters = outline_node.characters if outline_node is not None else []
    notes = await character_notes(service, chapter.content, characters)

    current = await storage.load_lore(book_id)
    tracking = await track_clues(
        service, chapter.content, [clue.title for clue in current.clues]
    )

    async with DOCUMENT_LOCKS.get(book_id):
        lore = apply_clue_tracking(await storage.load_lore(book_id), tracking)
        await storage.save_lore(book_id, lore)

        outline = await storage.load_outline(book_id)
        updated_node = None
        for node in outline:
            if node.chapter_id == chapter.chapter_id:
                node.summary = summary
                if notes:
                    node.character_notes = notes
                updated_node = node
        if updated_node is not None:
            await storage.save_outline(book_id, outline)

    logger.info(
        "Lore reconciled",
        extra={
            "resolved_clues": len(tracking.resolved),
            "new_clues": len(tracking.new_clues),
            "clue_tracking_degraded": tracking.degraded,
            "clue_total": len(lore.clues),
        },
    )
    return ReconciliationResult(
        summary=summary,
        character_notes=notes,
        clue_tracking=tracking,
        lore=lore,
        outline_node=updated_node,
    )


async def reconcile_chapter(
    book_id: str,
    chapter_id: str,
    service: Optional[GenerationService] = None,
) -> ReconciliationResult:
    """Run reconciliation for an already persisted chapter."""

    storage.require_chapter_id(chapter_id)
    await get_book_meta(book_id)
    chapter = await storage.load_chapter(book_id, chapter_id)
    if chapter is None:
        raise NotFoundError(f"Chapter {chapter_id} not found in {book_id}")
    outline = await storage.load_outline(book_id)
    node = next((item for item in outline if item.chapter_id == chapter_id), None)

    if service is None:
        service = await load_generation_service()

    stage_start = perf_counter()
    outcome = "success"
    with log_context(book_id=book_id, chapter_id=chapter_id, stage=RECONCILE_STAGE):
        try:
            return await reconcile(book_id, chapter, node, service)
        except Exception:
            outcome = "error"
            logger.exception("Reconciliation failed")
            raise
        finally:
            observe_stage_duration(
                stage=RECONCILE_STAGE,
                duration_seconds=perf_counter() - stage_start,
                service_name=SERVICE_NAME,
                status=outcome,
            )


def _text_field(data: Mapping[str, Any], *keys: str) -> str:
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


async def expand_lore(
    book_id: str,
    request: LoreExpansionRequest | Mapping[str, Any] | None = None,
    service: Optional[GenerationService] = None,
) -> LoreExpansionResult:
    """Generate a world bible for the book and merge it into lore and meta.

    Fields supplied in ``request`` win over generated ones. Requires a
    configured generation service; on failure nothing is written.
    """

    seed = parse_request(LoreExpansionRequest, request or {})
    overrides = provided_fields(seed)
    meta = await get_book_meta(book_id)
    if service is None:
        service = await load_generation_service()

    notes = "\n".join(f"- {key}: {value}" for key, value in overrides.items())
    prompt = LORE_EXPANSION_PROMPT.format(
        title=meta.title,
        one_liner=meta.one_liner or "n/a",
        genre=meta.genre or "n/a",
        readers=meta.readers or "n/a",
        seed_section=SEED_SECTION.format(notes=notes) if notes else "",
    )

    stage_start = perf_counter()
    outcome = "success"
    with log_context(book_id=book_id, stage=EXPANSION_STAGE):
        try:
            text = await service.generate(
                prompt, LORE_EXPANSION_SYSTEM_PROMPT, stage=EXPANSION_STAGE, json_output=True
            )
            extracted = extract_json_object(text)
            if extracted.degraded:
                outcome = "degraded"
                logger.warning("Lore expansion response had no JSON object; keeping raw text")
                generated: dict[str, Any] = {"world": text[:WORLD_FALLBACK_CHARS]}
                final_goal = ""
            else:
                data = extracted.data
                generated = {
                    "world": _text_field(data, "world"),
                    "factions": string_list(data.get("factions")),
                    "protagonist": _text_field(data, "protagonist"),
                    "side_characters": string_list(
                        data.get("sideCharacters", data.get("side_characters"))
                    ),
                }
                final_goal = _text_field(data, "finalGoal", "final_goal")
            generated.update(overrides)

            async with DOCUMENT_LOCKS.get(book_id):
                lore = await storage.load_lore(book_id)
                lore = lore.model_copy(update=generated)
                await storage.save_lore(book_id, lore)

                meta = await get_book_meta(book_id)
                updates: dict[str, Any] = {"updated_at": utc_now_iso()}
                if final_goal:
                    updates["final_goal"] = final_goal
                meta = meta.model_copy(update=updates)
                await storage.save_book_meta(meta)

            logger.info(
                "Lore expanded",
                extra={"factions": len(lore.factions), "side_characters": len(lore.side_characters)},
            )
        except Exception:
            outcome = "error"
            logger.exception("Lore expansion failed")
            raise
        finally:
            observe_stage_duration(
                stage=EXPANSION_STAGE,
                duration_seconds=perf_counter() - stage_start,
                service_name=SERVICE_NAME,
                status=outcome,
            )
    return LoreExpansionResult(lore=lore, final_goal=meta.final_goal)
