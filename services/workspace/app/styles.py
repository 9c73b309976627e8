"""Style preset collection stored in ``styles.json``.

At most one preset carries ``is_default``; every write that sets the flag
clears it on the rest of the collection under the same lock.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from inkwell_schemas import StylePreset

from . import storage
from .errors import NotFoundError
from .locks import DOCUMENT_LOCKS, STYLES_LOCK_KEY
from .models import StyleCreateRequest, StyleUpdateRequest, parse_request, provided_fields

logger = logging.getLogger(__name__)


async def list_styles() -> list[StylePreset]:
    return await storage.load_styles()


async def get_style(style_id: str) -> StylePreset:
    for style in await storage.load_styles():
        if style.id == style_id:
            return style
    raise NotFoundError(f"Style preset not found: {style_id}")


async def get_default_style() -> Optional[StylePreset]:
    for style in await storage.load_styles():
        if style.is_default:
            return style
    return None


def _clear_other_defaults(styles: list[StylePreset], keep_id: str) -> list[StylePreset]:
    cleared = []
    for style in styles:
        if style.id != keep_id and style.is_default:
            style = style.model_copy(update={"is_default": False})
        cleared.append(style)
    return cleared


async def create_style(request: StyleCreateRequest | Mapping[str, Any]) -> StylePreset:
    payload = parse_request(StyleCreateRequest, request)
    style = StylePreset(id=storage.create_prefixed_id("style"), **payload.model_dump())

    async with DOCUMENT_LOCKS.get(STYLES_LOCK_KEY):
        styles = await storage.load_styles()
        if style.is_default:
            styles = _clear_other_defaults(styles, style.id)
        styles.append(style)
        await storage.save_styles(styles)

    logger.info("Style preset created", extra={"style_id": style.id})
    if style.is_default:
        logger.info("Default style changed", extra={"style_id": style.id})
    return style


async def update_style(
    style_id: str, request: StyleUpdateRequest | Mapping[str, Any]
) -> StylePreset:
    payload = parse_request(StyleUpdateRequest, request)
    changes = provided_fields(payload)

    async with DOCUMENT_LOCKS.get(STYLES_LOCK_KEY):
        styles = await storage.load_styles()
        index = next((i for i, style in enumerate(styles) if style.id == style_id), None)
        if index is None:
            raise NotFoundError(f"Style preset not found: {style_id}")
        updated = StylePreset.model_validate({**styles[index].model_dump(), **changes})
        styles[index] = updated
        if updated.is_default:
            styles = _clear_other_defaults(styles, updated.id)
        await storage.save_styles(styles)

    logger.info("Style preset updated", extra={"style_id": style_id})
    if changes.get("is_default"):
        logger.info("Default style changed", extra={"style_id": style_id})
    return updated


async def delete_style(style_id: str) -> None:
    async with DOCUMENT_LOCKS.get(STYLES_LOCK_KEY):
        styles = await storage.load_styles()
        remaining = [style for style in styles if style.id != style_id]
        if len(remaining) == len(styles):
            raise NotFoundError(f"Style preset not found: {style_id}")
        await storage.save_styles(remaining)
    logger.info("Style preset deleted", extra={"style_id": style_id})
