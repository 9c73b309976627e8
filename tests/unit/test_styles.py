"""Tests for the style preset collection."""

from __future__ import annotations

import json

import pytest

from services.workspace.app import storage
from services.workspace.app.errors import InvalidInputError, NotFoundError
from services.workspace.app.styles import (
    create_style,
    delete_style,
    get_default_style,
    get_style,
    list_styles,
    update_style,
)


pytestmark = pytest.mark.anyio("asyncio")


@pytest.fixture
def anyio_backend():
    return "asyncio"


async def _defaults() -> list[str]:
    return [style.id for style in await list_styles() if style.is_default]


async def test_styles_document_starts_empty(data_root) -> None:
    assert await list_styles() == []
    assert json.loads(storage.styles_path().read_text(encoding="utf-8")) == []
    assert await get_default_style() is None


async def test_new_default_clears_previous_default(data_root) -> None:
    first = await create_style({"name": "Plain", "isDefault": True})
    second = await create_style({"name": "Lyrical", "isDefault": True})
    await create_style({"name": "Terse"})

    assert await _defaults() == [second.id]
    assert (await get_default_style()).id == second.id
    assert (await get_style(first.id)).is_default is False


async def test_update_to_default_keeps_single_default(data_root) -> None:
    first = await create_style({"name": "Plain", "isDefault": True})
    second = await create_style({"name": "Lyrical"})

    updated = await update_style(second.id, {"isDefault": True, "vocabulary": ["gloaming"]})

    assert updated.is_default
    assert updated.vocabulary == ["gloaming"]
    assert updated.name == "Lyrical"
    assert await _defaults() == [second.id]
    assert (await get_style(first.id)).is_default is False


async def test_update_keeps_unspecified_fields(data_root) -> None:
    style = await create_style(
        {"name": "Gothic", "systemPrompt": "Dread in every line.", "prohibitedWords": ["okay"]}
    )

    updated = await update_style(style.id, {"name": "Southern Gothic"})

    assert updated.system_prompt == "Dread in every line."
    assert updated.prohibited_words == ["okay"]
    assert updated.id == style.id


async def test_style_ids_use_style_prefix(data_root) -> None:
    style = await create_style({"name": "Prefixed"})
    assert style.id.startswith("style_")
    stored = json.loads(storage.styles_path().read_text(encoding="utf-8"))
    assert stored[0]["systemPrompt"] == ""
    assert stored[0]["isDefault"] is False


async def test_missing_styles_raise_not_found(data_root) -> None:
    with pytest.raises(NotFoundError):
        await get_style("style_missing")
    with pytest.raises(NotFoundError):
        await update_style("style_missing", {"name": "x"})
    with pytest.raises(NotFoundError):
        await delete_style("style_missing")


async def test_delete_removes_only_that_style(data_root) -> None:
    keep = await create_style({"name": "Keep"})
    drop = await create_style({"name": "Drop", "isDefault": True})

    await delete_style(drop.id)

    assert [style.id for style in await list_styles()] == [keep.id]
    assert await get_default_style() is None


async def test_invalid_style_request_rejected(data_root) -> None:
    with pytest.raises(InvalidInputError):
        await create_style({"name": ""})
    assert await list_styles() == []
