"""Durable JSON document storage for book workspaces.

Every write goes through :func:`atomic_write_json`, which writes a temporary
sibling file and renames it over the target, so readers observe either the
previous document or the new one and never a partial write. This module is
the only code that touches the filesystem; blocking calls run in worker
threads so the event loop stays responsive.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
import secrets
import string
import tempfile
import threading
import time
from pathlib import Path
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from inkwell_schemas import (
    BookMeta,
    ChapterData,
    LoreData,
    OutlineNode,
    SettingsData,
    StylePreset,
    WorkspaceDocument,
)

from .config import data_root
from .errors import InvalidInputError, StorageError

logger = logging.getLogger(__name__)

_BOOK_ID_RE = re.compile(r"^book_[A-Za-z0-9_-]+$")
_CHAPTER_ID_RE = re.compile(r"^ch_\d{3}$")
_ID_ALPHABET = string.ascii_lowercase + string.digits

_ModelT = TypeVar("_ModelT", bound=BaseModel)


# -- identifiers -------------------------------------------------------------


def validate_book_id(value: str | None) -> bool:
    return bool(value) and _BOOK_ID_RE.fullmatch(value) is not None


def validate_chapter_id(value: str | None) -> bool:
    return bool(value) and _CHAPTER_ID_RE.fullmatch(value) is not None


def require_book_id(value: str | None) -> str:
    if not validate_book_id(value):
        raise InvalidInputError(f"Invalid book id: {value!r}")
    return value  # type: ignore[return-value]


def require_chapter_id(value: str | None) -> str:
    if not validate_chapter_id(value):
        raise InvalidInputError(f"Invalid chapter id: {value!r}")
    return value  # type: ignore[return-value]


_id_clock_lock = threading.Lock()
_last_id_millis = 0


def _monotonic_millis() -> int:
    global _last_id_millis
    with _id_clock_lock:
        now = time.time_ns() // 1_000_000
        if now <= _last_id_millis:
            now = _last_id_millis + 1
        _last_id_millis = now
        return now


def _random_suffix(length: int = 6) -> str:
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


def create_book_id() -> str:
    """``book_<millis>_<rand>``; uniqueness is checked by the caller before use."""

    return f"book_{_monotonic_millis()}_{_random_suffix()}"


def create_prefixed_id(prefix: str, suffix_length: int = 6) -> str:
    return f"{prefix}_{_monotonic_millis()}_{_random_suffix(suffix_length)}"


# -- paths -------------------------------------------------------------------


def books_root() -> Path:
    return data_root() / "books"


def settings_path() -> Path:
    return data_root() / "settings.json"


def styles_path() -> Path:
    return data_root() / "styles.json"


def book_dir(book_id: str) -> Path:
    return books_root() / require_book_id(book_id)


def book_meta_path(book_id: str) -> Path:
    return book_dir(book_id) / "meta.json"


def book_lore_path(book_id: str) -> Path:
    return book_dir(book_id) / "lore.json"


def book_outline_path(book_id: str) -> Path:
    return book_dir(book_id) / "outline.json"


def chapter_path(book_id: str, chapter_id: str) -> Path:
    return book_dir(book_id) / "chapters" / f"{require_chapter_id(chapter_id)}.json"


# -- raw documents -----------------------------------------------------------


def _to_jsonable(data: Any) -> Any:
    if isinstance(data, WorkspaceDocument):
        return data.to_document()
    if isinstance(data, (list, tuple)):
        return [_to_jsonable(item) for item in data]
    return data


def _serialise(data: Any) -> str:
    return json.dumps(_to_jsonable(data), ensure_ascii=False, indent=2) + "\n"


def _write_text_atomic(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    # Unique temp names let concurrent writers of one document race only on
    # the final rename, where the last writer wins with an intact document.
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=str(path.parent),
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    ) as tmp:
        tmp_path = Path(tmp.name)
        try:
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        except OSError:
            tmp.close()
            tmp_path.unlink(missing_ok=True)
            raise
    try:
        os.replace(tmp_path, path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise


async def atomic_write_json(path: Path, data: Any) -> None:
    """Serialise ``data`` as pretty UTF-8 JSON and atomically replace ``path``."""

    content = _serialise(data)
    try:
        await asyncio.to_thread(_write_text_atomic, path, content)
    except OSError as exc:
        raise StorageError(f"Failed to write {path}") from exc


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


async def read_optional_json(path: Path) -> Any | None:
    """Parsed document at ``path`` or ``None`` when absent; never writes."""

    try:
        raw = await asyncio.to_thread(_read_text, path)
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise StorageError(f"Failed to read {path}") from exc
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("Ignoring unparseable document", extra={"path": str(path)})
        return None


async def read_json(path: Path, fallback: Any) -> Any:
    """Self-healing read.

    Returns the parsed document at ``path``. When it is missing or cannot be
    parsed, ``fallback`` is written to ``path`` and returned, so the first
    access materialises the default. Only unrecoverable I/O errors raise.
    """

    try:
        raw = await asyncio.to_thread(_read_text, path)
        return json.loads(raw)
    except FileNotFoundError:
        pass
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("Replacing unparseable document with default", extra={"path": str(path)})
    except OSError as exc:
        raise StorageError(f"Failed to read {path}") from exc

    payload = _to_jsonable(fallback)
    await atomic_write_json(path, payload)
    return payload


def _validate(model: type[_ModelT], data: Any, path: Path) -> _ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise StorageError(f"Document {path} does not match {model.__name__}") from exc


# -- typed book documents ----------------------------------------------------


async def load_book_meta(book_id: str) -> Optional[BookMeta]:
    path = book_meta_path(book_id)
    data = await read_optional_json(path)
    if data is None:
        return None
    return _validate(BookMeta, data, path)


async def save_book_meta(meta: BookMeta) -> None:
    await atomic_write_json(book_meta_path(meta.id), meta)


def default_lore() -> LoreData:
    return LoreData()


async def load_lore(book_id: str) -> LoreData:
    path = book_lore_path(book_id)
    return _validate(LoreData, await read_json(path, default_lore()), path)


async def save_lore(book_id: str, lore: LoreData) -> None:
    await atomic_write_json(book_lore_path(book_id), lore)


async def load_outline(book_id: str) -> list[OutlineNode]:
    path = book_outline_path(book_id)
    data = await read_json(path, [])
    if not isinstance(data, list):
        raise StorageError(f"Document {path} is not an outline list")
    return [_validate(OutlineNode, item, path) for item in data]


async def save_outline(book_id: str, outline: list[OutlineNode]) -> None:
    await atomic_write_json(book_outline_path(book_id), outline)


async def load_chapter(book_id: str, chapter_id: str) -> Optional[ChapterData]:
    path = chapter_path(book_id, chapter_id)
    data = await read_optional_json(path)
    if data is None:
        return None
    return _validate(ChapterData, data, path)


async def save_chapter(book_id: str, chapter: ChapterData) -> None:
    await atomic_write_json(chapter_path(book_id, chapter.chapter_id), chapter)


async def book_exists(book_id: str) -> bool:
    return await asyncio.to_thread(book_dir(book_id).exists)


def _scan_book_dirs(root: Path) -> list[str]:
    root.mkdir(parents=True, exist_ok=True)
    return sorted(
        entry.name
        for entry in root.iterdir()
        if entry.is_dir() and validate_book_id(entry.name)
    )


async def list_books() -> list[BookMeta]:
    """Every readable book, most recently updated first."""

    try:
        book_ids = await asyncio.to_thread(_scan_book_dirs, books_root())
    except OSError as exc:
        raise StorageError("Failed to scan books directory") from exc

    books: list[BookMeta] = []
    for book_id in book_ids:
        try:
            meta = await load_book_meta(book_id)
        except StorageError:
            logger.warning("Skipping book with invalid metadata", extra={"book_id": book_id})
            continue
        if meta is not None:
            books.append(meta)
    return sorted(books, key=lambda meta: meta.updated_at, reverse=True)


# -- global documents --------------------------------------------------------


async def load_settings() -> SettingsData:
    path = settings_path()
    return _validate(SettingsData, await read_json(path, SettingsData()), path)


async def save_settings(settings: SettingsData) -> None:
    await atomic_write_json(settings_path(), settings)


async def load_styles() -> list[StylePreset]:
    path = styles_path()
    data = await read_json(path, [])
    if not isinstance(data, list):
        raise StorageError(f"Document {path} is not a style list")
    return [_validate(StylePreset, item, path) for item in data]


async def save_styles(styles: list[StylePreset]) -> None:
    await atomic_write_json(styles_path(), styles)
