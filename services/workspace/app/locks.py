"""In-process coordination for concurrent workspace operations."""

from __future__ import annotations

import asyncio
import weakref
from contextlib import contextmanager
from typing import Iterator

from .errors import GenerationInProgressError


class KeyedLocks:
    """One :class:`asyncio.Lock` per key, dropped once nobody holds a reference."""

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def get(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock


class GenerationRegistry:
    """Tracks generations in flight in this process.

    A second request for the same ``(book_id, chapter_id)`` fails fast with
    :class:`GenerationInProgressError` instead of queueing. The outline claim
    covers the whole book: it conflicts with every chapter of that book.
    """

    def __init__(self) -> None:
        self._in_flight: set[tuple[str, str]] = set()

    def is_in_flight(self, book_id: str, chapter_id: str) -> bool:
        return (book_id, chapter_id) in self._in_flight

    def book_in_flight(self, book_id: str) -> bool:
        return any(key[0] == book_id for key in self._in_flight)

    def _conflicts(self, book_id: str, chapter_id: str) -> bool:
        if chapter_id == OUTLINE_CLAIM:
            return self.book_in_flight(book_id)
        return self.is_in_flight(book_id, chapter_id) or self.is_in_flight(book_id, OUTLINE_CLAIM)

    @contextmanager
    def claim(self, book_id: str, chapter_id: str) -> Iterator[None]:
        key = (book_id, chapter_id)
        # Check-and-add has no await in between, so it is atomic on the loop.
        if self._conflicts(book_id, chapter_id):
            raise GenerationInProgressError(book_id, chapter_id)
        self._in_flight.add(key)
        try:
            yield
        finally:
            self._in_flight.discard(key)


# Serialises read-modify-write cycles on shared documents. Never held across
# a generation call.
DOCUMENT_LOCKS = KeyedLocks()
STYLES_LOCK_KEY = "__styles__"
SETTINGS_LOCK_KEY = "__settings__"

# Claim key held while the outline window of a book is re-planned.
OUTLINE_CLAIM = "__outline__"

GENERATIONS = GenerationRegistry()
