"""Error taxonomy raised by the workspace engine."""

from __future__ import annotations


class WorkspaceError(Exception):
    """Base class for engine errors surfaced to callers."""


class InvalidInputError(WorkspaceError, ValueError):
    """Malformed identifier or request body; nothing was mutated."""


class NotFoundError(WorkspaceError, LookupError):
    """Referenced book, chapter, outline node or style preset does not exist."""


class GenerationUnavailableError(WorkspaceError):
    """The generation service failed, timed out or returned nothing usable."""


class NotConfiguredError(GenerationUnavailableError):
    """No credential is configured for the generation service."""


class GenerationInProgressError(WorkspaceError):
    """A conflicting generation for the same book is already in flight."""

    def __init__(self, book_id: str, chapter_id: str) -> None:
        super().__init__(f"Generation {chapter_id} of {book_id} conflicts with one already in flight")
        self.book_id = book_id
        self.chapter_id = chapter_id


class StorageError(WorkspaceError):
    """Unrecoverable filesystem failure while reading or writing a document."""
