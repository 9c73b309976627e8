"""Enum definitions shared across the workspace engine."""

from __future__ import annotations

from enum import Enum


class OutlineStatus(str, Enum):
    PLANNED = "planned"
    LOCKED = "locked"
    GENERATING = "generating"
    GENERATED = "generated"
    FAILED = "failed"


class ClueStatus(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


# Outline statuses a chapter can rest in once an attempt has finished.
TERMINAL_OUTLINE_STATUSES = frozenset({OutlineStatus.GENERATED, OutlineStatus.FAILED})
