"""Reusable validation and normalisation helpers."""

from __future__ import annotations

import re
from datetime import datetime, timezone

_WHITESPACE = re.compile(r"\s+")


def count_content_characters(value: str) -> int:
    """Return the length of ``value`` once every whitespace character is removed.

    This is the ``wordCount`` used for progress accounting. It is a length
    proxy that works for CJK prose as well as space separated languages, not a
    linguistic word count.
    """

    return len(_WHITESPACE.sub("", value or ""))


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""

    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
