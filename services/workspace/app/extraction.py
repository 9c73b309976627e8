"""Best-effort extraction of structured data from generated free text."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

_DECODER = json.JSONDecoder()


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of :func:`extract_json_object`.

    ``degraded`` is true when no JSON object could be recovered; ``data`` is
    then empty and callers fall back to their neutral value.
    """

    data: dict[str, Any] = field(default_factory=dict)
    degraded: bool = False


def extract_json_object(text: str | None) -> ExtractionResult:
    """Return the first well-formed JSON object embedded in ``text``.

    Generated text frequently wraps JSON in commentary or code fences, so every
    ``{`` is tried as a starting point until one decodes to an object. Never
    raises.
    """

    if not text:
        return ExtractionResult(degraded=True)

    index = text.find("{")
    while index != -1:
        try:
            value, _ = _DECODER.raw_decode(text, index)
        except json.JSONDecodeError:
            index = text.find("{", index + 1)
            continue
        if isinstance(value, dict):
            return ExtractionResult(data=value)
        index = text.find("{", index + 1)
    return ExtractionResult(degraded=True)


def string_list(value: Any) -> list[str]:
    """Coerce a decoded JSON value into a list of non-empty stripped strings."""

    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    result: list[str] = []
    for item in value:
        if isinstance(item, (str, int, float)) and not isinstance(item, bool):
            text = str(item).strip()
            if text:
                result.append(text)
    return result
