"""Text trimming helpers used when assembling generation prompts."""

from __future__ import annotations

import os
from typing import Tuple

PREVIOUS_CHAPTER_TAIL_CHARS = 500
NEXT_BRIEF_PREVIEW_CHARS = 200

PROMPT_TOKEN_LIMIT_ENV_VAR = "INKWELL_PROMPT_TOKEN_LIMIT"
DEFAULT_PROMPT_TOKEN_LIMIT = 12000
MIN_PROMPT_TOKEN_LIMIT = 256
# Rough conversion for mixed prose; good enough for a soft budget.
CHARS_PER_TOKEN = 4
TRIM_MARKER = "\n\n[... middle of the context omitted ...]\n\n"


def tail_text(text: str, max_chars: int = PREVIOUS_CHAPTER_TAIL_CHARS) -> str:
    """Last ``max_chars`` characters of ``text``, stripped."""

    if not text:
        return ""
    return text[-max_chars:].strip()


def preview_text(text: str, max_chars: int = NEXT_BRIEF_PREVIEW_CHARS) -> str:
    """First ``max_chars`` characters of ``text``, with an ellipsis when cut."""

    if not text:
        return ""
    cleaned = text.strip()
    if len(cleaned) <= max_chars:
        return cleaned
    return cleaned[:max_chars].rstrip() + "..."


def prompt_token_limit() -> int:
    raw = os.getenv(PROMPT_TOKEN_LIMIT_ENV_VAR, "").strip()
    limit = int(raw) if raw.isdigit() else DEFAULT_PROMPT_TOKEN_LIMIT
    return max(limit, MIN_PROMPT_TOKEN_LIMIT)


def fit_prompt(prompt: str, token_limit: int | None = None) -> Tuple[str, bool]:
    """Keep ``prompt`` within a soft token budget.

    Over-long prompts keep their opening (instructions, outline brief) and
    their ending (the text to continue or analyse), cut at paragraph breaks
    where one is close. Returns the prompt and whether it was trimmed.
    """

    limit = max(token_limit or prompt_token_limit(), MIN_PROMPT_TOKEN_LIMIT)
    budget = limit * CHARS_PER_TOKEN
    if not prompt or len(prompt) <= budget:
        return prompt, False

    keep = (budget - len(TRIM_MARKER)) // 2
    head = prompt[:keep]
    cut = head.rfind("\n\n")
    if cut > keep // 2:
        head = head[:cut]
    tail = prompt[-keep:]
    cut = tail.find("\n\n")
    if 0 <= cut < keep // 2:
        tail = tail[cut:]
    return head.rstrip() + TRIM_MARKER + tail.lstrip(), True


__all__ = ["fit_prompt", "preview_text", "prompt_token_limit", "tail_text"]
