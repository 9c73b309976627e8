"""Offline provider returning canned, stage-aware output."""

from __future__ import annotations

import json
from typing import Any, Callable

from .base import CallOptions, Completion, LLMProvider, ProviderRequest
from .config import ProviderConfig, ProviderSettings

MOCK_MODEL = "mock"
MOCK_TEXT = "Mock response generated for testing."


def _outline_payload() -> dict[str, Any]:
    return {
        "chapters": [
            {
                "chapterTitle": f"Mock Chapter {number}",
                "chapterContentOutline": f"Offline outline for chapter {number}.",
                "characters": ["Protagonist"],
                "clues": [],
            }
            for number in (1, 2, 3)
        ]
    }


def _world_payload() -> dict[str, Any]:
    return {
        "world": "A mock world used for offline development.",
        "factions": [],
        "protagonist": "Mock protagonist",
        "sideCharacters": [],
        "finalGoal": "Finish the mock book.",
    }


# Engine stages that expect JSON get a well-formed payload of their shape.
STAGE_PAYLOADS: dict[str, Callable[[], Any]] = {
    "planning": _outline_payload,
    "clue_tracking": lambda: {"resolved": [], "newClues": []},
    "character_notes": dict,
    "lore_expansion": _world_payload,
}


class MockProvider(LLMProvider):
    name = "mock"
    native_json_mode = True

    def __init__(self, config: ProviderConfig | None = None) -> None:
        super().__init__(
            config
            or ProviderConfig(
                name="mock",
                api_key="mock",
                model=MOCK_MODEL,
                settings=ProviderSettings(temperature=0.1),
            )
        )

    def _text_for(self, request: ProviderRequest) -> str:
        builder = STAGE_PAYLOADS.get(str(request.metadata.get("stage", "")))
        if builder is not None:
            return json.dumps(builder(), ensure_ascii=False)
        if request.json_output:
            return json.dumps({"message": MOCK_TEXT, "echo": request.prompt[:50]})
        return f"{MOCK_TEXT}\nPrompt: {request.prompt[:80]}"

    async def _complete(self, request: ProviderRequest, options: CallOptions) -> Completion:
        text = self._text_for(request)
        return Completion(
            text=text,
            model=MOCK_MODEL,
            prompt_tokens=len(request.prompt.split()),
            completion_tokens=len(text.split()),
            raw={"mock": True, "temperature": options.temperature},
        )
