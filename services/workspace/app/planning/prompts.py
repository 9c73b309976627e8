"""Prompt templates for rolling three-chapter outline planning."""

from __future__ import annotations

PLANNING_SYSTEM_PROMPT = """
You are a story architect for long-form serial fiction. You plan the next three
chapters of an ongoing novel so that each chapter advances the main line,
carries foreshadowing forward, and ends on a hook for the following one.
Respond with JSON only.
""".strip()


PLANNING_PROMPT = """
Plan the next three chapters of the novel "{title}" (genre: {genre}).

World: {world}
Main goal: {final_goal}
{previous_section}{clue_section}
Requirements:
- 300-500 words of outline per chapter
- Name the characters who appear in each chapter
- List the foreshadowing clues each chapter advances or plants
- Keep the chapters continuous and escalate suspense from one to the next
- Do not resolve too many conflicts at once; leave room for later arcs

Return a JSON object of the form:
{{"chapters": [{{"chapterTitle": "...", "chapterContentOutline": "...", "characters": ["..."], "clues": ["..."]}}]}}
with exactly three chapters.
""".strip()


PREVIOUS_SECTION = "Story so far: {summaries}\n"
CLUE_SECTION = "Pending clues to carry or resolve: {clues}\n"


# Used verbatim whenever planning cannot produce chapters of its own.
FALLBACK_CHAPTERS = (
    {
        "chapter_title": "Chapter One: The Night the Wind Rose",
        "chapter_content_outline": (
            "The protagonist faces an anomaly head-on for the first time, realises the "
            "central conflict has begun, and is left with a first layer of suspense."
        ),
        "characters": ["Protagonist"],
        "clues": ["Initial core clue"],
    },
    {
        "chapter_title": "Chapter Two: Testing the Undercurrent",
        "chapter_content_outline": (
            "A major faction intervenes for the first time. The protagonist makes a costly "
            "choice and the conflict widens from a personal one to an organisational one."
        ),
        "characters": ["Protagonist", "Key ally"],
        "clues": ["Earlier clue advanced"],
    },
    {
        "chapter_title": "Chapter Three: The Clue Bites Back",
        "chapter_content_outline": (
            "A clue is reinterpreted in reverse and a larger mystery surfaces, leaving a "
            "break point for the next rolling round of three chapters."
        ),
        "characters": ["Protagonist", "Key ally", "Potential rival"],
        "clues": ["New clue planted"],
    },
)
