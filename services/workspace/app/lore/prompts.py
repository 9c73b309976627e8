"""Prompt templates for lore reconciliation and world-bible expansion."""

from __future__ import annotations

SUMMARY_PROMPT = """
Summarise the following chapter in 100-200 words, highlighting the core plot and
the key turning points:

{content}
""".strip()


CHARACTER_NOTES_PROMPT = """
Analyse how the following characters change over this chapter: {characters}

For each character give one sentence describing their new state after the
chapter (physical, psychological, allegiance). Return a JSON object mapping each
character name to that sentence.

{content}
""".strip()


CLUE_TRACKING_PROMPT = """
Analyse the following chapter:

{content}

and the existing list of foreshadowing clues:

{clues}

Identify:
1. Which clues are answered or paid off in this chapter
2. Which new mysteries or clues this chapter plants

Return the result as JSON: {{"resolved": [], "newClues": []}}
Use the exact clue titles from the list for resolved clues.
""".strip()


LORE_EXPANSION_SYSTEM_PROMPT = """
You are a worldbuilding editor for serial fiction. You turn a short book pitch
into a compact world bible that later chapters can stay consistent with.
Respond with JSON only.
""".strip()


LORE_EXPANSION_PROMPT = """
Build a detailed world bible from this book information:
Title: {title}
One-line pitch: {one_liner}
Genre: {genre}
Target readers: {readers}
{seed_section}
Produce:
1. A detailed world background (about 500 words)
2. The main factions and how power is distributed
3. The protagonist (appearance, personality, special abilities or edge)
4. Key side characters
5. The ultimate goal or central mystery of the whole book

Return a JSON object with the keys "world" (string), "factions" (list of
strings), "protagonist" (string), "sideCharacters" (list of strings) and
"finalGoal" (string).
""".strip()


SEED_SECTION = "Author notes to respect:\n{notes}\n"


# Used for character notes when the response carries no per-character JSON.
NOTE_APPEARS = "State reflected in this chapter"
NOTE_UNCHANGED = "State unchanged"
