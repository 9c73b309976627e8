"""Prompt templates for chapter drafting."""

from __future__ import annotations

CHAPTER_SYSTEM_PROMPT = """
You are a novelist writing one chapter of an ongoing serial. Keep continuity with
what came before, respect the book's established style, and end the chapter so
the next one can pick up naturally.
""".strip()


CHAPTER_PROMPT = """
Write the chapter "{title}" from this outline:

{outline}
{previous_section}{next_section}
Requirements:
- Keep the narrative continuous
- Match the overall voice of the story
- Aim for 2000-3000 words
- Pace the plot and avoid information overload
""".strip()


PREVIOUS_SECTION = "\nEnd of the previous chapter:\n{tail}\n"
NEXT_SECTION = "\nBrief of the next chapter:\n{brief}\n"

STYLE_DIRECTIVE = "Style: {style}"
VOCABULARY_DIRECTIVE = "Favour this vocabulary: {words}"
PROHIBITED_DIRECTIVE = "Never use these words: {words}"
WORLD_DIRECTIVE = "Stay consistent with this world: {world}"


FALLBACK_NOTICE = (
    "[Placeholder draft] Generation was unavailable for this chapter. This text was "
    "assembled from the outline so the chapter is not empty; regenerate it to "
    "replace the placeholder."
)
