"""Prompt templates for the three-step evolution pipeline.

Responses use a strict line-prefix format that :mod:`mneme.evolve.parse`
reads back.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from mneme.types import MemoryRef


@dataclass(frozen=True)
class Candidate:
    """A neighbor memory offered to the link and evolution prompts."""

    memory: MemoryRef
    content: str
    tags: Sequence[str] = ()
    keywords: Sequence[str] = ()


def note_construction(content: str) -> str:
    """Step 1: ask for keywords, tags and a one-line context for ``content``."""
    return (
        "Read the following memory and extract three structured fields.\n"
        "\n"
        f"Memory:\n{content}\n"
        "\n"
        "Respond with EXACTLY three lines, in this order:\n"
        "KEYWORDS: 3 to 5 comma-separated keywords\n"
        "TAGS: 1 to 3 comma-separated lowercase topical tags\n"
        "CONTEXT: one short sentence describing what this memory is about\n"
    )


def link_generation(new_content: str, candidates: Sequence[Candidate]) -> str:
    """Step 2: ask which 1-based numbered candidates relate to the new memory.

    Memory ids are kept out of the prompt; the caller maps numbers back.
    """
    listing = "".join(
        f"{number}. {candidate.content}\n"
        for number, candidate in enumerate(candidates, start=1)
    )
    return (
        "A new memory was just recorded:\n"
        f"{new_content}"
        "\n\nHere are candidate memories that may be related:\n"
        f"{listing}"
        "\nList the numbers of candidates that have a meaningful relationship to the new "
        "memory (same topic, supersedes, supports, contradicts, etc.). "
        'Respond with a comma-separated list of numbers, e.g. "1, 3", or NONE.\n'
        "Response: "
    )


def evolution_proposal(neighbor: Candidate, new_memory_content: str) -> str:
    """Step 3: ask for additive-only tag and keyword changes to ``neighbor``."""
    tags = ", ".join(neighbor.tags)
    keywords = ", ".join(neighbor.keywords)
    return (
        "An existing memory and its current annotations:\n"
        f"CONTENT: {neighbor.content}\n"
        f"TAGS: {tags}\n"
        f"KEYWORDS: {keywords}\n"
        "\n"
        f"A newly-recorded related memory:\n{new_memory_content}\n"
        "\n"
        "Considering the relationship, propose ONLY ADDITIVE changes to the "
        "existing memory's tags and keywords — new tags/keywords that reflect "
        "the relationship. Do NOT remove anything. If no meaningful additions "
        "are warranted, respond with NONE.\n"
        "\n"
        "Format:\n"
        "TAGS_ADD: comma-separated lowercase tags (or empty)\n"
        "KEYWORDS_ADD: comma-separated lowercase keywords (or empty)\n"
        "\n"
        "Or, if no changes:\n"
        "NONE\n"
    )