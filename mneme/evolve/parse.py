"""Tolerant parsers for the three evolution prompt responses.

They accept slightly noisy output (extra whitespace, markdown bullets,
mixed casing). When parsing fails they return an empty extraction rather
than raising; the worker treats "nothing extracted" as a no-op.
"""

from __future__ import annotations

import string
from dataclasses import dataclass, field

_ASCII_UPPER = str.maketrans(string.ascii_lowercase, string.ascii_uppercase)
_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)
_BRACKETS = str.maketrans({c: " " for c in "[]()\"'`"})
_BULLETS = "-*•·–—|"
_DIGITS = "0123456789"
_MAX_INDEX = (1 << 64) - 1
_FILLERS = frozenset({"and", "or", "none"})


def _upper(s: str) -> str:
    return s.translate(_ASCII_UPPER)


def _lower(s: str) -> str:
    return s.translate(_ASCII_LOWER)


@dataclass
class NoteFields:
    """Fields extracted from a note-construction response."""

    keywords: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    context: str = ""


def parse_note(response: str) -> NoteFields:
    """Parse ``KEYWORDS:``, ``TAGS:`` and ``CONTEXT:`` lines (case-insensitive).

    Missing lines leave the corresponding field empty.
    """
    fields = NoteFields()
    for raw in response.split("\n"):
        line = strip_bullet(raw.strip())
        upper = _upper(line)
        if upper.startswith("KEYWORDS:"):
            fields.keywords = split_csv_lower(line[len("KEYWORDS:"):])
        elif upper.startswith("TAGS:"):
            fields.tags = split_csv_lower(line[len("TAGS:"):])
        elif upper.startswith("CONTEXT:"):
            fields.context = line[len("CONTEXT:"):].strip()
    return fields


def parse_link_selection(response: str) -> list[int]:
    """Return the distinct 1-based candidate numbers a link response selects.

    ``NONE``, empty or unparseable output gives an empty list.
    """
    text = response.strip()
    if not text or _upper(text).startswith("NONE"):
        return []
    selected: list[int] = []
    digits = ""
    for ch in text + " ":
        if ch in _DIGITS:
            digits += ch
        elif digits:
            number = int(digits)
            if 1 <= number <= _MAX_INDEX and number not in selected:
                selected.append(number)
            digits = ""
    return selected


@dataclass
class EvolutionChanges:
    """Additive changes proposed for a neighbor memory."""

    tags_add: list[str] = field(default_factory=list)
    keywords_add: list[str] = field(default_factory=list)

    def total_additions(self) -> int:
        """Number of additions across tags and keywords."""
        return len(self.tags_add) + len(self.keywords_add)

    def is_empty(self) -> bool:
        """True when nothing is proposed."""
        return self.total_additions() == 0


def parse_evolution(response: str) -> EvolutionChanges:
    """Parse ``TAGS_ADD:`` and ``KEYWORDS_ADD:`` lines; ``NONE`` means no change.

    Removals are never parsed, even if the model emits them.
    """
    changes = EvolutionChanges()
    text = response.strip()
    if not text or _upper(text).startswith("NONE"):
        return changes
    for raw in text.split("\n"):
        line = strip_bullet(raw.strip())
        upper = _upper(line)
        if upper.startswith("TAGS_ADD:"):
            changes.tags_add = split_csv_lower(line[len("TAGS_ADD:"):])
        elif upper.startswith("KEYWORDS_ADD:"):
            changes.keywords_add = split_csv_lower(line[len("KEYWORDS_ADD:"):])
    return changes


def split_csv_lower(s: str) -> list[str]:
    """Split on commas, semicolons and newlines; trim, drop empties and
    filler words, lowercase, and de-duplicate keeping first occurrences."""
    cleaned = s.translate(_BRACKETS).replace(";", ",").replace("\n", ",")
    items: list[str] = []
    for piece in cleaned.split(","):
        piece = piece.strip()
        if not piece or _lower(piece) in _FILLERS:
            continue
        item = _lower(piece)
        if item not in items:
            items.append(item)
    return items


def strip_bullet(s: str) -> str:
    """Drop a leading list marker such as ``-``, ``*``, ``•``, ``1.`` or ``2)``."""
    s = s.lstrip(_BULLETS).lstrip()
    if s and s[0] in _DIGITS:
        rest = s[1:].lstrip(_DIGITS)
        if rest and rest[0] in ".):":
            return rest[1:].lstrip()
    return s