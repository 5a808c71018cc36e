"""The synthesizer seam: turning retrieved passages into a cited answer.

A retriever ranks memories; a synthesizer composes an :class:`Answer` from
them as a set of excerpts with citations, optionally with free-form prose.
Extractive synthesizers only emit text that came from a real memory, so
every word of an answer traces back to a :class:`~mneme.types.MemoryRef`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from mneme.types import MemoryRef


@dataclass
class Passage:
    """A retrieved memory handed to a synthesizer for excerpting."""

    memory: MemoryRef
    content: str
    tags: list[str] = field(default_factory=list)
    retrieval_score: float = 0.0


class SegmentKind(Enum):
    """How a run of excerpt text is rendered."""

    PLAIN = "plain"
    HIGHLIGHT = "highlight"


@dataclass(frozen=True)
class ExcerptSegment:
    """A run of text in an excerpt, plain or highlighted as matching the query."""

    kind: SegmentKind
    text: str

    @classmethod
    def plain(cls, text: str) -> ExcerptSegment:
        """A plainly rendered segment."""
        return cls(SegmentKind.PLAIN, text)

    @classmethod
    def highlight(cls, text: str) -> ExcerptSegment:
        """A segment highlighted as matching the query."""
        return cls(SegmentKind.HIGHLIGHT, text)

    def to_dict(self) -> dict[str, Any]:
        """Wire form: ``{"kind": ..., "text": ...}``."""
        return {"kind": self.kind.value, "text": self.text}


@dataclass
class Excerpt:
    """One excerpt in a composed answer."""

    memory: MemoryRef
    segments: list[ExcerptSegment] = field(default_factory=list)
    retrieval_score: float = 0.0

    @property
    def text(self) -> str:
        """The excerpt's full text with segment boundaries removed."""
        return "".join(segment.text for segment in self.segments)

    def to_dict(self) -> dict[str, Any]:
        """Wire form of the excerpt."""
        return {
            "memory": str(self.memory),
            "segments": [segment.to_dict() for segment in self.segments],
            "retrieval_score": self.retrieval_score,
        }


@dataclass
class SynthesisProvenance:
    """Which synthesizer produced an answer, and how long it took."""

    synthesizer: str
    model_id: str | None = None
    elapsed_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Wire form of the provenance."""
        return {
            "synthesizer": self.synthesizer,
            "model_id": self.model_id,
            "elapsed_ms": self.elapsed_ms,
        }


@dataclass
class Answer:
    """A synthesized answer.

    ``citations`` lists distinct memories in order of first appearance in
    ``excerpts``. ``prose`` is ``None`` for extractive synthesizers.
    """

    query: str
    provenance: SynthesisProvenance
    excerpts: list[Excerpt] = field(default_factory=list)
    citations: list[MemoryRef] = field(default_factory=list)
    prose: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Wire form of the answer."""
        return {
            "query": self.query,
            "excerpts": [excerpt.to_dict() for excerpt in self.excerpts],
            "citations": [str(citation) for citation in self.citations],
            "prose": self.prose,
            "provenance": self.provenance.to_dict(),
        }


class Synthesizer(ABC):
    """Composes an :class:`Answer` from a set of passages.

    Implementations are deterministic unless they document otherwise.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable identifier, echoed in :attr:`SynthesisProvenance.synthesizer`."""

    @abstractmethod
    async def synthesize(self, query: str, passages: list[Passage]) -> Answer:
        """Compose an answer to ``query`` from ``passages``."""