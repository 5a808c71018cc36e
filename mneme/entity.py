"""The three entity families: memories (knowledge), outcomes (feedback)
and policy artifacts (procedure), plus source documents."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from mneme.types import (
    ArtifactRef,
    BiTemporal,
    EpisodeRef,
    Id,
    MemoryRef,
    Scope,
    SourceRef,
    TrajectoryRef,
)


@dataclass
class Provenance:
    """Where a memory came from; ``trust`` runs from 0.0 to 1.0."""

    source: str = "unknown"
    trust: float = 0.5


@dataclass
class Memory:
    """A unit of knowledge with bi-temporal stamp and evolution lineage.

    Memories chunked from a document share a ``source`` and carry a
    zero-based ``position``; standalone memories leave both ``None``.
    """

    id: Id
    scope: Scope
    content: str
    keywords: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    context: str = ""
    embedding: list[float] | None = None
    links: list[MemoryRef] = field(default_factory=list)
    parent: MemoryRef | None = None
    evolution_count: int = 0
    time: BiTemporal = field(default_factory=BiTemporal.now)
    provenance: Provenance = field(default_factory=Provenance)
    source: SourceRef | None = None
    position: int | None = None


@dataclass
class Source:
    """A document that memories were chunked from."""

    id: Id
    scope: Scope
    title: str
    uri: str | None = None
    chunk_count: int = 0
    time: BiTemporal = field(default_factory=BiTemporal.now)
    provenance: Provenance = field(default_factory=Provenance)


class JudgeSource(Enum):
    """Who judged an outcome."""

    ENVIRONMENT = "Environment"
    LLM_JUDGE = "LlmJudge"
    HUMAN = "Human"
    MIXED = "Mixed"


@dataclass
class Outcome:
    """Feedback consumed by the procedural compiler."""

    id: Id
    episode: EpisodeRef
    judge: JudgeSource
    trajectory: TrajectoryRef
    artifacts_used: list[ArtifactRef] = field(default_factory=list)
    success: bool | None = None
    scores: dict[str, float] = field(default_factory=dict)
    error: str | None = None


@dataclass(frozen=True)
class SystemPrompt:
    body: str


@dataclass(frozen=True)
class Heuristic:
    when: str
    then: str


@dataclass(frozen=True)
class Skill:
    signature: str
    body: str
    lang: str
    preconditions: list[str] = field(default_factory=list)
    postconditions: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RetrievalRule:
    query_pattern: str
    rewrite: str


@dataclass(frozen=True)
class Reflection:
    episode: EpisodeRef
    lesson: str


ArtifactKind = Union[SystemPrompt, Heuristic, Skill, RetrievalRule, Reflection]


@dataclass(frozen=True)
class Canary:
    """A regression check every new artifact version must still satisfy."""

    input: str
    expect: str


@dataclass
class PolicyArtifact:
    """A versioned, scoped unit of procedure."""

    id: Id
    version: int
    scope: Scope
    kind: ArtifactKind
    canaries: list[Canary] = field(default_factory=list)
    time: BiTemporal = field(default_factory=BiTemporal.now)