"""The append-only event log vocabulary: the single system of record.

Every index is a materialized view rebuilt by replaying these events.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from mneme.entity import Memory, Outcome, PolicyArtifact, Source
from mneme.types import Id, MemoryRef, ProposalId, SourceRef


@dataclass
class ChangeSet:
    """A structural diff produced by the evolution worker."""

    keywords_added: list[str] = field(default_factory=list)
    keywords_removed: list[str] = field(default_factory=list)
    tags_added: list[str] = field(default_factory=list)
    tags_removed: list[str] = field(default_factory=list)
    context_rewritten: bool = False


@dataclass
class EvalReport:
    """Result of shadow-evaluating a procedural proposal before commit.

    ``judges_consulted`` of 0 means unknown and fails any judge-diversity
    requirement.
    """

    canaries_passed: int
    canaries_total: int
    replay_success_rate: float
    safety_probe_passed: bool
    objective_delta: float
    judges_consulted: int = 0

    def is_committable(self) -> bool:
        """Strict baseline gate: every canary passes, the safety probe
        passes and the objective does not regress."""
        return (
            self.canaries_passed == self.canaries_total
            and self.safety_probe_passed
            and self.objective_delta >= 0.0
        )


@dataclass(frozen=True)
class MemoryWritten:
    memory: Memory


@dataclass(frozen=True)
class MemoryEmbedded:
    """A memory's embedding was computed by ``model_id``."""

    id: MemoryRef
    embedding: list[float]
    model_id: str


@dataclass(frozen=True)
class MemoryNoteEnriched:
    """Derived keywords, tags and context were filled in for a memory."""

    id: MemoryRef
    keywords: list[str]
    tags: list[str]
    context: str


@dataclass(frozen=True)
class MemoryLinksUpdated:
    """A memory's links were replaced with the selected related memories."""

    id: MemoryRef
    links: list[MemoryRef]


@dataclass(frozen=True)
class MemoryEvolved:
    """Lineage record: ``from_`` was superseded by ``to``."""

    from_: MemoryRef
    to: MemoryRef
    diff: ChangeSet


@dataclass(frozen=True)
class MemoryInvalidated:
    id: MemoryRef
    reason: str


@dataclass(frozen=True)
class SourceIngested:
    source: Source


@dataclass(frozen=True)
class SourceInvalidated:
    """All chunks of a source are invalidated together."""

    id: SourceRef
    reason: str


@dataclass(frozen=True)
class OutcomeRecorded:
    outcome: Outcome


@dataclass(frozen=True)
class ProceduralProposed:
    proposal: ProposalId
    artifacts: list[PolicyArtifact]


@dataclass(frozen=True)
class ProceduralCommitted:
    proposal: ProposalId
    report: EvalReport


@dataclass(frozen=True)
class ProceduralRejected:
    proposal: ProposalId
    reason: str


Event = Union[
    MemoryWritten,
    MemoryEmbedded,
    MemoryNoteEnriched,
    MemoryLinksUpdated,
    MemoryEvolved,
    MemoryInvalidated,
    SourceIngested,
    SourceInvalidated,
    OutcomeRecorded,
    ProceduralProposed,
    ProceduralCommitted,
    ProceduralRejected,
]


@dataclass(frozen=True)
class LogEntry:
    """One immutable entry in the log."""

    id: Id
    event: Event