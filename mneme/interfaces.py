"""The seams of the system: the event log, materialized views, retrieval,
the LLM client and the embedder, plus the error hierarchy."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime

from mneme.event import Event, LogEntry
from mneme.types import Id, MemoryRef, Scope


class MnemeError(Exception):
    """Base error for the package. Its message is shown unchanged."""

    prefix = ""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.prefix}{self.message}"


class StorageError(MnemeError):
    prefix = "storage: "


class IndexingError(MnemeError):
    prefix = "index: "


class LlmError(MnemeError):
    prefix = "llm: "


class NotFoundError(MnemeError):
    prefix = "not found: "


class ScopeViolation(MnemeError):
    """Raised when one scope tries to access data of another."""

    def __init__(self, accessor: str, target: str) -> None:
        super().__init__(f"{accessor} may not access {target}")
        self.accessor = accessor
        self.target = target

    prefix = "scope violation: "


class EventLog(ABC):
    """The append-only event log: the system of record."""

    @abstractmethod
    async def append(self, event: Event) -> Id:
        """Append an event and return the id of its entry."""

    @abstractmethod
    async def read_from(self, after: Id | None) -> list[LogEntry]:
        """Entries with id strictly greater than ``after`` (all when ``None``)."""


class MaterializedView(ABC):
    """Consumes the event tail to maintain derived state."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable view name."""

    @abstractmethod
    async def apply(self, entry: LogEntry) -> None:
        """Fold one log entry into the view."""

    @abstractmethod
    async def checkpoint(self) -> Id | None:
        """Id of the last entry durably processed."""


@dataclass
class Query:
    """A scoped, filtered retrieval request."""

    text: str
    scope: Scope
    k: int
    time_filter: datetime | None = None


@dataclass
class Hit:
    """A retrieval result with a per-signal score breakdown."""

    memory: MemoryRef
    score: float
    breakdown: list[tuple[str, float]] = field(default_factory=list)


class Retriever(ABC):
    """Retrieval surface over the indexed memories."""

    @abstractmethod
    async def search(self, query: Query) -> list[Hit]:
        """Return ranked hits for ``query``."""


class LlmClient(ABC):
    """Provider-agnostic completion client."""

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """Complete ``prompt`` and return the model's text."""


class Embedder(ABC):
    """Text embedder with a stable model identifier."""

    @property
    @abstractmethod
    def dim(self) -> int:
        """Embedding dimension."""

    @property
    @abstractmethod
    def model_id(self) -> str:
        """Identifier shared by all embedders with comparable vector spaces."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed each text."""