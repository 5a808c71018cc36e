"""The bounded memory evolution worker.

It tails the event log and runs a three-step pipeline on each newly
written memory:

1. note construction, which emits ``MemoryNoteEnriched``;
2. link generation, which emits ``MemoryLinksUpdated``;
3. bounded evolution, which emits ``MemoryWritten``, ``MemoryEvolved`` and
   ``MemoryInvalidated`` to supersede a neighbor with a new version.

Every bound in :class:`~mneme.evolve.config.EvolveConfig` is enforced in
:meth:`EvolutionWorker.process`.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from dataclasses import dataclass

from mneme.entity import Memory, Provenance
from mneme.event import (
    ChangeSet,
    Event,
    LogEntry,
    MemoryEvolved,
    MemoryInvalidated,
    MemoryLinksUpdated,
    MemoryNoteEnriched,
    MemoryWritten,
)
from mneme.evolve import prompts
from mneme.evolve.config import EvolveConfig
from mneme.evolve.parse import (
    EvolutionChanges,
    parse_evolution,
    parse_link_selection,
    parse_note,
)
from mneme.interfaces import EventLog, LlmClient, MnemeError, Query, Retriever
from mneme.types import BiTemporal, Id, MemoryRef, new_id

_logger = logging.getLogger(__name__)

_U16_MAX = 0xFFFF
_DEFAULT_POLL_INTERVAL = 0.4


def _saturating_increment(value: int) -> int:
    return min(value + 1, _U16_MAX)


@dataclass
class _EvolutionState:
    """Per-memory bookkeeping for cooldown and lifetime counts."""

    last_evolved_at_ms: int = 0
    evolution_count: int = 0


class EvolutionWorker:
    """Runs bounded evolution over memories as they arrive in the log.

    Keeps a cache of live memories, rebuilt by :meth:`replay` and kept
    current by :meth:`process`, plus per-memory evolution state.
    """

    def __init__(
        self,
        log: EventLog,
        retriever: Retriever,
        llm: LlmClient,
        config: EvolveConfig | None = None,
    ) -> None:
        self.log = log
        self.retriever = retriever
        self.llm = llm
        self.config = config if config is not None else EvolveConfig()
        self._memories: dict[MemoryRef, Memory] = {}
        self._state: dict[MemoryRef, _EvolutionState] = {}
        self.task: asyncio.Task[None] | None = None

    async def replay(self) -> Id | None:
        """Rebuild the caches from the whole log; return the last entry's id."""
        entries = await self.log.read_from(None)
        for entry in entries:
            self._absorb(entry)
        return entries[-1].id if entries else None

    def _absorb(self, entry: LogEntry) -> None:
        event = entry.event
        if isinstance(event, MemoryWritten):
            memory = copy.deepcopy(event.memory)
            self._memories[MemoryRef(memory.id)] = memory
        elif isinstance(event, MemoryNoteEnriched):
            memory = self._memories.get(event.id)
            if memory is not None:
                memory.keywords = list(event.keywords)
                memory.tags = list(event.tags)
                memory.context = event.context
        elif isinstance(event, MemoryLinksUpdated):
            memory = self._memories.get(event.id)
            if memory is not None:
                memory.links = list(event.links)
        elif isinstance(event, MemoryEvolved):
            state = self._state.setdefault(event.from_, _EvolutionState())
            state.evolution_count = _saturating_increment(state.evolution_count)
            state.last_evolved_at_ms = entry.id.timestamp_ms()
        elif isinstance(event, MemoryInvalidated):
            self._memories.pop(event.id, None)

    async def _emit(self, event: Event) -> None:
        entry_id = await self.log.append(event)
        self._absorb(LogEntry(entry_id, event))

    async def process(self, entry: LogEntry) -> None:
        """Absorb ``entry`` and, for a fresh ``MemoryWritten``, run the pipeline.

        Memories that carry a ``parent`` are themselves evolution results
        and are skipped to prevent loops. Failures of individual steps are
        logged and do not stop the remaining steps.
        """
        self._absorb(entry)
        event = entry.event
        if not isinstance(event, MemoryWritten):
            return
        memory = event.memory
        if memory.parent is not None:
            _logger.debug("evolve: skipping %s, it is itself an evolution result", memory.id)
            return

        try:
            await self._run_note_construction(memory)
        except MnemeError as exc:
            _logger.warning("evolve: note construction failed for %s: %s", memory.id, exc)

        try:
            neighbors = await self._fetch_neighbors(memory)
        except MnemeError as exc:
            _logger.warning("evolve: neighbor fetch failed for %s: %s", memory.id, exc)
            neighbors = []

        try:
            selected = await self._run_link_generation(memory, neighbors)
        except MnemeError as exc:
            _logger.warning("evolve: link generation failed for %s: %s", memory.id, exc)
            selected = []

        now_ms = entry.id.timestamp_ms()
        cascade = 0
        for neighbor in selected:
            if cascade >= self.config.max_evolve_per_write:
                break
            if not self._eligible_for_evolution(neighbor, now_ms):
                continue
            try:
                if await self._evolve_neighbor(neighbor, memory):
                    cascade += 1
            except MnemeError as exc:
                _logger.warning("evolve: evolution of %s failed: %s", neighbor, exc)

    async def _run_note_construction(self, memory: Memory) -> None:
        response = await self.llm.complete(prompts.note_construction(memory.content))
        fields = parse_note(response)
        if not fields.keywords and not fields.tags and not fields.context:
            return
        if (
            fields.keywords == memory.keywords
            and fields.tags == memory.tags
            and fields.context == memory.context
        ):
            return
        await self._emit(
            MemoryNoteEnriched(
                id=MemoryRef(memory.id),
                keywords=fields.keywords,
                tags=fields.tags,
                context=fields.context,
            )
        )

    async def _fetch_neighbors(self, memory: Memory) -> list[MemoryRef]:
        # Twice the cap leaves the link step room to discard noisy candidates.
        k = max(self.config.max_evolve_per_write * 2, 1)
        query = Query(text=memory.content, scope=memory.scope, k=k)
        hits = await self.retriever.search(query)
        return [hit.memory for hit in hits if hit.memory.id != memory.id]

    async def _run_link_generation(
        self, memory: Memory, neighbors: list[MemoryRef]
    ) -> list[MemoryRef]:
        if not neighbors:
            return []
        candidates = [
            prompts.Candidate(
                memory=ref,
                content=cached.content,
                tags=tuple(cached.tags),
                keywords=tuple(cached.keywords),
            )
            for ref in neighbors
            if (cached := self._memories.get(ref)) is not None
        ]
        if not candidates:
            return []
        response = await self.llm.complete(
            prompts.link_generation(memory.content, candidates)
        )
        selected = [
            candidates[index - 1].memory
            for index in parse_link_selection(response)
            if 1 <= index <= len(candidates)
        ]
        if not selected:
            return []
        await self._emit(MemoryLinksUpdated(id=MemoryRef(memory.id), links=list(selected)))
        return selected

    def _eligible_for_evolution(self, neighbor: MemoryRef, now_ms: int) -> bool:
        """Lifetime-cap and cooldown gate, checked before any LLM call.

        The cap binds the lineage chain depth carried in
        ``Memory.evolution_count``; the cooldown is tracked per reference.
        """
        cached = self._memories.get(neighbor)
        if cached is None:
            return False
        if cached.evolution_count >= self.config.max_lifetime_evolutions:
            return False
        state = self._state.get(neighbor)
        if state is not None:
            cooldown_ms = self.config.cooldown_secs * 1000
            if max(now_ms - state.last_evolved_at_ms, 0) < cooldown_ms:
                return False
        return True

    async def _evolve_neighbor(self, neighbor_ref: MemoryRef, new_memory: Memory) -> bool:
        """Propose and, above the threshold, commit an evolution of a neighbor."""
        cached = self._memories.get(neighbor_ref)
        if cached is None:
            return False
        neighbor = copy.deepcopy(cached)
        candidate = prompts.Candidate(
            memory=neighbor_ref,
            content=neighbor.content,
            tags=tuple(neighbor.tags),
            keywords=tuple(neighbor.keywords),
        )
        response = await self.llm.complete(
            prompts.evolution_proposal(candidate, new_memory.content)
        )
        changes = parse_evolution(response)
        if changes.total_additions() < self.config.min_change_threshold:
            return False
        await self._commit_evolution(neighbor, changes)
        return True

    async def _commit_evolution(self, old: Memory, changes: EvolutionChanges) -> None:
        """Write the new version, record the lineage and invalidate the old one."""
        new_tags = list(old.tags)
        new_tags.extend(t for t in dict.fromkeys(changes.tags_add) if t not in old.tags)
        new_keywords = list(old.keywords)
        new_keywords.extend(
            k for k in dict.fromkeys(changes.keywords_add) if k not in old.keywords
        )

        old_ref = MemoryRef(old.id)
        evolved = Memory(
            id=new_id(),
            scope=old.scope,
            content=old.content,
            keywords=new_keywords,
            tags=new_tags,
            context=old.context,
            embedding=list(old.embedding) if old.embedding is not None else None,
            links=list(old.links),
            parent=old_ref,
            evolution_count=_saturating_increment(old.evolution_count),
            time=BiTemporal.now(),
            provenance=Provenance(source="evolution-worker", trust=old.provenance.trust),
            source=old.source,
            position=old.position,
        )

        # Order matters for replay: the new version exists before it is referenced.
        await self._emit(MemoryWritten(evolved))
        await self._emit(
            MemoryEvolved(
                from_=old_ref,
                to=MemoryRef(evolved.id),
                diff=ChangeSet(
                    keywords_added=list(changes.keywords_add),
                    tags_added=list(changes.tags_add),
                ),
            )
        )
        await self._emit(
            MemoryInvalidated(id=old_ref, reason="superseded by bounded evolution")
        )

    def evolution_count(self, memory: MemoryRef) -> int:
        """How many times ``memory`` has been evolved."""
        state = self._state.get(memory)
        return state.evolution_count if state is not None else 0

    def snapshot_state(self) -> list[tuple[MemoryRef, int, int]]:
        """``(memory, evolution_count, last_evolved_at_ms)`` for every tracked memory."""
        return [
            (ref, state.evolution_count, state.last_evolved_at_ms)
            for ref, state in self._state.items()
        ]

    async def run(self, poll_interval: float = _DEFAULT_POLL_INTERVAL) -> None:
        """Replay the log, then tail it forever, processing each new entry."""
        try:
            last_seen = await self.replay()
        except MnemeError as exc:
            _logger.error("evolution worker: initial replay failed: %s", exc)
            last_seen = None
        _logger.info("evolution worker: started")
        while True:
            try:
                entries = await self.log.read_from(last_seen)
            except MnemeError as exc:
                _logger.error("evolution worker: log read failed: %s", exc)
                entries = []
            for entry in entries:
                last_seen = entry.id
                try:
                    await self.process(entry)
                except MnemeError as exc:
                    _logger.warning("evolution worker: process error: %s", exc)
            await asyncio.sleep(poll_interval)


def spawn(
    log: EventLog,
    retriever: Retriever,
    llm: LlmClient,
    config: EvolveConfig | None = None,
) -> EvolutionWorker:
    """Start a worker as a background task on the running event loop.

    The task is kept on the returned worker's ``task`` attribute.
    """
    worker = EvolutionWorker(log, retriever, llm, config)
    worker.task = asyncio.get_running_loop().create_task(worker.run())
    return worker