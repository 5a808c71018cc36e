# mneme

A long-term memory layer for AI agents. Every change is described as an
event in an append-only log, so derived state can be rebuilt by replaying
that log. On top of that sits a bounded, A-MEM-style evolution worker that
enriches new memories, links them to related ones, and revises neighbouring
memories by writing new versions rather than overwriting history.

## Installation

```
pip install .
```

The package has no runtime dependencies. To run the tests:

```
pip install ".[test]"
pytest
```

## Core vocabulary

- `mneme.types`: `Id` (a 128-bit, ULID-shaped, sortable id with
  `timestamp_ms()`), `new_id()` (thread-safe and strictly increasing),
  `BiTemporal` stamps (`now()`, `is_live(at)`), `Scope` tenancy boundaries
  (`global_scope(tenant)`, `contains(other)`), and typed references:
  `MemoryRef`, `SourceRef`, `EpisodeRef`, `OutcomeRef`, `ArtifactRef`,
  `TrajectoryRef`, `ProposalId`.
- `mneme.entity`: `Memory`, `Source`, `Provenance`, `Outcome`, `JudgeSource`,
  `PolicyArtifact` and its kinds (`SystemPrompt`, `Heuristic`, `Skill`,
  `RetrievalRule`, `Reflection`), and `Canary`.
- `mneme.event`: the event types (`MemoryWritten`, `MemoryEmbedded`,
  `MemoryNoteEnriched`, `MemoryLinksUpdated`, `MemoryEvolved`,
  `MemoryInvalidated`, `SourceIngested`, `SourceInvalidated`,
  `OutcomeRecorded`, `ProceduralProposed`, `ProceduralCommitted`,
  `ProceduralRejected`), `LogEntry`, `ChangeSet`, and `EvalReport` with its
  strict `is_committable()` gate (all canaries pass, safety probe passes,
  objective delta is non-negative).
- `mneme.interfaces`: the abstract seams `EventLog`, `Retriever`,
  `LlmClient`, `Embedder` and `MaterializedView`, the `Query` and `Hit` types,
  and the exceptions `MnemeError`, `StorageError`, `IndexingError`,
  `LlmError`, `ScopeViolation` and `NotFoundError`.
- `mneme.synthesizer`: `Passage`, `Excerpt`, `ExcerptSegment` (`plain`,
  `highlight`), `SegmentKind`, `SynthesisProvenance`, `Answer` (each with a
  `to_dict()` wire form) and the abstract `Synthesizer` interface.

## Scopes

```python
from mneme.types import Scope

tenant = Scope.global_scope("acme")
user = Scope(tenant="acme", user="alice")
assert tenant.contains(user)
assert not user.contains(tenant)
```

## Memory evolution

`mneme.evolve` holds the evolution pipeline:

- `mneme.evolve.prompts`: `note_construction`, `link_generation` and
  `evolution_proposal` build the LLM prompts; `Candidate` describes a
  neighbour memory offered to them.
- `mneme.evolve.parse`: tolerant parsers (`parse_note`,
  `parse_link_selection`, `parse_evolution`) that accept noisy model output,
  plus the helpers `split_csv_lower` and `strip_bullet`.
- `mneme.evolve.config`: `EvolveConfig`, which sets the bounds: per-write
  cascade cap (`max_evolve_per_write`, default 3), lineage ceiling
  (`max_lifetime_evolutions`, default 8), cooldown (`cooldown_secs`, default
  300) and minimum change (`min_change_threshold`, default 1).
- `mneme.evolve.worker`: `EvolutionWorker` and `spawn`.

Supply your own `EventLog`, `Retriever` and `LlmClient`, then run the worker:

```python
from mneme.evolve.config import EvolveConfig
from mneme.evolve.worker import EvolutionWorker

async def main(log, retriever, llm):
    worker = EvolutionWorker(log, retriever, llm, EvolveConfig())
    await worker.run(0.4)  # replays the log, then tails it until cancelled
```

`spawn(log, retriever, llm, config)` starts the same loop as a background task
on the running event loop and returns the worker, with the task on its `task`
attribute. For deterministic use, such as tests, call `await worker.replay()`
once and then `await worker.process(entry)` on each `LogEntry` directly.
`evolution_count(memory)` and `snapshot_state()` report per-memory evolution
state.

Each evolution writes a new version of the neighbour memory with a `parent`
pointer, records a `MemoryEvolved` lineage event, and invalidates the old
version. Memories that already carry a `parent` do not trigger evolution.

## What the package does not include

The package defines the vocabulary and the evolution worker only. It ships no
concrete `EventLog` (no storage on disk or elsewhere), no `Retriever` or
search index, no `LlmClient` or `Embedder` for any model provider, no
`Synthesizer` implementation, no procedural compiler that consumes
`EvalReport`s, and no server or command-line program. Those are supplied by
the application through the interfaces in `mneme.interfaces` and
`mneme.synthesizer`.