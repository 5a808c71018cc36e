import pytest

from mneme.interfaces import (
    Embedder,
    EventLog,
    Hit,
    IndexingError,
    LlmClient,
    LlmError,
    MnemeError,
    NotFoundError,
    Query,
    Retriever,
    ScopeViolation,
    StorageError,
)
from mneme.types import MemoryRef, Scope, new_id


@pytest.mark.parametrize(
    "error, text",
    [
        (StorageError("disk full"), "storage: disk full"),
        (IndexingError("corrupt"), "index: corrupt"),
        (LlmError("timeout"), "llm: timeout"),
        (NotFoundError("m1"), "not found: m1"),
        (MnemeError("boom"), "boom"),
    ],
)
def test_error_messages(error, text):
    assert str(error) == text


def test_scope_violation_message_and_fields():
    err = ScopeViolation("acme/alice", "acme/bob")
    assert str(err) == "scope violation: acme/alice may not access acme/bob"
    assert err.accessor == "acme/alice"
    assert err.target == "acme/bob"


def test_errors_share_a_base():
    not_found = NotFoundError("x")
    violation = ScopeViolation("a", "b")
    assert str(not_found) == "not found: x"
    assert str(violation) == "scope violation: a may not access b"
    caught = []
    for err in (not_found, violation, StorageError("s")):
        try:
            raise err
        except MnemeError as exc:
            caught.append(str(exc))
    assert caught == ["not found: x", "scope violation: a may not access b", "storage: s"]


@pytest.mark.parametrize("cls", [EventLog, Retriever, LlmClient, Embedder])
def test_interfaces_cannot_be_instantiated(cls):
    with pytest.raises(TypeError):
        cls()


class _ListLog(EventLog):
    def __init__(self):
        self.entries = []

    async def append(self, event):
        entry_id = new_id()
        self.entries.append((entry_id, event))
        return entry_id

    async def read_from(self, after):
        return [event for entry_id, event in self.entries if after is None or entry_id > after]


@pytest.mark.asyncio
async def test_partial_implementation_is_rejected():
    class HalfLog(EventLog):
        async def append(self, event):
            return new_id()

    assert HalfLog.__abstractmethods__ == frozenset({"read_from"})
    with pytest.raises(TypeError):
        HalfLog()

    log = _ListLog()
    first = await log.append("a")
    second = await log.append("b")
    assert second > first
    assert await log.read_from(first) == ["b"]
    assert await log.read_from(None) == ["a", "b"]
    marker = new_id()
    assert await log.read_from(marker) == []


class _EchoLlm(LlmClient):
    async def complete(self, prompt):
        return prompt.upper()


class _FixedRetriever(Retriever):
    def __init__(self, refs):
        self.refs = refs

    async def search(self, query):
        return [Hit(memory=ref, score=1.0) for ref in self.refs[: query.k]]


@pytest.mark.asyncio
async def test_concrete_client_is_usable():
    client = _EchoLlm()
    assert await client.complete("hi") == "HI"

    refs = [MemoryRef(new_id()) for _ in range(3)]
    retriever = _FixedRetriever(refs)
    hits = await retriever.search(Query(text="revenue", scope=Scope.global_scope("t"), k=2))
    assert [h.memory for h in hits] == refs[:2]
    assert all(h.breakdown == [] for h in hits)


def test_query_and_hit_defaults():
    q = Query(text="revenue", scope=Scope.global_scope("t"), k=4)
    assert q.time_filter is None
    ref = MemoryRef(new_id())
    h = Hit(memory=ref, score=0.5)
    assert h.breakdown == []
    assert h.memory == ref