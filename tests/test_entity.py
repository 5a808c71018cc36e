import dataclasses

from mneme.entity import (
    Canary,
    Heuristic,
    JudgeSource,
    Memory,
    Outcome,
    PolicyArtifact,
    Provenance,
    Reflection,
    RetrievalRule,
    Skill,
    Source,
    SystemPrompt,
)
from mneme.types import EpisodeRef, Scope, SourceRef, TrajectoryRef, new_id


def test_provenance_defaults():
    p = Provenance()
    assert p.source == "unknown"
    assert p.trust == 0.5


def test_memory_defaults_are_empty_and_independent():
    a = Memory(id=new_id(), scope=Scope.global_scope("t"), content="a")
    b = Memory(id=new_id(), scope=Scope.global_scope("t"), content="b")
    assert a.source is None and a.position is None
    assert a.embedding is None and a.parent is None
    assert a.evolution_count == 0
    a.tags.append("x")
    assert b.tags == []


def test_memory_chunk_carries_source_and_position():
    src = Source(id=new_id(), scope=Scope.global_scope("t"), title="report", chunk_count=2)
    chunk = Memory(
        id=new_id(),
        scope=src.scope,
        content="part",
        source=SourceRef(src.id),
        position=1,
    )
    assert chunk.source == SourceRef(src.id)
    assert chunk.position == 1
    assert src.uri is None


def test_memory_replace_keeps_identity_fields():
    m = Memory(id=new_id(), scope=Scope.global_scope("t"), content="c", tags=["a"])
    m2 = dataclasses.replace(m, tags=["a", "b"])
    assert m2.id == m.id
    assert m2.tags == ["a", "b"]
    assert m.tags == ["a"]


def test_outcome_defaults():
    o = Outcome(
        id=new_id(),
        episode=EpisodeRef(new_id()),
        judge=JudgeSource.ENVIRONMENT,
        trajectory=TrajectoryRef(new_id()),
    )
    assert o.success is None
    assert o.scores == {}
    assert o.artifacts_used == []
    assert o.error is None


def test_judge_source_members():
    assert {j.value for j in JudgeSource} == {"Environment", "LlmJudge", "Human", "Mixed"}
    assert JudgeSource("LlmJudge") is JudgeSource.LLM_JUDGE


def test_artifact_kinds_match_structurally():
    episode = EpisodeRef(new_id())
    kinds = [
        SystemPrompt(body="Answer briefly."),
        Heuristic(when="user asks twice", then="clarify"),
        Skill(signature="f(x)", body="return x", lang="python"),
        RetrievalRule(query_pattern="q", rewrite="r"),
        Reflection(episode=episode, lesson="be careful"),
    ]
    assert kinds[0] == SystemPrompt(body="Answer briefly.")
    assert kinds[1] != Heuristic(when="user asks twice", then="ignore")
    assert kinds[4].episode == episode
    names = []
    for kind in kinds:
        match kind:
            case SystemPrompt(body=body):
                names.append(body)
            case Heuristic(then=then):
                names.append(then)
            case Skill(lang=lang):
                names.append(lang)
            case RetrievalRule(rewrite=rewrite):
                names.append(rewrite)
            case Reflection(lesson=lesson):
                names.append(lesson)
    assert names == ["Answer briefly.", "clarify", "python", "r", "be careful"]


def test_policy_artifact_holds_canaries():
    art = PolicyArtifact(
        id=new_id(),
        version=1,
        scope=Scope.global_scope("t"),
        kind=SystemPrompt(body="body"),
        canaries=[Canary(input="sky?", expect="blue")],
    )
    assert art.canaries[0] == Canary(input="sky?", expect="blue")
    assert art.time.tx_to is None