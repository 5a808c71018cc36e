import pytest

from mneme.synthesizer import (
    Answer,
    Excerpt,
    ExcerptSegment,
    Passage,
    SegmentKind,
    SynthesisProvenance,
    Synthesizer,
)
from mneme.types import MemoryRef, new_id


class _EchoSynthesizer(Synthesizer):
    @property
    def name(self) -> str:
        return "echo"

    async def synthesize(self, query, passages):
        excerpts = [
            Excerpt(p.memory, [ExcerptSegment.plain(p.content)], p.retrieval_score)
            for p in passages
        ]
        citations = []
        for excerpt in excerpts:
            if excerpt.memory not in citations:
                citations.append(excerpt.memory)
        return Answer(
            query=query,
            provenance=SynthesisProvenance(self.name),
            excerpts=excerpts,
            citations=citations,
        )


def test_plain_segment_wire_form():
    assert ExcerptSegment.plain("abc").to_dict() == {"kind": "plain", "text": "abc"}


def test_highlight_segment_wire_form():
    seg = ExcerptSegment.highlight("abc")
    assert seg.kind is SegmentKind.HIGHLIGHT
    assert seg.to_dict() == {"kind": "highlight", "text": "abc"}


def test_excerpt_text_joins_segments():
    ex = Excerpt(
        MemoryRef(new_id()),
        [ExcerptSegment.plain("rev "), ExcerptSegment.highlight("growth")],
        0.5,
    )
    assert ex.text == "rev growth"


def test_excerpt_to_dict_uses_memory_id_string():
    ref = MemoryRef(new_id())
    d = Excerpt(ref, [ExcerptSegment.plain("x")], 0.25).to_dict()
    assert d["memory"] == str(ref.id)
    assert len(d["memory"]) == 26
    assert d["segments"] == [{"kind": "plain", "text": "x"}]
    assert d["retrieval_score"] == 0.25


def test_answer_to_dict_shape():
    ref = MemoryRef(new_id())
    answer = Answer(
        query="q",
        provenance=SynthesisProvenance("snippet", elapsed_ms=7),
        excerpts=[Excerpt(ref, [ExcerptSegment.plain("t")], 1.0)],
        citations=[ref],
    )
    d = answer.to_dict()
    assert list(d) == ["query", "excerpts", "citations", "prose", "provenance"]
    assert d["prose"] is None
    assert d["citations"] == [str(ref)]
    assert d["provenance"] == {"synthesizer": "snippet", "model_id": None, "elapsed_ms": 7}


def test_synthesizer_is_abstract():
    with pytest.raises(TypeError):
        Synthesizer()


@pytest.mark.asyncio
async def test_subclass_synthesizes_with_distinct_citations():
    ref = MemoryRef(new_id())
    passages = [Passage(ref, "one", [], 0.9), Passage(ref, "two", [], 0.8)]
    answer = await _EchoSynthesizer().synthesize("query", passages)
    assert answer.citations == [ref]
    assert [e.text for e in answer.excerpts] == ["one", "two"]
    assert answer.provenance.synthesizer == "echo"