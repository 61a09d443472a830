from __future__ import annotations

import json

import pytest

from app.agents.answer_synthesizer import NO_RESULTS_ANSWER, AnswerSynthesizer
from app.llm_client import ChatClient
from app.models.pipeline import AnswerQuery, SimilarityHit
from conftest import FakeCompletions, fake_openai, text_chunk

EVIDENCE = [
    SimilarityHit(
        chunk_text="Quicksort picks a pivot.",
        metadata={"title": "Sorting", "url": "https://example.com/sort"},
        score=0.91234,
    )
]


def _synthesizer(completions: FakeCompletions | None = None) -> AnswerSynthesizer:
    return AnswerSynthesizer(ChatClient(fake_openai(completions or FakeCompletions())), model="answer-model")


def test_direct_messages_embed_query_and_evidence():
    messages = _synthesizer().build_messages(AnswerQuery(message=" explain quicksort "), EVIDENCE)

    assert [m["role"] for m in messages] == ["system", "user"]
    assert NO_RESULTS_ANSWER in messages[0]["content"]
    assert "explain quicksort" in messages[1]["content"]
    evidence_json = json.dumps([hit.to_dict() for hit in EVIDENCE], ensure_ascii=False)
    assert evidence_json in messages[1]["content"]
    assert '"pageContent": "Quicksort picks a pivot."' in evidence_json
    assert "Cite the sources" not in messages[0]["content"]


def test_source_citation_instruction_is_optional():
    query = AnswerQuery(message="q", embed_sources_in_llm_response=True)
    messages = _synthesizer().build_messages(query, EVIDENCE)
    assert "Cite the sources" in messages[0]["content"]


def test_dialogue_strategy_threads_history():
    query = AnswerQuery(
        message="and its worst case?",
        history=[
            {"role": "user", "content": "what is quicksort?"},
            {"role": "assistant", "content": "A sorting algorithm."},
            {"role": "system", "content": "ignored"},
            {"role": "user", "content": ""},
        ],
    )
    messages = _synthesizer().build_messages(query, EVIDENCE, strategy="dialogue")

    assert [m["role"] for m in messages] == ["system", "user", "assistant", "user"]
    assert messages[1]["content"] == "what is quicksort?"
    assert "and its worst case?" in messages[-1]["content"]


def test_direct_strategy_ignores_history():
    query = AnswerQuery(message="q", history=[{"role": "user", "content": "earlier"}])
    assert len(_synthesizer().build_messages(query, [])) == 2


@pytest.mark.asyncio
async def test_synthesize_streams_fragments_to_callback():
    completions = FakeCompletions(
        stream_chunks=[text_chunk("Pick "), text_chunk("a pivot."), text_chunk(None, finish_reason="stop")]
    )
    fragments: list[str] = []

    async def on_fragment(fragment: str) -> None:
        fragments.append(fragment)

    answer = await _synthesizer(completions).synthesize(
        AnswerQuery(message="explain quicksort"), EVIDENCE, on_fragment=on_fragment
    )

    assert answer == "Pick a pivot."
    assert fragments == ["Pick ", "a pivot."]
    assert completions.calls[0]["model"] == "answer-model"
