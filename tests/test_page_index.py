from __future__ import annotations

import pytest

from app.services.embeddings import cosine_similarity
from app.services.page_index import PageIndex

METADATA = {"title": "Sorting", "url": "https://example.com/sort"}


@pytest.mark.asyncio
async def test_similarity_search_ranks_by_cosine(embedder):
    chunks = [
        "The weather is sunny today.",
        "Quicksort picks a pivot and will partition the array.",
        "Python is a programming language.",
    ]
    index = await PageIndex.from_texts(chunks, METADATA, embedder)

    hits = await index.similarity_search("quicksort pivot partition", k=2)

    assert len(index) == 3
    assert [hit.chunk_text for hit in hits][0] == chunks[1]
    assert len(hits) == 2
    assert hits[0].score >= hits[1].score
    assert hits[0].metadata == METADATA


@pytest.mark.asyncio
async def test_ties_keep_chunk_order(embedder):
    index = await PageIndex.from_texts(["alpha text", "beta text", "gamma text"], METADATA, embedder)
    hits = await index.similarity_search("nothing relevant", k=3)
    assert [hit.chunk_text for hit in hits] == ["alpha text", "beta text", "gamma text"]


@pytest.mark.asyncio
async def test_k_larger_than_index_returns_everything(embedder):
    index = await PageIndex.from_texts(["only chunk"], METADATA, embedder)
    assert len(await index.similarity_search("query", k=5)) == 1
    assert await index.similarity_search("query", k=0) == []


@pytest.mark.asyncio
async def test_hit_metadata_is_not_shared(embedder):
    index = await PageIndex.from_texts(["one", "two"], METADATA, embedder)
    hits = index.similarity_search_by_vector(await embedder.embed_text("one"), k=2)
    hits[0].metadata["url"] = "mutated"
    assert hits[1].metadata["url"] == METADATA["url"]
    assert index.metadata["url"] == METADATA["url"]


def test_mismatched_vectors_raise(embedder):
    with pytest.raises(ValueError):
        PageIndex(["a", "b"], [[1.0]], METADATA, embedder)


def test_cosine_similarity_edge_cases():
    assert cosine_similarity([1.0, 0.0], [1.0, 0.0]) == pytest.approx(1.0)
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
    assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0
    assert cosine_similarity([1.0], [1.0, 2.0]) == 0.0
