"""
Unit tests for the in-memory vector index.

Tests similarity search, type isolation, persistence and failure handling.
"""

import asyncio
import json
from unittest.mock import AsyncMock, Mock

import numpy as np
import pytest

from proposal_copilot.errors import ConfigurationError, EmbeddingError, IndexCorruptionError
from proposal_copilot.storage.blob.memory import InMemoryBlobStore
from proposal_copilot.storage.vector.memory import InMemoryVectorIndex, cosine_similarities
from proposal_copilot.storage.vector.models import RecordMetadata, VectorRecord


def failing_embedding(vectors):
    """Embedding mock returning ``vectors`` in order; exceptions in the list are raised."""
    embedding = Mock()
    embedding.embed_document = AsyncMock(side_effect=vectors)
    embedding.embed_query = AsyncMock(return_value=[1.0, 0.0])
    return embedding


def test_cosine_similarities_zero_rows_score_zero():
    matrix = np.array([[1.0, 0.0], [0.0, 0.0], [1.0, 1.0]])

    scores = cosine_similarities(matrix, np.array([1.0, 0.0]))

    assert scores[0] == pytest.approx(1.0)
    assert scores[1] == 0.0
    assert scores[2] == pytest.approx(0.7071, abs=1e-4)


def test_cosine_similarities_zero_query():
    scores = cosine_similarities(np.array([[1.0, 0.0]]), np.zeros(2))

    assert scores.tolist() == [0.0]


@pytest.mark.asyncio
async def test_add_returns_id(index):
    record_id = await index.add("Staking rewards", RecordMetadata(title="Staking"))

    assert record_id.startswith("doc_")
    assert index.count() == 1
    assert index.get(record_id).metadata.title == "Staking"


@pytest.mark.asyncio
async def test_add_uses_chunk_id(index):
    record_id = await index.add("Staking rewards", RecordMetadata(chunk_id="post1_chunk_0"))

    assert record_id == "post1_chunk_0"


@pytest.mark.asyncio
async def test_add_same_id_replaces(index):
    await index.add("Staking rewards", RecordMetadata(chunk_id="a"))
    await index.add("Treasury budget", RecordMetadata(chunk_id="a"))

    assert index.count() == 1
    assert index.get("a").text == "Treasury budget"


@pytest.mark.asyncio
async def test_add_empty_text_rejected(index):
    with pytest.raises(ConfigurationError):
        await index.add("   ")


@pytest.mark.asyncio
async def test_search_threshold_and_order(index):
    await index.add("Staking rewards for stakers", RecordMetadata(title="A"))
    await index.add("Treasury funding", RecordMetadata(title="B"))
    await index.add("Staking from the treasury", RecordMetadata(title="C"))

    results = await index.search("staking", limit=5, threshold=0.7)

    assert [r.metadata.title for r in results] == ["A", "C"]
    assert results[0].score == pytest.approx(1.0)
    assert results[1].score == pytest.approx(0.7071, abs=1e-4)
    assert all(r.score >= 0.7 for r in results)


@pytest.mark.asyncio
async def test_search_limit(index):
    for i in range(4):
        await index.add(f"Staking post {i}", RecordMetadata(title=str(i)))

    results = await index.search("staking", limit=2, threshold=0.5)

    assert len(results) == 2
    # Ties keep insertion order
    assert [r.metadata.title for r in results] == ["0", "1"]


@pytest.mark.asyncio
async def test_near_duplicate_is_top_hit(index):
    await index.add("Treasury budget allocation", RecordMetadata(title="Treasury"))
    await index.add("Brand logo design", RecordMetadata(title="Brand"))

    results = await index.search("Treasury budget allocation", threshold=0.0)

    assert results[0].metadata.title == "Treasury"
    assert results[0].score == pytest.approx(1.0)


@pytest.mark.asyncio
async def test_zero_vector_never_matches(index):
    await index.add("hello world", RecordMetadata(title="Nothing"))

    assert await index.search("staking", threshold=0.1) == []

    results = await index.search("staking", threshold=-1.0)
    assert results[0].score == 0.0


@pytest.mark.asyncio
async def test_search_empty_index(index, embedding):
    assert await index.search("staking") == []
    assert embedding.query_calls == 0


@pytest.mark.asyncio
async def test_search_blank_query_skips_embedding(index, embedding):
    await index.add("Staking rewards")

    assert await index.search("   ") == []
    assert embedding.query_calls == 0


@pytest.mark.asyncio
async def test_search_doc_type_filter(index):
    await index.add("Staking rewards", RecordMetadata(title="forum", type="forum"))
    await index.add("Staking guide", RecordMetadata(title="doc", type="document"))

    results = await index.search("staking", threshold=0.5, doc_type="document")

    assert [r.metadata.title for r in results] == ["doc"]


@pytest.mark.asyncio
async def test_clear_by_type_isolation(index):
    await index.add("Staking rewards", RecordMetadata(type="forum"))
    await index.add("Treasury budget", RecordMetadata(type="forum"))
    kept = await index.add("Staking guide", RecordMetadata(type="document"))

    removed = await index.clear_by_type("forum")

    assert removed == 2
    assert index.count() == 1
    assert index.get(kept) is not None
    results = await index.search("staking", threshold=0.5)
    assert [r.id for r in results] == [kept]


@pytest.mark.asyncio
async def test_clear(index):
    await index.add("Staking rewards")
    await index.add("Treasury budget")

    assert await index.clear() == 2
    assert index.count() == 0


@pytest.mark.asyncio
async def test_stats(index):
    await index.add("Staking rewards", RecordMetadata(type="forum"))
    await index.add("Treasury budget", RecordMetadata(type="forum"))
    await index.add("Brand logo", RecordMetadata(type="document"))

    stats = index.stats()

    assert stats["total_records"] == 3
    assert stats["dimension"] == 4
    assert stats["document_types"] == {"forum": 2, "document": 1}


@pytest.mark.asyncio
async def test_persistence_round_trip(index, embedding, blob_store):
    record_id = await index.add(
        "Staking rewards", RecordMetadata(title="Staking", url="https://forum/1", type="forum")
    )

    reloaded = InMemoryVectorIndex(embedding, blob_store=blob_store)

    assert reloaded.count() == 1
    record = reloaded.get(record_id)
    assert record.text == "Staking rewards"
    assert record.metadata.url == "https://forum/1"
    assert record.metadata.type == "forum"
    results = await reloaded.search("staking", threshold=0.5)
    assert results[0].id == record_id


@pytest.mark.asyncio
async def test_persisted_blob_layout(index, blob_store):
    record_id = await index.add("Staking rewards", RecordMetadata(title="Staking"))

    data = json.loads(blob_store.load("vector_store"))

    assert data["vectors"] == [{"id": record_id, "embedding": [1.0, 0.0, 0.0, 0.0]}]
    assert data["metadata"][0]["id"] == record_id
    assert data["metadata"][0]["text"] == "Staking rewards"
    assert data["metadata"][0]["title"] == "Staking"


def test_corrupt_blob_starts_empty(embedding):
    store = InMemoryBlobStore()
    store.save("vector_store", "{not json")

    index = InMemoryVectorIndex(embedding, blob_store=store)

    assert index.count() == 0


def test_decode_length_mismatch():
    raw = json.dumps({"vectors": [{"id": "a", "embedding": [1.0]}], "metadata": []})

    with pytest.raises(IndexCorruptionError):
        InMemoryVectorIndex.decode(raw)


def test_decode_mixed_dimensions():
    raw = json.dumps(
        {
            "vectors": [{"id": "a", "embedding": [1.0]}, {"id": "b", "embedding": [1.0, 0.0]}],
            "metadata": [{"id": "a", "text": "x"}, {"id": "b", "text": "y"}],
        }
    )

    with pytest.raises(IndexCorruptionError):
        InMemoryVectorIndex.decode(raw)


@pytest.mark.asyncio
async def test_embedding_failure_leaves_index_unchanged():
    embedding = failing_embedding([[1.0, 0.0], RuntimeError("gateway down")])
    index = InMemoryVectorIndex(embedding)
    await index.add("first")

    with pytest.raises(EmbeddingError):
        await index.add("second")

    assert index.count() == 1


@pytest.mark.asyncio
async def test_dimension_mismatch_rejected():
    embedding = failing_embedding([[1.0, 0.0], [1.0, 0.0, 0.0]])
    index = InMemoryVectorIndex(embedding)
    await index.add("first")

    with pytest.raises(EmbeddingError):
        await index.add("second")

    assert index.count() == 1


@pytest.mark.asyncio
async def test_add_batch_partial_commit():
    embedding = failing_embedding([[1.0, 0.0], [0.0, 1.0], RuntimeError("boom")])
    store = InMemoryBlobStore()
    index = InMemoryVectorIndex(embedding, blob_store=store)

    with pytest.raises(EmbeddingError):
        await index.add_batch([("a", None), ("b", None), ("c", None)])

    assert index.count() == 2
    # Committed items were persisted despite the failure
    assert len(json.loads(store.load("vector_store"))["vectors"]) == 2


@pytest.mark.asyncio
async def test_embedding_timeout():
    async def slow(text):
        await asyncio.sleep(1)
        return [1.0]

    embedding = Mock()
    embedding.embed_document = slow
    index = InMemoryVectorIndex(embedding, embed_timeout=0.01)

    with pytest.raises(EmbeddingError, match="timed out"):
        await index.add("slow text")

    assert index.count() == 0


@pytest.mark.asyncio
async def test_persist_failure_is_absorbed(embedding):
    store = Mock()
    store.load = Mock(return_value=None)
    store.save = Mock(side_effect=OSError("disk full"))
    index = InMemoryVectorIndex(embedding, blob_store=store)

    await index.add("Staking rewards")

    assert index.count() == 1


@pytest.mark.asyncio
async def test_embed_record_does_not_store(index):
    record = await index.embed_record("Staking rewards", RecordMetadata(chunk_id="a"))

    assert record.id == "a"
    assert record.embedding == [1.0, 0.0, 0.0, 0.0]
    assert index.count() == 0


@pytest.mark.asyncio
async def test_replace_type_swaps_in_one_write(index, blob_store):
    await index.add("Staking rewards", RecordMetadata(chunk_id="old", type="forum"))
    kept = await index.add("Staking guide", RecordMetadata(type="document"))
    new = [
        await index.embed_record("Treasury budget", RecordMetadata(chunk_id="n1")),
        await index.embed_record("Staking pool", RecordMetadata(chunk_id="n2")),
    ]

    removed = await index.replace_type("forum", new)

    assert removed == 1
    assert index.get("old") is None
    assert index.get(kept) is not None
    assert index.get("n1").metadata.type == "forum"
    assert index.stats()["document_types"] == {"document": 1, "forum": 2}
    assert len(json.loads(blob_store.load("vector_store"))["vectors"]) == 3


@pytest.mark.asyncio
async def test_replace_type_rejects_mixed_dimensions(index):
    await index.add("Staking rewards", RecordMetadata(chunk_id="old", type="forum"))

    odd = VectorRecord(id="x", embedding=[1.0], text="odd", metadata=RecordMetadata())

    with pytest.raises(EmbeddingError):
        await index.replace_type("forum", [odd])

    assert index.get("old") is not None


@pytest.mark.asyncio
async def test_delete_by_source(index):
    await index.add("Staking rewards", RecordMetadata(chunk_id="p_chunk_0", source_id="p"))
    await index.add("Staking pool", RecordMetadata(chunk_id="p_chunk_1", source_id="p"))
    await index.add("Treasury budget", RecordMetadata(chunk_id="q_chunk_0", source_id="q"))

    assert await index.delete_by_source("p") == 2
    assert await index.delete_by_source("missing") == 0
    assert [r.id for r in await index.search("treasury", threshold=0.5)] == ["q_chunk_0"]
