"""Integration tests for the Redis blob store."""

import pytest


@pytest.mark.integration
def test_redis_save_load_delete(redis_address):
    """Blobs round-trip through Redis."""
    pytest.importorskip("redis")

    from proposal_copilot.storage.blob.redis import RedisBlobStore

    # Separate DB for testing
    host, port = redis_address
    store = RedisBlobStore(host=host, port=port, db=15, key_prefix="copilot-test:")

    try:
        store.save("vector_store", '{"vectors": [], "metadata": []}')

        assert store.load("vector_store") == '{"vectors": [], "metadata": []}'
        assert store.delete("vector_store") is True
        assert store.load("vector_store") is None
    finally:
        store.client.delete("copilot-test:vector_store")


@pytest.mark.integration
def test_redis_shared_between_indexes(redis_address):
    """Two indexes on the same Redis key see the same persisted records."""
    pytest.importorskip("redis")

    from proposal_copilot.storage.blob.redis import RedisBlobStore
    from proposal_copilot.storage.vector.memory import InMemoryVectorIndex
    from proposal_copilot.storage.vector.models import RecordMetadata, VectorRecord

    host, port = redis_address
    store = RedisBlobStore(host=host, port=port, db=15, key_prefix="copilot-test:")
    record = VectorRecord(
        id="a", embedding=[1.0, 0.0], text="Staking rewards", metadata=RecordMetadata()
    )

    try:
        store.save("shared_index", InMemoryVectorIndex.encode([record]))
        index = InMemoryVectorIndex(embedding=None, blob_store=store, blob_key="shared_index")

        assert index.count() == 1
        assert index.get("a").text == "Staking rewards"
    finally:
        store.client.delete("copilot-test:shared_index")


@pytest.mark.integration
def test_redis_from_url(redis_address):
    pytest.importorskip("redis")

    from proposal_copilot.storage.blob.redis import RedisBlobStore

    store = RedisBlobStore.from_url(
        "redis://%s:%d/15" % redis_address, key_prefix="copilot-test:"
    )

    try:
        store.save("state", "{}")
        assert store.load("state") == "{}"
    finally:
        store.client.delete("copilot-test:state")
