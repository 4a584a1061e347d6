"""
Storage for the vector index and serialized state.

Blob stores persist opaque strings (the serialized index and per-session
conversation state). The vector index keeps its records in memory and
writes itself through a blob store.
"""

from proposal_copilot.storage.blob import FileBlobStore, InMemoryBlobStore
from proposal_copilot.storage.protocols import BlobStore, VectorIndex
from proposal_copilot.storage.vector import InMemoryVectorIndex

__all__ = [
    "BlobStore",
    "VectorIndex",
    "FileBlobStore",
    "InMemoryBlobStore",
    "InMemoryVectorIndex",
]

try:
    from proposal_copilot.storage.blob.redis import RedisBlobStore  # noqa: F401

    __all__.append("RedisBlobStore")
except ImportError:
    pass
