"""Blob store implementations."""

from proposal_copilot.storage.blob.file import FileBlobStore
from proposal_copilot.storage.blob.memory import InMemoryBlobStore

__all__ = [
    "FileBlobStore",
    "InMemoryBlobStore",
]

try:
    from proposal_copilot.storage.blob.redis import RedisBlobStore  # noqa: F401

    __all__.append("RedisBlobStore")
except ImportError:
    pass
