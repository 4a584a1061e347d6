"""
In-memory blob storage implementation.

Suitable for testing and for processes that do not need to survive a
restart.
"""

import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class InMemoryBlobStore:
    """In-memory implementation of the BlobStore protocol. Data is lost on restart."""

    def __init__(self):
        self._blobs: Dict[str, str] = {}

        logger.info("InMemoryBlobStore initialized")

    def load(self, key: str) -> Optional[str]:
        return self._blobs.get(key)

    def save(self, key: str, data: str) -> None:
        self._blobs[key] = data
        logger.debug(f"Saved blob {key} ({len(data)} chars)")

    def delete(self, key: str) -> bool:
        if key not in self._blobs:
            return False

        del self._blobs[key]
        logger.debug(f"Deleted blob {key}")
        return True
