"""
Redis-backed blob store.

Lets several copilot replicas share the serialized vector index and the
per-session conversation state.
"""

import logging
from typing import Optional

try:
    import redis
except ImportError:
    redis = None  # type: ignore

logger = logging.getLogger(__name__)


class RedisBlobStore:
    """
    BlobStore keeping each blob as one Redis string.

    ``SET`` replaces the whole value in one step, so readers see either the
    previous blob or the new one and the last writer wins.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        key_prefix: str = "copilot:",
        client: Optional["redis.Redis"] = None,
    ):
        """
        Args:
            host: Redis host
            port: Redis port
            db: Redis database number
            key_prefix: Namespace prepended to every blob key
            client: Pre-built client (host, port and db are then ignored)
        """
        if redis is None:
            raise ImportError(
                "redis is required for RedisBlobStore. "
                "Install with: pip install proposal-copilot[redis]"
            )

        self.client = client or redis.Redis(host=host, port=port, db=db, decode_responses=True)
        self._prefix = key_prefix

        try:
            self.client.ping()
        except redis.ConnectionError as e:
            logger.error(f"Redis unreachable for RedisBlobStore: {e}")
            raise

        logger.info(f"RedisBlobStore ready (prefix={key_prefix!r})")

    @classmethod
    def from_url(cls, url: str, key_prefix: str = "copilot:") -> "RedisBlobStore":
        """Connect with a ``redis://`` URL."""
        if redis is None:
            raise ImportError(
                "redis is required for RedisBlobStore. "
                "Install with: pip install proposal-copilot[redis]"
            )
        return cls(key_prefix=key_prefix, client=redis.Redis.from_url(url, decode_responses=True))

    def _key(self, key: str) -> str:
        return self._prefix + key

    def load(self, key: str) -> Optional[str]:
        return self.client.get(self._key(key))

    def save(self, key: str, data: str) -> None:
        self.client.set(self._key(key), data)
        logger.debug(f"Stored blob {key} in Redis ({len(data)} chars)")

    def delete(self, key: str) -> bool:
        return self.client.delete(self._key(key)) > 0
