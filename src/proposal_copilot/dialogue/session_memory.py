"""
Short-lived per-session cache of retrieved evidence.

A follow-up question often retrieves nothing by itself ("what about the
second option?"). The orchestrator then reuses the documents of the last
turn that did retrieve something, as long as that entry is younger than
the TTL.
"""

import logging
import time
from typing import Callable, Dict, List, Optional

from proposal_copilot.models import SessionMemoryEntry
from proposal_copilot.storage.vector.models import ScoredRecord

logger = logging.getLogger(__name__)


class SessionMemory:
    """In-memory ``session_id -> SessionMemoryEntry`` map with a freshness TTL."""

    def __init__(self, ttl: float = 30 * 60, clock: Callable[[], float] = time.monotonic):
        """
        Args:
            ttl: Seconds an entry stays usable
            clock: Time source (monotonic seconds)
        """
        self._entries: Dict[str, SessionMemoryEntry] = {}
        self._ttl = ttl
        self._clock = clock

        logger.info(f"SessionMemory initialized (ttl={ttl}s)")

    @property
    def ttl(self) -> float:
        return self._ttl

    def remember(self, session_id: str, query: str, documents: List[ScoredRecord]) -> None:
        """Overwrite the session's entry with this turn's evidence."""
        self._entries[session_id] = SessionMemoryEntry(
            query=query, documents=list(documents), timestamp=self._clock()
        )
        logger.debug(f"Remembered {len(documents)} documents for session {session_id}")

    def recall(self, session_id: str) -> Optional[SessionMemoryEntry]:
        """The session's entry if it is still fresh, else None."""
        entry = self._entries.get(session_id)
        if entry is None:
            return None

        age = self._clock() - entry.timestamp
        if age >= self._ttl:
            logger.debug(f"Session memory for {session_id} expired ({age:.0f}s old)")
            del self._entries[session_id]
            return None

        return entry

    def forget(self, session_id: str) -> bool:
        return self._entries.pop(session_id, None) is not None

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._entries
