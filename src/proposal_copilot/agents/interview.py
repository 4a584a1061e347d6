"""
Interview orchestrator.

Produces the next assistant message of a proposal interview: retrieves
evidence for the latest user message, falls back to the evidence of the
previous turn for follow-up questions, updates the conversation state and
asks the completion model for an answer grounded in the documents.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from proposal_copilot.agents.retrieval import RetrievalAgent
from proposal_copilot.completion import CompletionGateway
from proposal_copilot.dialogue.analyzer import ConversationAnalyzer
from proposal_copilot.dialogue.prompts import (
    build_interview_prompt,
    select_steering_item,
    steering_sentence,
)
from proposal_copilot.dialogue.session_memory import SessionMemory
from proposal_copilot.dialogue.state import ConversationState, Topic
from proposal_copilot.errors import ConfigurationError, CopilotError
from proposal_copilot.models import DialogueMessage, TurnResult
from proposal_copilot.storage.protocols import BlobStore
from proposal_copilot.storage.vector.models import ScoredRecord

logger = logging.getLogger(__name__)


def trim_history(
    history: Sequence[DialogueMessage], max_messages: int = 20
) -> List[DialogueMessage]:
    """Keep every system message and the last ``max_messages`` other messages, in order."""
    non_system = [i for i, m in enumerate(history) if m.role != "system"]
    keep = set(non_system[-max_messages:]) if max_messages > 0 else set()
    return [m for i, m in enumerate(history) if m.role == "system" or i in keep]


class InterviewOrchestrator:
    """
    Runs dialogue turns for many sessions.

    Turns of one session are serialized by a per-session lock; different
    sessions run concurrently. Conversation state is cached in memory and
    persisted to an optional BlobStore after every turn.
    """

    def __init__(
        self,
        retrieval: RetrievalAgent,
        completion: CompletionGateway,
        session_memory: Optional[SessionMemory] = None,
        state_store: Optional[BlobStore] = None,
        state_prefix: str = "conversation_state",
        analyzer: Optional[ConversationAnalyzer] = None,
        temperature: float = 0.3,
        max_history: int = 20,
        enable_state_tracking: bool = True,
    ):
        """
        Args:
            retrieval: Adaptive-recall retrieval agent
            completion: Completion gateway producing the assistant text
            session_memory: Evidence cache for follow-up turns (default 30 minute TTL)
            state_store: Where conversation state is persisted (None = memory only)
            state_prefix: Blob key prefix for per-session state
            analyzer: Rule-based conversation analyzer
            temperature: Completion temperature
            max_history: Non-system messages kept in the returned history
            enable_state_tracking: Disable to skip analysis and steering
        """
        self.retrieval = retrieval
        self.completion = completion
        self.session_memory = session_memory or SessionMemory()
        self.analyzer = analyzer or ConversationAnalyzer()
        self._state_store = state_store
        self._state_prefix = state_prefix
        self.temperature = temperature
        self.max_history = max_history
        self.enable_state_tracking = enable_state_tracking

        self._states: Dict[str, ConversationState] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        return lock

    def _state_key(self, session_id: str) -> str:
        return f"{self._state_prefix}:{session_id}"

    # ------------------------------------------------------------------
    # State persistence
    # ------------------------------------------------------------------

    def _load_state(self, session_id: str) -> Optional[ConversationState]:
        if self._state_store is None:
            return None

        try:
            raw = self._state_store.load(self._state_key(session_id))
        except Exception as e:
            logger.error(f"Failed to read state for session {session_id}: {e}")
            return None

        if raw is None:
            return None

        try:
            state = ConversationState.from_export(json.loads(raw))
        except (ValueError, ValidationError) as e:
            logger.error(f"Discarding unreadable state for session {session_id}: {e}")
            return None

        logger.info(f"Loaded persisted state for session {session_id}")
        return state

    def _persist_state(self, session_id: str, state: ConversationState) -> None:
        if self._state_store is None:
            return

        try:
            self._state_store.save(self._state_key(session_id), json.dumps(state.export()))
        except Exception as e:
            logger.error(f"Failed to persist state for session {session_id}: {e}")

    def get_state(self, session_id: str) -> ConversationState:
        """The session's state, loaded from the store on first access or created empty."""
        state = self._states.get(session_id)
        if state is None:
            state = self._load_state(session_id) or ConversationState()
            self._states[session_id] = state
        return state

    # ------------------------------------------------------------------
    # Session operations
    # ------------------------------------------------------------------

    async def clear_session(self, session_id: str) -> None:
        """Drop the session's state, session memory and persisted state blob."""
        async with self._lock_for(session_id):
            self._states.pop(session_id, None)
            self.session_memory.forget(session_id)

            if self._state_store is not None:
                try:
                    self._state_store.delete(self._state_key(session_id))
                except Exception as e:
                    logger.error(f"Failed to delete state for session {session_id}: {e}")

        logger.info(f"Cleared session {session_id}")

    async def resolve_contradiction(self, session_id: str, index: int, resolution: str) -> bool:
        async with self._lock_for(session_id):
            state = self.get_state(session_id)
            resolved = state.resolve_contradiction(index, resolution)
            if resolved:
                self._persist_state(session_id, state)
            return resolved

    async def import_state(self, session_id: str, data: Dict[str, Any]) -> ConversationState:
        """Replace the session's state with an exported snapshot."""
        state = ConversationState.from_export(data)
        async with self._lock_for(session_id):
            self._states[session_id] = state
            self._persist_state(session_id, state)
        return state

    # ------------------------------------------------------------------
    # Turn
    # ------------------------------------------------------------------

    async def _gather_evidence(
        self, session_id: str, query: str, is_follow_up: bool
    ) -> Tuple[List[ScoredRecord], bool]:
        try:
            documents = await self.retrieval.retrieve(query)
        except CopilotError as e:
            logger.warning(f"Retrieval failed for session {session_id}, continuing without documents: {e}")
            documents = []

        if documents:
            self.session_memory.remember(session_id, query, documents)
            return documents, False

        if is_follow_up:
            entry = self.session_memory.recall(session_id)
            if entry is not None:
                logger.info(
                    f"Reusing {len(entry.documents)} documents from session memory "
                    f"for session {session_id}"
                )
                return list(entry.documents), True

        return [], False

    def _steer(self, state: ConversationState) -> Optional[str]:
        item = select_steering_item(state)
        if isinstance(item, Topic):
            state.update_topic_status(item.label, "in_progress")
        return steering_sentence(item)

    async def turn(
        self,
        session_id: str,
        history: Sequence[DialogueMessage],
        new_message: str,
        additional_context: Optional[str] = None,
    ) -> TurnResult:
        """
        Run one dialogue turn.

        Args:
            session_id: Session the turn belongs to
            history: Messages so far (not including ``new_message``)
            new_message: The user's new message
            additional_context: Extra text appended to the system prompt

        Returns:
            The assistant response with the updated history and state

        Raises:
            ConfigurationError: If the new message is empty
            CompletionError: If the completion call fails
        """
        if not new_message or not new_message.strip():
            raise ConfigurationError("Cannot run a turn for an empty message")

        async with self._lock_for(session_id):
            messages = list(history) + [DialogueMessage(role="user", content=new_message)]
            is_follow_up = len(messages) > 1

            documents, from_memory = await self._gather_evidence(
                session_id, new_message, is_follow_up
            )

            state = self.get_state(session_id)
            steering = None
            if self.enable_state_tracking:
                self.analyzer.analyze(messages, state)
                steering = self._steer(state)

            system_prompt = build_interview_prompt(
                documents, steering=steering, additional_context=additional_context
            )

            response = await self.completion.complete(
                messages, system_prompt=system_prompt, temperature=self.temperature
            )

            messages.append(DialogueMessage(role="assistant", content=response))
            messages = trim_history(messages, self.max_history)
            self._persist_state(session_id, state)

        logger.info(
            f"Session {session_id} turn complete: {len(documents)} documents"
            f"{' (session memory)' if from_memory else ''}, {len(messages)} messages"
        )
        return TurnResult(
            response=response,
            state=state.export(),
            history=messages,
            documents=documents,
            used_session_memory=from_memory,
        )
