"""
Agent factory.

Builds the agent for a role from settings. The role is always chosen by the
caller; agents are never selected by probing what a provider can do.
"""

import logging
from typing import Optional, Union

from proposal_copilot.agents.drafting import DraftingAgent
from proposal_copilot.agents.interview import InterviewOrchestrator
from proposal_copilot.agents.retrieval import RetrievalAgent
from proposal_copilot.agents.roles import AgentRole
from proposal_copilot.completion import CompletionGateway
from proposal_copilot.config import CopilotSettings
from proposal_copilot.dialogue.session_memory import SessionMemory
from proposal_copilot.storage.protocols import BlobStore, VectorIndex

logger = logging.getLogger(__name__)

Agent = Union[RetrievalAgent, InterviewOrchestrator, DraftingAgent]


class AgentFactory:
    def __init__(
        self,
        settings: CopilotSettings,
        index: VectorIndex,
        completion: CompletionGateway,
        state_store: Optional[BlobStore] = None,
    ):
        self.settings = settings
        self.index = index
        self.completion = completion
        self.state_store = state_store

    def create(self, role: Union[AgentRole, str]) -> Agent:
        """
        Create a fresh agent for ``role``.

        Raises:
            ValueError: If ``role`` is not a known AgentRole
        """
        role = AgentRole(role)
        logger.debug(f"Creating {role.value} agent")

        if role is AgentRole.RETRIEVAL:
            return self._retrieval()

        if role is AgentRole.INTERVIEW:
            return InterviewOrchestrator(
                retrieval=self._retrieval(),
                completion=self.completion,
                session_memory=SessionMemory(ttl=self.settings.session_memory_ttl),
                state_store=self.state_store,
                state_prefix=self.settings.state_blob_prefix,
                temperature=self.settings.interview_temperature,
                max_history=self.settings.max_history_messages,
                enable_state_tracking=self.settings.enable_state_tracking,
            )

        return DraftingAgent(self.completion, temperature=self.settings.drafting_temperature)

    def _retrieval(self) -> RetrievalAgent:
        return RetrievalAgent(
            self.index,
            limit=self.settings.retrieval_limit,
            threshold=self.settings.retrieval_threshold,
            threshold_margin=self.settings.retrieval_threshold_margin,
            threshold_floor=self.settings.retrieval_threshold_floor,
        )
