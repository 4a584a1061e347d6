"""
Drafting agent.

Turns the findings of an interview (insights, explored topics and open
contradictions) plus supporting documents into a proposal draft that
follows a section template.
"""

import logging
from typing import Optional, Sequence

from proposal_copilot.completion import CompletionGateway
from proposal_copilot.dialogue.prompts import build_drafting_prompt
from proposal_copilot.dialogue.state import ConversationState
from proposal_copilot.models import DialogueMessage
from proposal_copilot.storage.vector.models import ScoredRecord

logger = logging.getLogger(__name__)

DRAFT_REQUEST = "Write the proposal draft now."


class DraftingAgent:
    def __init__(self, completion: CompletionGateway, temperature: float = 0.4):
        self.completion = completion
        self.temperature = temperature

    async def draft(
        self,
        state: ConversationState,
        documents: Sequence[ScoredRecord] = (),
        template: Optional[str] = None,
    ) -> str:
        """
        Draft a proposal.

        Args:
            state: Conversation state of the interview
            documents: Supporting evidence to cite
            template: Markdown section skeleton (default proposal template if None)

        Raises:
            CompletionError: If the completion call fails
        """
        system_prompt = build_drafting_prompt(state, documents, template=template)
        logger.info(
            f"Drafting proposal from {len(state.insights)} insights, "
            f"{len(state.topics)} topics and {len(documents)} documents"
        )
        return await self.completion.complete(
            [DialogueMessage(role="user", content=DRAFT_REQUEST)],
            system_prompt=system_prompt,
            temperature=self.temperature,
        )
