"""
Completion gateway.

Thin wrapper around a casual-llm provider that converts dialogue history to
casual-llm messages, applies a timeout and maps every failure to
CompletionError. No retries happen here.
"""

import asyncio
import logging
from typing import List, Optional, Sequence

from casual_llm import (
    AssistantMessage,
    ChatMessage,
    LLMProvider,
    ModelConfig,
    Provider,
    SystemMessage,
    UserMessage,
    create_provider,
)

from proposal_copilot.config import CopilotSettings
from proposal_copilot.errors import CompletionError
from proposal_copilot.models import DialogueMessage

logger = logging.getLogger(__name__)

_PROVIDERS = {
    "openai": Provider.OPENAI,
    "ollama": Provider.OLLAMA,
}


def to_chat_messages(
    messages: Sequence[DialogueMessage], system_prompt: Optional[str] = None
) -> List[ChatMessage]:
    """Convert history to casual-llm messages, prefixed by ``system_prompt`` if given."""
    converted: List[ChatMessage] = []
    if system_prompt:
        converted.append(SystemMessage(content=system_prompt))

    for message in messages:
        if message.role == "user":
            converted.append(UserMessage(content=message.content))
        elif message.role == "assistant":
            converted.append(AssistantMessage(content=message.content))
        else:
            converted.append(SystemMessage(content=message.content))
    return converted


class CompletionGateway:
    """Calls a chat model and returns its text response verbatim."""

    def __init__(self, provider: LLMProvider, timeout: Optional[float] = None):
        self.provider = provider
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: CopilotSettings) -> "CompletionGateway":
        model_config = ModelConfig(
            name=settings.llm_model,
            provider=_PROVIDERS[settings.llm_provider],
            base_url=settings.llm_base_url,
            api_key=settings.llm_api_key,
        )
        logger.info(f"Using {settings.llm_provider} completion model {settings.llm_model}")
        return cls(create_provider(model_config), timeout=settings.completion_timeout)

    async def complete(
        self,
        messages: Sequence[DialogueMessage],
        system_prompt: Optional[str] = None,
        temperature: float = 0.3,
    ) -> str:
        """
        Run one completion.

        Raises:
            CompletionError: If the provider fails, times out or returns no content
        """
        chat_messages = to_chat_messages(messages, system_prompt)

        try:
            response = await asyncio.wait_for(
                self.provider.chat(
                    chat_messages, response_format="text", temperature=temperature
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            raise CompletionError(f"Completion timed out after {self._timeout}s") from e
        except Exception as e:
            raise CompletionError(f"Completion failed: {e}") from e

        content = getattr(response, "content", None)
        if not content:
            raise CompletionError("Completion provider returned no content")

        logger.debug(f"Completion returned {len(content)} characters")
        return content
