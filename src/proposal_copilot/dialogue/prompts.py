"""
Prompt templates for the interview and drafting agents.
"""

from typing import List, Optional, Sequence, Union

from proposal_copilot.dialogue.state import ConversationState, Contradiction, Topic
from proposal_copilot.storage.vector.models import ScoredRecord
from proposal_copilot.utils.text import strip_markup

INTERVIEW_AGENT_PROMPT = """You are an expert assistant for governance improvement proposals. You help users by:

1. Answering questions directly using the provided document information
2. Sharing relevant facts and precedents from governance documents
3. Asking thoughtful follow-up questions to help users develop their ideas

WHEN DOCUMENTS ARE PROVIDED:
- FIRST: Directly answer the user's question using information from the documents
- Use the exact content from documents to answer factual questions
- Cite the document title when sharing specific information
- Do not ask the user for information that is already in the documents

AFTER ANSWERING WITH DOCUMENT INFORMATION:
- Ask 1-2 thoughtful follow-up questions to help the user explore the topic further
- Focus questions on areas that would help them develop their proposal
- Be curious and supportive, not judgmental

WHEN NO RELEVANT DOCUMENTS ARE PROVIDED:
- Acknowledge that you don't have specific information about that topic
- Provide general guidance based on governance best practices
- Ask questions to learn more about what the user is trying to accomplish

Always maintain a helpful, informative tone and prioritize giving users accurate information from the provided documents."""

USE_DOCUMENTS_INSTRUCTION = (
    "USE THE ABOVE DOCUMENTS to directly answer the user's most recent question. "
    "DO NOT ask the user about information that is already contained in these documents."
)

DRAFTING_AGENT_PROMPT = """You are a drafting assistant for governance improvement proposals. Turn the research and interview findings below into a well-structured proposal.

### Instructions
- Follow the section headings of the template exactly, in order.
- Ground factual claims in the supporting documents and cite their titles.
- Reflect the author's stated goals and opinions from the interview insights.
- Where a topic was never explored, write a short placeholder that names the missing information instead of inventing it.
- Where the author made contradictory statements, do not pick a side; flag the open question in the relevant section.
- Return only the proposal in Markdown."""

DEFAULT_PROPOSAL_TEMPLATE = """# <Proposal title>
## Summary
## Motivation
## Specification
## Budget and allocation
## Timeline and milestones
## Team
## Success metrics
## Risks
## Voting options"""


def format_documents(documents: Sequence[ScoredRecord]) -> str:
    """One ``### title ###`` block per document with markup-free text."""
    if not documents:
        return ""

    blocks = ["## RELEVANT DOCUMENTS\n"]
    for doc in documents:
        blocks.append(f"### {doc.title} ###\n{strip_markup(doc.text)}\n")
    return "\n".join(blocks)


def _contradiction_hint(contradiction: Contradiction) -> str:
    return (
        "The user has made statements that appear to conflict: "
        f'"{contradiction.statement_a}" and "{contradiction.statement_b}". '
        "After answering, gently ask them to clarify which one reflects their intent."
    )


def _topic_hint(topic: Topic) -> str:
    return (
        f'The high-priority topic "{topic.label}" has not been explored yet; '
        "if it fits naturally, ask one question about it."
    )


def select_steering_item(state: ConversationState) -> Optional[Union[Contradiction, Topic]]:
    """
    The single most salient open item, or None.

    The most recently flagged unresolved contradiction wins over topics;
    otherwise the oldest pending high-priority topic is chosen.
    """
    unresolved = state.get_contradictions(status="unresolved")
    if unresolved:
        return unresolved[-1]

    pending = state.get_topics(status="pending", priority="high")
    if pending:
        return pending[0]

    return None


def steering_sentence(item: Optional[Union[Contradiction, Topic]]) -> Optional[str]:
    if isinstance(item, Contradiction):
        return _contradiction_hint(item)
    if isinstance(item, Topic):
        return _topic_hint(item)
    return None


def build_interview_prompt(
    documents: Sequence[ScoredRecord],
    steering: Optional[str] = None,
    additional_context: Optional[str] = None,
    base_prompt: str = INTERVIEW_AGENT_PROMPT,
) -> str:
    """
    Assemble the interview system prompt.

    Layout: base instructions, the document block and the instruction to use
    it (only when documents exist), one steering sentence, caller context.
    """
    sections: List[str] = [base_prompt]

    if documents:
        sections.append(format_documents(documents))
        sections.append(USE_DOCUMENTS_INSTRUCTION)

    if steering:
        sections.append(steering)

    if additional_context:
        sections.append(additional_context)

    return "\n\n".join(sections)


def build_drafting_prompt(
    state: ConversationState,
    documents: Sequence[ScoredRecord],
    template: Optional[str] = None,
) -> str:
    sections: List[str] = [DRAFTING_AGENT_PROMPT]
    sections.append("## TEMPLATE\n" + (template or DEFAULT_PROPOSAL_TEMPLATE))

    if state.insights:
        lines = "\n".join(f"- ({i.confidence}) {i.text}" for i in state.insights)
        sections.append(f"## INTERVIEW INSIGHTS\n{lines}")

    if state.topics:
        lines = "\n".join(f"- {t.label} [{t.priority}, {t.status}]" for t in state.topics)
        sections.append(f"## TOPICS\n{lines}")

    unresolved = state.get_contradictions(status="unresolved")
    if unresolved:
        lines = "\n".join(f'- "{c.statement_a}" vs "{c.statement_b}"' for c in unresolved)
        sections.append(f"## OPEN CONTRADICTIONS\n{lines}")

    if documents:
        sections.append(format_documents(documents))

    return "\n\n".join(sections)
