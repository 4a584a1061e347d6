"""
Unit tests for prompt assembly and steering selection.
"""

from proposal_copilot.dialogue.prompts import (
    DEFAULT_PROPOSAL_TEMPLATE,
    INTERVIEW_AGENT_PROMPT,
    USE_DOCUMENTS_INSTRUCTION,
    build_drafting_prompt,
    build_interview_prompt,
    format_documents,
    select_steering_item,
    steering_sentence,
)
from proposal_copilot.dialogue.state import ConversationState
from proposal_copilot.storage.vector.models import RecordMetadata, ScoredRecord


def record(record_id, text, title=None, score=0.9):
    return ScoredRecord(
        id=record_id, text=text, metadata=RecordMetadata(title=title), score=score
    )


def test_format_documents():
    block = format_documents(
        [record("a", "<p>Staking &amp; rewards</p>", title="Staking"), record("b", "Plain")]
    )

    assert block.startswith("## RELEVANT DOCUMENTS")
    assert "### Staking ###\nStaking rewards" in block
    assert "### Document b ###\nPlain" in block
    assert "<p>" not in block


def test_format_documents_empty():
    assert format_documents([]) == ""


def test_interview_prompt_without_documents():
    prompt = build_interview_prompt([])

    assert prompt == INTERVIEW_AGENT_PROMPT
    assert USE_DOCUMENTS_INSTRUCTION not in prompt


def test_interview_prompt_layout():
    prompt = build_interview_prompt(
        [record("a", "Staking rewards", title="Staking")],
        steering="Ask about the budget.",
        additional_context="The user is a delegate.",
    )

    base = prompt.index(INTERVIEW_AGENT_PROMPT)
    docs = prompt.index("## RELEVANT DOCUMENTS")
    instruction = prompt.index(USE_DOCUMENTS_INSTRUCTION)
    steering = prompt.index("Ask about the budget.")
    context = prompt.index("The user is a delegate.")
    assert base < docs < instruction < steering < context


def test_steering_prefers_latest_contradiction():
    state = ConversationState()
    state.add_topic("Budget allocation", "high")
    state.flag_contradiction("no risks", "risks include delays")
    state.flag_contradiction("team is complete", "need more team members")

    item = select_steering_item(state)

    assert item.statement_a == "team is complete"
    assert '"team is complete"' in steering_sentence(item)


def test_steering_oldest_pending_high_topic():
    state = ConversationState()
    state.add_topic("Project timeline", "medium")
    state.add_topic("Governance process", "high")
    state.add_topic("Risk assessment", "high")

    item = select_steering_item(state)

    assert item.label == "Governance process"
    assert "Governance process" in steering_sentence(item)


def test_steering_skips_resolved_and_explored():
    state = ConversationState()
    state.add_topic("Budget allocation", "high")
    state.update_topic_status("Budget allocation", "in_progress")
    state.flag_contradiction("a", "b")
    state.resolve_contradiction(0, "b wins")

    assert select_steering_item(state) is None
    assert steering_sentence(None) is None


def test_drafting_prompt_sections():
    state = ConversationState()
    state.add_insight("My goal is to fund audits", confidence="high")
    state.add_topic("Budget allocation", "high")
    state.flag_contradiction("allocate 100%", "allocate 60% and 40%")

    prompt = build_drafting_prompt(state, [record("a", "Audit costs", title="Audits")])

    assert DEFAULT_PROPOSAL_TEMPLATE in prompt
    assert "- (high) My goal is to fund audits" in prompt
    assert "- Budget allocation [high, pending]" in prompt
    assert '"allocate 100%" vs "allocate 60% and 40%"' in prompt
    assert "### Audits ###" in prompt


def test_drafting_prompt_custom_template():
    prompt = build_drafting_prompt(ConversationState(), [], template="# Title\n## Ask")

    assert "## TEMPLATE\n# Title\n## Ask" in prompt
    assert DEFAULT_PROPOSAL_TEMPLATE not in prompt
    assert "## RELEVANT DOCUMENTS" not in prompt
