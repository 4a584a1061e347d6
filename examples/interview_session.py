"""
Example: Index forum posts and run a proposal interview

Demonstrates:
1. Building a ProposalCopilot from COPILOT_* settings
2. Reindexing scraped forum posts (short t/c/d field names accepted)
3. A scripted interview with session-memory fallback on follow-ups
4. Drafting a proposal from the interview

Install required dependencies:
    pip install proposal-copilot[embeddings-openai,examples]      # OpenAI embeddings
    pip install proposal-copilot[embeddings-transformers,examples]  # Local E5 embeddings

Usage:
    python examples/interview_session.py --posts data/forum_posts.json
    python examples/interview_session.py --posts posts.json --e5 --provider ollama --model qwen2.5:7b-instruct
"""

import argparse
import asyncio
import json
import logging
from pathlib import Path

from dotenv import load_dotenv

from proposal_copilot import CopilotSettings, ProposalCopilot

load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

QUESTIONS = [
    "How are staking rewards distributed today?",
    "My goal is to raise the rewards for small stakers. What budget would that need?",
    "What about the second option?",
]


async def run(posts_path: Path, use_e5: bool, settings: CopilotSettings) -> None:
    embedding = None
    if use_e5:
        from proposal_copilot.embeddings import E5Embedding

        embedding = E5Embedding(model_name="intfloat/e5-small-v2")

    copilot = ProposalCopilot.from_settings(settings, embedding=embedding)

    posts = json.loads(posts_path.read_text(encoding="utf-8"))
    result = await copilot.reindex(posts)
    print(f"Indexed {result.indexed} posts, skipped {result.skipped}")
    for skipped in result.skip_reasons:
        print(f"  - {skipped.document}: {skipped.reason}")

    history = []
    for question in QUESTIONS:
        print(f"\n> {question}")
        turn = await copilot.turn("example-session", history, question)
        history = turn.history

        sources = ", ".join(d.title for d in turn.documents) or "none"
        memory = " (from session memory)" if turn.used_session_memory else ""
        print(f"[documents: {sources}{memory}]")
        print(turn.response)

    state = copilot.get_state("example-session")
    print(f"\nTopics: {[t['label'] for t in state['topics']]}")
    print(f"Insights: {len(state['insights'])}")

    print("\n=== Draft ===")
    print(await copilot.draft("example-session"))


def main():
    parser = argparse.ArgumentParser(description="Run a scripted proposal interview")
    parser.add_argument("--posts", type=Path, required=True, help="JSON list of forum posts")
    parser.add_argument("--e5", action="store_true", help="Use local E5 embeddings")
    parser.add_argument("--provider", choices=["openai", "ollama"], help="Completion provider")
    parser.add_argument("--model", help="Completion model name")
    args = parser.parse_args()

    overrides = {}
    if args.provider:
        overrides["llm_provider"] = args.provider
    if args.model:
        overrides["llm_model"] = args.model
    if args.e5:
        overrides["embedding_model"] = "intfloat/e5-small-v2"

    try:
        asyncio.run(run(args.posts, args.e5, CopilotSettings(**overrides)))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
