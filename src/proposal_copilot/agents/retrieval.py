"""
Retrieval agent with adaptive recall.

A single similarity search misses long conversational questions whose
filler words dilute the embedding. When the first pass returns fewer than
two hits, the agent retries once with only the content words and a slightly
lower threshold, then merges both result sets.
"""

import logging
from typing import Dict, List, Optional

from proposal_copilot.storage.protocols import VectorIndex
from proposal_copilot.storage.vector.models import ScoredRecord
from proposal_copilot.utils.text import extract_key_terms, normalize_query, strip_markup

logger = logging.getLogger(__name__)

MIN_RESULTS = 2
MIN_WORDS_FOR_SECOND_PASS = 3


class RetrievalAgent:
    def __init__(
        self,
        index: VectorIndex,
        limit: int = 7,
        threshold: float = 0.55,
        threshold_margin: float = 0.05,
        threshold_floor: float = 0.5,
    ):
        """
        Args:
            index: Vector index to search
            limit: Maximum number of documents returned
            threshold: Similarity threshold of the first pass
            threshold_margin: How much the second pass lowers the threshold
            threshold_floor: The second pass never goes below this
        """
        self.index = index
        self.limit = limit
        self.threshold = threshold
        self.threshold_margin = threshold_margin
        self.threshold_floor = threshold_floor

    async def retrieve(
        self,
        query: str,
        limit: Optional[int] = None,
        threshold: Optional[float] = None,
        doc_type: Optional[str] = None,
    ) -> List[ScoredRecord]:
        """
        Find documents relevant to a conversational query.

        Returns cleaned records (markup-free text, title always set), highest
        score first.

        Raises:
            EmbeddingError: If the embedding gateway fails
        """
        limit = limit or self.limit
        threshold = self.threshold if threshold is None else threshold

        normalized = normalize_query(query)
        if not normalized:
            return []

        results = await self.index.search(
            normalized, limit=limit, threshold=threshold, doc_type=doc_type
        )
        logger.debug(f"First pass for '{normalized[:60]}': {len(results)} results")

        if len(results) < MIN_RESULTS and len(normalized.split()) >= MIN_WORDS_FOR_SECOND_PASS:
            key_terms = extract_key_terms(normalized)
            if key_terms and key_terms != normalized:
                relaxed = max(self.threshold_floor, threshold - self.threshold_margin)
                logger.debug(f"Second pass with key terms '{key_terms}' (threshold={relaxed})")
                extra = await self.index.search(
                    key_terms, limit=limit, threshold=relaxed, doc_type=doc_type
                )
                results = self._merge(results, extra, limit)

        logger.info(f"Retrieved {len(results)} documents for query '{query[:60]}'")
        return [self._clean(r) for r in results]

    @staticmethod
    def _merge(
        first: List[ScoredRecord], second: List[ScoredRecord], limit: int
    ) -> List[ScoredRecord]:
        merged: Dict[str, ScoredRecord] = {r.id: r for r in first}
        for record in second:
            if record.id not in merged:
                merged[record.id] = record
        return sorted(merged.values(), key=lambda r: r.score, reverse=True)[:limit]

    @staticmethod
    def _clean(record: ScoredRecord) -> ScoredRecord:
        metadata = record.metadata.model_copy(update={"title": record.title})
        return record.model_copy(update={"text": strip_markup(record.text), "metadata": metadata})
