"""
Local embeddings with the E5 family through sentence-transformers.

E5 was trained with role prefixes: stored passages are encoded as
"passage: <text>" and searches as "query: <text>". Forgetting the prefixes
noticeably lowers retrieval scores, so the adapter always adds them.
"""

import asyncio
import logging
from typing import List, Optional

logger = logging.getLogger(__name__)

PASSAGE_PREFIX = "passage: "
QUERY_PREFIX = "query: "


class E5Embedding:
    """
    TextEmbedding running an E5 model in-process.

    ``encode`` is CPU or GPU bound, so it runs in a worker thread and other
    sessions keep being served. intfloat/e5-small-v2 (384 dims) is enough
    for a single forum; e5-base-v2 (768) and e5-large-v2 (1024) trade speed
    for recall.
    """

    def __init__(
        self,
        model_name: str = "intfloat/e5-base-v2",
        device: Optional[str] = None,
        normalize: bool = True,
        cache_folder: Optional[str] = None,
    ):
        try:
            from sentence_transformers import SentenceTransformer
        except ImportError as e:
            raise ImportError(
                "sentence-transformers is required for E5Embedding. "
                "Install with: pip install proposal-copilot[embeddings-transformers]"
            ) from e

        self._name = model_name
        self._normalize = normalize
        self._model = SentenceTransformer(model_name, device=device, cache_folder=cache_folder)
        self._dimension = self._model.get_sentence_embedding_dimension()

        logger.info(f"E5Embedding loaded {model_name} ({self._dimension} dims)")

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return self._name

    async def _encode(self, prefix: str, text: str) -> List[float]:
        if not text or not text.strip():
            raise ValueError("Cannot embed empty text")

        vector = await asyncio.to_thread(
            self._model.encode,
            prefix + text,
            normalize_embeddings=self._normalize,
            show_progress_bar=False,
        )
        return vector.tolist()

    async def embed_document(self, text: str) -> List[float]:
        return await self._encode(PASSAGE_PREFIX, text)

    async def embed_query(self, text: str) -> List[float]:
        return await self._encode(QUERY_PREFIX, text)
