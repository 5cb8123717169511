from __future__ import annotations

import asyncio
import math
from typing import Sequence

from loguru import logger

from citesearch.config import settings
from citesearch.errors import RankingFailure
from citesearch.models.passage import Passage, is_summary_query
from citesearch.models.profile import OptimizationMode
from citesearch.services.embeddings import Embeddings


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    if len(a) != len(b) or not a:
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def dot_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    if len(a) != len(b):
        return 0.0
    return sum(x * y for x, y in zip(a, b))


def compute_similarity(a: Sequence[float], b: Sequence[float], measure: str = "cosine") -> float:
    measure = measure.lower().strip()
    if measure == "cosine":
        return cosine_similarity(a, b)
    if measure == "dot":
        return dot_similarity(a, b)
    raise ValueError(f"Unsupported SIMILARITY_MEASURE: {measure}")


class RelevanceRanker:
    """Orders candidate passages for the answer context.

    ``speed`` keeps search order. ``balanced`` and ``quality`` embed the
    query and every passage and sort by similarity, dropping passages at or
    below ``similarity_threshold`` when one is set. Ties keep input order.
    """

    def __init__(
        self,
        embeddings: Embeddings | None = None,
        *,
        similarity_threshold: float | None = None,
        max_passages: int | None = None,
        measure: str | None = None,
    ):
        self.embeddings = embeddings
        self.similarity_threshold = similarity_threshold
        self.max_passages = max_passages or int(settings.rerank_max_passages)
        self.measure = measure or settings.similarity_measure

    async def rank(
        self,
        mode: OptimizationMode | str,
        query: str,
        passages: Sequence[Passage],
    ) -> list[Passage]:
        mode = OptimizationMode.parse(mode)
        if not passages or is_summary_query(query):
            return list(passages)

        with_content = [p for p in passages if p.content]

        if not mode.reranks:
            return with_content[: self.max_passages]

        if not with_content:
            return []
        if self.embeddings is None:
            raise RankingFailure(f"Optimization mode '{mode.value}' requires an embedding provider")

        try:
            doc_vectors, query_vector = await asyncio.gather(
                self.embeddings.embed_documents([p.content for p in with_content]),
                self.embeddings.embed_query(query),
            )
        except Exception as e:
            raise RankingFailure(f"Embedding passages failed: {e}") from e

        scored = [
            (compute_similarity(query_vector, vector, self.measure), index)
            for index, vector in enumerate(doc_vectors)
        ]
        if self.similarity_threshold is not None:
            scored = [item for item in scored if item[0] > self.similarity_threshold]
        scored.sort(key=lambda item: item[0], reverse=True)

        ranked = [with_content[index] for _, index in scored[: self.max_passages]]
        logger.debug(
            f"Reranked {len(with_content)} passages in {mode.value} mode, kept {len(ranked)}"
        )
        return ranked
