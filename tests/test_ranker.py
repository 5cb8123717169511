from unittest.mock import AsyncMock

import pytest

from citesearch.errors import RankingFailure
from citesearch.models.passage import Passage, PassageMetadata
from citesearch.models.profile import OptimizationMode
from citesearch.services.ranker import RelevanceRanker, compute_similarity, cosine_similarity


def _passage(content: str, n: int) -> Passage:
    return Passage(content=content, metadata=PassageMetadata(title=f"T{n}", url=f"https://e.com/{n}"))


def _embeddings(doc_vectors, query_vector):
    return AsyncMock(
        embed_documents=AsyncMock(return_value=doc_vectors),
        embed_query=AsyncMock(return_value=query_vector),
    )


def test_cosine_similarity():
    assert cosine_similarity([1.0, 0.0], [1.0, 0.0]) == pytest.approx(1.0)
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
    assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0


def test_compute_similarity_dot_and_unknown():
    assert compute_similarity([1.0, 2.0], [3.0, 4.0], "dot") == pytest.approx(11.0)
    with pytest.raises(ValueError):
        compute_similarity([1.0], [1.0], "manhattan")


@pytest.mark.asyncio
async def test_speed_mode_keeps_order_without_embedding():
    embeddings = _embeddings([], [])
    passages = [_passage(f"doc {i}", i) for i in range(20)]
    ranker = RelevanceRanker(embeddings, max_passages=15)

    ranked = await ranker.rank(OptimizationMode.SPEED, "docker", passages)

    assert ranked == passages[:15]
    embeddings.embed_documents.assert_not_awaited()
    embeddings.embed_query.assert_not_awaited()


@pytest.mark.asyncio
async def test_speed_mode_drops_empty_passages():
    passages = [_passage("", 0), _passage("doc", 1)]
    ranked = await RelevanceRanker().rank("speed", "docker", passages)
    assert ranked == [passages[1]]


@pytest.mark.asyncio
@pytest.mark.parametrize("mode", ["balanced", "quality"])
async def test_reranking_modes_embed_once_and_sort(mode):
    passages = [_passage("low", 0), _passage("high", 1), _passage("mid", 2)]
    embeddings = _embeddings([[0.1, 1.0], [1.0, 0.0], [1.0, 0.5]], [1.0, 0.0])
    ranker = RelevanceRanker(embeddings, measure="cosine")

    ranked = await ranker.rank(mode, "docker", passages)

    assert [p.content for p in ranked] == ["high", "mid", "low"]
    embeddings.embed_documents.assert_awaited_once_with(["low", "high", "mid"])
    embeddings.embed_query.assert_awaited_once_with("docker")


@pytest.mark.asyncio
async def test_threshold_drops_passages_at_or_below():
    passages = [_passage("orthogonal", 0), _passage("aligned", 1)]
    embeddings = _embeddings([[0.0, 1.0], [1.0, 0.0]], [1.0, 0.0])
    ranker = RelevanceRanker(embeddings, similarity_threshold=0.3)

    ranked = await ranker.rank("balanced", "docker", passages)

    assert [p.content for p in ranked] == ["aligned"]


@pytest.mark.asyncio
async def test_ties_keep_input_order():
    passages = [_passage(f"doc {i}", i) for i in range(4)]
    embeddings = _embeddings([[1.0, 0.0]] * 4, [1.0, 0.0])

    ranked = await RelevanceRanker(embeddings).rank("quality", "docker", passages)

    assert ranked == passages


class ContentEmbeddings:
    """Vectors keyed by passage text, so re-embedding a reordered list is consistent."""

    def __init__(self, vectors):
        self.vectors = vectors

    async def embed_documents(self, texts):
        return [self.vectors[t] for t in texts]

    async def embed_query(self, text):
        return [1.0, 0.0]


@pytest.mark.asyncio
@pytest.mark.parametrize("mode", ["speed", "balanced", "quality"])
async def test_ranking_is_idempotent(mode):
    vectors = {"far": [0.4, 1.0], "near": [1.0, 0.1], "tie a": [1.0, 0.5], "tie b": [1.0, 0.5]}
    passages = [_passage(text, i) for i, text in enumerate(vectors)]
    ranker = RelevanceRanker(ContentEmbeddings(vectors), similarity_threshold=0.3)

    first = await ranker.rank(mode, "docker", passages)
    second = await ranker.rank(mode, "docker", first)

    assert second == first


@pytest.mark.asyncio
async def test_caps_at_max_passages():
    passages = [_passage(f"doc {i}", i) for i in range(20)]
    embeddings = _embeddings([[1.0, float(i)] for i in range(20)], [1.0, 0.0])
    ranked = await RelevanceRanker(embeddings, max_passages=15).rank("balanced", "q", passages)
    assert len(ranked) == 15


@pytest.mark.asyncio
async def test_summarize_query_passes_through():
    passages = [_passage("summary", 0)]
    embeddings = _embeddings([], [])
    ranked = await RelevanceRanker(embeddings).rank("quality", "summarize", passages)
    assert ranked == passages
    embeddings.embed_documents.assert_not_awaited()


@pytest.mark.asyncio
async def test_empty_input_returns_empty():
    assert await RelevanceRanker().rank("quality", "docker", []) == []


@pytest.mark.asyncio
async def test_embedding_error_is_ranking_failure():
    embeddings = AsyncMock(
        embed_documents=AsyncMock(side_effect=RuntimeError("model offline")),
        embed_query=AsyncMock(return_value=[1.0]),
    )
    with pytest.raises(RankingFailure, match="model offline"):
        await RelevanceRanker(embeddings).rank("balanced", "docker", [_passage("doc", 0)])


@pytest.mark.asyncio
async def test_reranking_without_embeddings_fails():
    with pytest.raises(RankingFailure):
        await RelevanceRanker(None).rank("balanced", "docker", [_passage("doc", 0)])
