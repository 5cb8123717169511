from unittest.mock import AsyncMock

import pytest

from citesearch.agents import orchestrator
from citesearch.agents.orchestrator import AnswerPipeline, run
from citesearch.errors import ProfileError
from citesearch.models.passage import Passage, PassageMetadata
from citesearch.models.profile import OptimizationMode
from citesearch.services import streaming
from citesearch.tools.searxng_search import SearchResponse, SearchResult


class FakeModel:
    """Scripted model: ``invoke`` pops replies in order, ``stream`` yields fixed chunks."""

    def __init__(self, replies=(), chunks=("Docker is ", "a container platform [1]."), stream_error=None):
        self.replies = list(replies)
        self.chunks = list(chunks)
        self.stream_error = stream_error
        self.prompts = []
        self.invoke_temperatures = []
        self.stream_calls = []

    async def invoke(self, prompt, *, temperature=None, **kwargs):
        self.prompts.append(prompt)
        self.invoke_temperatures.append(temperature)
        return self.replies.pop(0)

    async def stream(self, *, system, messages, temperature=None, **kwargs):
        self.stream_calls.append({"system": system, "messages": messages})
        if self.stream_error is not None:
            raise self.stream_error
        for chunk in self.chunks:
            yield chunk


def _docker_results():
    return SearchResponse(results=[
        SearchResult(title="Docker Docs", url="https://docs.docker.com", content="Docker is an open platform."),
        SearchResult(title="Wikipedia", url="https://en.wikipedia.org/wiki/Docker_(software)", content="Docker is a set of PaaS products."),
        SearchResult(title="AWS", url="https://aws.amazon.com/docker/", content="Docker packages software into containers."),
    ])


def _assert_grammar(kinds):
    assert kinds[0] == "sources"
    assert kinds[-1] in ("end", "error")
    assert all(k == "response" for k in kinds[1:-1])


@pytest.mark.asyncio
async def test_web_speed_search_streams_sources_answer_and_end():
    model = FakeModel(replies=["<question>\nWhat is Docker\n</question>"])
    search = AsyncMock(return_value=_docker_results())

    log = await run("What is Docker?", [], model, None, "speed", search=search).collect()

    assert log.kinds == ["sources", "response", "response", "end"]
    assert [s["metadata"]["url"] for s in log.sources] == [
        "https://docs.docker.com",
        "https://en.wikipedia.org/wiki/Docker_(software)",
        "https://aws.amazon.com/docker/",
    ]
    assert log.answer == "Docker is a container platform [1]."
    search.assert_awaited_once_with("What is Docker", language="en")
    assert model.invoke_temperatures == [0]
    system = model.stream_calls[0]["system"]
    assert "1. Docker is an open platform.\n2. Docker is a set of PaaS products." in system


@pytest.mark.asyncio
async def test_balanced_mode_reranks_search_results():
    model = FakeModel(replies=["<question>\nWhat is Docker\n</question>"])
    search = AsyncMock(return_value=_docker_results())
    embeddings = AsyncMock(
        embed_documents=AsyncMock(return_value=[[0.0, 1.0], [0.6, 0.8], [1.0, 0.0]]),
        embed_query=AsyncMock(return_value=[1.0, 0.0]),
    )

    log = await run("What is Docker?", [], model, embeddings, "balanced", search=search).collect()

    # the first result is orthogonal to the query and falls under the 0.3 threshold
    assert [s["metadata"]["title"] for s in log.sources] == ["AWS", "Wikipedia"]
    embeddings.embed_documents.assert_awaited_once()
    embeddings.embed_query.assert_awaited_once_with("What is Docker")


@pytest.mark.asyncio
async def test_not_needed_emits_empty_sources_then_end():
    model = FakeModel(replies=["<question>\nnot_needed\n</question>"])
    search = AsyncMock()

    log = await run("hi", [], model, None, "speed", search=search).collect()

    assert log.kinds == ["sources", "end"]
    assert log.sources == []
    search.assert_not_awaited()
    assert model.stream_calls == []


@pytest.mark.asyncio
async def test_search_failure_emits_single_error():
    model = FakeModel(replies=["<question>\nWhat is Docker\n</question>"])
    search = AsyncMock(side_effect=RuntimeError("connection refused"))

    log = await run("What is Docker?", [], model, None, "speed", search=search).collect()

    assert log.kinds == ["sources", "error"]
    assert log.events[-1].data == streaming.GENERIC_ERROR_MESSAGE
    assert model.stream_calls == []


@pytest.mark.asyncio
async def test_generation_failure_after_chunks_ends_with_error():
    model = FakeModel(
        replies=["<question>\nWhat is Docker\n</question>"],
        stream_error=RuntimeError("stream dropped"),
    )
    search = AsyncMock(return_value=_docker_results())

    log = await run("What is Docker?", [], model, None, "speed", search=search).collect()

    assert log.kinds == ["sources", "error"]
    assert len(log.sources) == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("mode", ["speed", "balanced", "quality"])
async def test_link_summary_flow_skips_search_and_reranking(mode):
    model = FakeModel(replies=[
        "<question>\nsummarize\n</question>\n<links>\nhttps://example.com/post\n</links>",
        "The post explains container images.",
    ])
    search = AsyncMock()
    link_fetcher = AsyncMock(return_value=[
        Passage(content="Images are layered.", metadata=PassageMetadata(title="Post", url="https://example.com/post")),
        Passage(content="Layers are cached.", metadata=PassageMetadata(title="Post", url="https://example.com/post")),
    ])
    embeddings = AsyncMock()

    log = await run(
        "Summarize https://example.com/post",
        [],
        model,
        embeddings,
        mode,
        search=search,
        link_fetcher=link_fetcher,
    ).collect()

    assert log.kinds[0] == "sources"
    assert log.kinds[-1] == "end"
    assert log.sources == [{
        "content": "The post explains container images.",
        "metadata": {"title": "Post", "url": "https://example.com/post"},
    }]
    link_fetcher.assert_awaited_once_with(["https://example.com/post"])
    search.assert_not_awaited()
    embeddings.embed_documents.assert_not_awaited()
    assert "Images are layered.\n\nLayers are cached." in model.prompts[1]


@pytest.mark.asyncio
async def test_blank_link_summary_never_reaches_sources():
    model = FakeModel(replies=[
        "<question>\nsummarize\n</question>\n<links>\nhttps://example.com/post\n</links>",
        "",
    ])
    link_fetcher = AsyncMock(return_value=[
        Passage(content="Images are layered.", metadata=PassageMetadata(title="Post", url="https://example.com/post")),
    ])

    log = await run("Summarize https://example.com/post", [], model, None, "speed", link_fetcher=link_fetcher).collect()

    assert log.kinds == ["sources", "error"]
    assert log.sources == []
    assert model.stream_calls == []


@pytest.mark.asyncio
async def test_writing_profile_answers_without_retrieval():
    model = FakeModel(chunks=["Roses are red."])
    search = AsyncMock()

    log = await run("Write a poem", [], model, None, "quality", profile="writing", search=search).collect()

    assert log.kinds == ["sources", "response", "end"]
    assert log.sources == []
    assert model.prompts == []
    search.assert_not_awaited()


@pytest.mark.asyncio
async def test_history_is_passed_to_generation():
    model = FakeModel(replies=["<question>\nDocker compose files\n</question>"])
    search = AsyncMock(return_value=_docker_results())
    history = [{"role": "human", "content": "What is Docker?"}, {"role": "ai", "content": "A container tool."}]

    await orchestrator.handle_web_search("And compose?", history, model, None, "speed", search=search).collect()

    assert "User: What is Docker?\nAssistant: A container tool." in model.prompts[0]
    assert model.stream_calls[0]["messages"][:2] == [
        {"role": "user", "content": "What is Docker?"},
        {"role": "assistant", "content": "A container tool."},
    ]


@pytest.mark.asyncio
async def test_construction_errors_become_error_event():
    log = await run("What is Docker?", [], None).collect()
    assert log.kinds == ["sources", "error"]

    log = await run("What is Docker?", [], FakeModel(), None, "balanced", profile="nope").collect()
    assert log.kinds == ["sources", "error"]


@pytest.mark.asyncio
async def test_reranking_mode_without_embeddings_is_error_event():
    search = AsyncMock()
    log = await run("What is Docker?", [], FakeModel(), None, "balanced", search=search).collect()
    assert log.kinds == ["sources", "error"]
    search.assert_not_awaited()


@pytest.mark.asyncio
async def test_event_grammar_holds_for_every_profile():
    for profile in ("web", "academic", "youtube", "reddit", "wolfram_alpha", "writing"):
        model = FakeModel(replies=["<question>\nquery\n</question>"])
        search = AsyncMock(return_value=_docker_results())
        log = await run("q", [], model, None, "speed", profile=profile, search=search).collect()
        _assert_grammar(log.kinds)
        assert log.kinds[-1] == "end"


class TestAnswerPipeline:
    def test_non_reranking_profiles_force_speed(self):
        pipeline = AnswerPipeline("wolfram_alpha", FakeModel(), None, "quality")
        assert pipeline.mode is OptimizationMode.SPEED

    def test_profile_threshold_reaches_ranker(self):
        assert AnswerPipeline("reddit", FakeModel(), None, "speed").ranker.similarity_threshold == 0.3
        assert AnswerPipeline("academic", FakeModel(), None, "speed").ranker.similarity_threshold is None

    def test_missing_model_is_profile_error(self):
        with pytest.raises(ProfileError):
            AnswerPipeline("web", None)

    def test_unknown_mode_is_profile_error(self):
        with pytest.raises(ProfileError):
            AnswerPipeline("web", FakeModel(), None, "turbo")
