from __future__ import annotations

import time
from functools import partial
from typing import Any, Callable, Iterable, Sequence

from loguru import logger

from citesearch.agents.answer_generator import AnswerGenerator
from citesearch.agents.link_aggregator import LinkAggregator, LinkFetcher
from citesearch.agents.reformulator import QueryReformulator
from citesearch.errors import ProfileError
from citesearch.models.passage import (
    ConversationTurn,
    NotNeeded,
    Passage,
    ReformulatedRequest,
    normalize_history,
)
from citesearch.models.profile import OptimizationMode, SourceProfile, get_profile
from citesearch.services import logger as log_service
from citesearch.services.context import assemble
from citesearch.services.embeddings import Embeddings
from citesearch.services.event_source import EventSource
from citesearch.services.ranker import RelevanceRanker
from citesearch.services.source_fetcher import SearchFn, SourceFetcher


class AnswerPipeline:
    """Wires one focus mode's retrieve, rank and generate stages.

    Flow:
      1. Reformulate the follow-up query (or stop when no retrieval is needed)
      2. Search the profile's engines, or summarize explicit links
      3. Rank passages for the optimization mode
      4. Publish sources, number them into a context block
      5. Stream the cited answer

    Stages publish through ``on_sources`` / ``on_response`` instead of being
    observed from outside.
    """

    def __init__(
        self,
        profile: str | SourceProfile,
        model: Any,
        embeddings: Embeddings | None = None,
        optimization_mode: str | OptimizationMode = OptimizationMode.BALANCED,
        *,
        search: SearchFn | None = None,
        link_fetcher: LinkFetcher | None = None,
    ):
        if model is None:
            raise ProfileError("A language model is required")
        self.profile = get_profile(profile)
        self.mode = OptimizationMode.parse(optimization_mode)
        if not self.profile.uses_reranking:
            self.mode = OptimizationMode.SPEED
        if self.profile.uses_retrieval and self.mode.reranks and embeddings is None:
            raise ProfileError(
                f"Optimization mode '{self.mode.value}' needs an embedding provider"
            )

        self.model = model
        self.reformulator = QueryReformulator(model, self.profile) if self.profile.uses_retrieval else None
        self.fetcher = SourceFetcher(self.profile, search=search)
        self.aggregator = LinkAggregator(model, link_fetcher=link_fetcher)
        self.ranker = RelevanceRanker(
            embeddings,
            similarity_threshold=self.profile.similarity_threshold,
        )
        self.generator = AnswerGenerator(model, self.profile)

    async def retrieve(self, request: ReformulatedRequest) -> list[Passage]:
        if not isinstance(request, NotNeeded) and request.links:
            return await self.aggregator.aggregate(request.links, request.query)
        return await self.fetcher.fetch(request)

    async def execute(
        self,
        history: Sequence[ConversationTurn],
        query: str,
        *,
        on_sources: Callable[[Sequence[Passage]], None],
        on_response: Callable[[str], None],
    ) -> None:
        context = ""
        if self.reformulator is None:
            on_sources([])
        else:
            request = await self.reformulator.reformulate(history, query)
            if isinstance(request, NotNeeded):
                logger.info(f"[{self.profile.name}] retrieval not needed, skipping answer")
                on_sources([])
                return

            passages = await self.retrieve(request)
            ranked = await self.ranker.rank(self.mode, request.query, passages)
            on_sources(ranked)
            context = assemble(ranked)

        async for chunk in self.generator.generate(history, query, context):
            on_response(chunk)


async def _drive(
    pipeline: AnswerPipeline,
    history: Sequence[ConversationTurn],
    query: str,
    source: EventSource,
) -> None:
    t0 = time.monotonic()
    try:
        await pipeline.execute(
            history,
            query,
            on_sources=source.publish_sources,
            on_response=source.publish_response,
        )
    except Exception as e:
        logger.exception(f"Error in {pipeline.profile.name} search: {e}")
        log_service.log_event(
            event_type="pipeline_failed",
            message=f"{pipeline.profile.name} pipeline failed",
            stage=getattr(e, "stage", "pipeline"),
            error=str(e),
        )
        source.fail()
        return

    source.complete()
    log_service.log_event(
        event_type="pipeline_completed",
        message=f"{pipeline.profile.name} pipeline completed",
        mode=pipeline.mode.value,
        runtime_ms=int((time.monotonic() - t0) * 1000),
    )


def run(
    query: str,
    history: Iterable[Any] | None,
    model: Any,
    embeddings: Embeddings | None = None,
    optimization_mode: str | OptimizationMode = OptimizationMode.BALANCED,
    *,
    profile: str | SourceProfile = "web",
    search: SearchFn | None = None,
    link_fetcher: LinkFetcher | None = None,
) -> EventSource:
    """Start answering ``query`` and return its event stream immediately.

    Setup problems never raise: they come back as the stream's error event.
    """
    source = EventSource()
    try:
        pipeline = AnswerPipeline(
            profile,
            model,
            embeddings,
            optimization_mode,
            search=search,
            link_fetcher=link_fetcher,
        )
        turns = normalize_history(history)
    except Exception as e:
        logger.exception(f"Failed to set up answer pipeline: {e}")
        source.fail()
        return source

    source.start(partial(_drive, pipeline, turns, query, source))
    return source


handle_web_search = partial(run, profile="web")
handle_academic_search = partial(run, profile="academic")
handle_youtube_search = partial(run, profile="youtube")
handle_reddit_search = partial(run, profile="reddit")
handle_wolfram_alpha_search = partial(run, profile="wolfram_alpha")
handle_writing_assistant = partial(run, profile="writing")
