from __future__ import annotations

from typing import Any, Awaitable, Callable

from loguru import logger

from citesearch.config import settings
from citesearch.errors import FetchFailure
from citesearch.models.passage import NotNeeded, Passage, PassageMetadata, ReformulatedRequest
from citesearch.models.profile import SourceProfile
from citesearch.tools import searxng_search
from citesearch.tools.searxng_search import SearchResponse, SearchResult

SearchFn = Callable[..., Awaitable[SearchResponse]]


def result_to_passage(result: SearchResult) -> Passage:
    return Passage(
        content=result.content,
        metadata=PassageMetadata(
            title=result.title,
            url=result.url,
            image_source=result.img_src or None,
        ),
    )


class SourceFetcher:
    """Runs the profile's search against the metasearch index."""

    def __init__(self, profile: SourceProfile, search: SearchFn | None = None):
        self.profile = profile
        self._search = search or searxng_search.search

    @property
    def language(self) -> str:
        return self.profile.language or settings.search_language

    async def fetch(self, request: ReformulatedRequest) -> list[Passage]:
        if isinstance(request, NotNeeded):
            return []

        options: dict[str, Any] = {"language": self.language}
        if self.profile.engines:
            options["engines"] = list(self.profile.engines)

        try:
            response = await self._search(request.query, **options)
        except Exception as e:
            raise FetchFailure(f"Search failed for {request.query!r}: {e}") from e

        passages = [result_to_passage(result) for result in response.results]
        logger.info(f"[{self.profile.name}] search returned {len(passages)} results")
        return passages
