from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Sequence

from loguru import logger

from citesearch.config import settings
from citesearch.errors import AggregationFailure
from citesearch.models.passage import Passage, is_summary_query
from citesearch.services import logger as log_service
from citesearch.services.prompt_store import render_prompt
from citesearch.tools import link_documents

LinkFetcher = Callable[[Sequence[str]], Awaitable[list[Passage]]]


def group_by_url(passages: Sequence[Passage], *, max_chunks: int) -> list[Passage]:
    """Merge chunks that share a URL, keeping at most ``max_chunks`` per URL.

    Groups keep first-appearance order; chunk text is joined by a blank line
    and ``total_chunks`` records how many chunks went in.
    """
    groups: dict[str, Passage] = {}
    for passage in passages:
        url = passage.metadata.url
        group = groups.get(url)
        if group is None:
            groups[url] = passage.with_content(passage.content, total_chunks=1)
            continue
        merged = group.metadata.total_chunks or 1
        if merged >= max_chunks:
            continue
        groups[url] = group.with_content(
            f"{group.content}\n\n{passage.content}", total_chunks=merged + 1
        )
    return list(groups.values())


class LinkAggregator:
    """Summarizes the content behind explicit links, one summary per URL."""

    def __init__(
        self,
        model: Any,
        link_fetcher: LinkFetcher | None = None,
        max_chunks: int | None = None,
    ):
        self.model = model
        self._fetch_links = link_fetcher or link_documents.fetch_links
        self.max_chunks = max_chunks or int(settings.link_group_max_chunks)

    def _summary_prompt(self, query: str, text: str) -> str:
        if is_summary_query(query):
            return render_prompt("aggregator.general_summary", text=text)
        return render_prompt("aggregator.question_summary", query=query, text=text)

    async def _summarize(self, group: Passage, query: str) -> Passage:
        summary = await self.model.invoke(self._summary_prompt(query, group.content), temperature=0)
        if not summary or not summary.strip():
            raise ValueError("model returned an empty summary")
        return group.with_content(summary, total_chunks=None)

    async def aggregate(self, links: Sequence[str], query: str) -> list[Passage]:
        try:
            chunks = await self._fetch_links(list(links))
        except Exception as e:
            raise AggregationFailure(f"Failed to load links: {e}") from e

        groups = group_by_url(chunks, max_chunks=self.max_chunks)
        if not groups:
            return []

        results = await asyncio.gather(
            *(self._summarize(group, query) for group in groups),
            return_exceptions=True,
        )

        summaries: list[Passage] = []
        failures: list[BaseException] = []
        for group, result in zip(groups, results):
            if isinstance(result, BaseException):
                failures.append(result)
                log_service.log_event(
                    event_type="link_summary_failed",
                    message="Dropping link group after summarization failure",
                    url=group.metadata.url,
                    error=str(result),
                )
                continue
            summaries.append(result)

        if failures and not summaries:
            raise AggregationFailure(
                f"All {len(failures)} link summaries failed: {failures[0]}"
            ) from failures[0]

        logger.info(f"Summarized {len(summaries)}/{len(groups)} link groups")
        return summaries
