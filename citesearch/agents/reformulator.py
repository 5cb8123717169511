from __future__ import annotations

from typing import Any, Sequence

from loguru import logger

from citesearch.errors import ReformulationFailure
from citesearch.models.passage import (
    NOT_NEEDED,
    NOT_NEEDED_MARKER,
    SUMMARIZE,
    ConversationTurn,
    ReformulatedRequest,
    RetrievalRequest,
    format_history,
)
from citesearch.models.profile import SourceProfile
from citesearch.services.prompt_store import render_prompt
from citesearch.tools.output_parsers import parse_line, parse_line_list


def parse_reformulation(output: str, *, link_aware: bool = False) -> ReformulatedRequest:
    """Turn raw model output into a retrieval request.

    Models following the tagged format emit ``<question>`` and optionally
    ``<links>``; plain-text profiles return the rephrased question as is.
    """
    tagged_question = parse_line(output, "question")
    question = tagged_question if tagged_question is not None else (output or "").strip()
    links = tuple(parse_line_list(output, "links")) if link_aware else ()

    if question == NOT_NEEDED_MARKER:
        return NOT_NEEDED

    if links:
        return RetrievalRequest(query=question or SUMMARIZE, links=links)

    if not question:
        return NOT_NEEDED

    return RetrievalRequest(query=question)


class QueryReformulator:
    """Rewrites a follow-up question into a standalone search request."""

    def __init__(self, model: Any, profile: SourceProfile):
        self.model = model
        self.profile = profile

    async def reformulate(
        self, history: Sequence[ConversationTurn], query: str
    ) -> ReformulatedRequest:
        prompt = render_prompt(
            self.profile.retriever_prompt,
            chat_history=format_history(history),
            query=query,
        )
        try:
            output = await self.model.invoke(prompt, temperature=0)
        except Exception as e:
            raise ReformulationFailure(f"Query reformulation failed: {e}") from e

        request = parse_reformulation(output, link_aware=self.profile.link_aware)
        logger.debug(f"[{self.profile.name}] reformulated {query[:80]!r} -> {request!r}")
        return request
