from __future__ import annotations

from typing import Sequence

from citesearch.models.events import EventType, PipelineEvent
from citesearch.models.passage import Passage

GENERIC_ERROR_MESSAGE = "An error has occurred please try again later"


def sources(passages: Sequence[Passage]) -> PipelineEvent:
    """Emit the ranked source list shown next to the answer."""
    return PipelineEvent(event=EventType.SOURCES, data=[p.to_dict() for p in passages])


def response(chunk: str) -> PipelineEvent:
    return PipelineEvent(event=EventType.RESPONSE, data=chunk)


def end() -> PipelineEvent:
    return PipelineEvent(event=EventType.END)


def error(message: str = GENERIC_ERROR_MESSAGE) -> PipelineEvent:
    return PipelineEvent(event=EventType.ERROR, data=message)
