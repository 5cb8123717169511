from __future__ import annotations

import asyncio
from typing import AsyncIterator, Awaitable, Callable, Sequence

from loguru import logger

from citesearch.models.events import EventLog, PipelineEvent, PipelineState
from citesearch.models.passage import Passage
from citesearch.services import streaming


class EventSource:
    """Single-subscriber, single-shot stream of pipeline events.

    Producers publish through the typed methods below; the stream always
    reads ``sources, response*, (end | error)``. Anything published after
    the terminal event is dropped.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[PipelineEvent] = asyncio.Queue()
        self._state = PipelineState.IDLE
        self._sources_sent = False
        self._subscribed = False
        self._producer: Callable[[], Awaitable[None]] | None = None
        self._task: asyncio.Task | None = None

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def finished(self) -> bool:
        return self._state in (PipelineState.COMPLETED, PipelineState.FAILED)

    def _put(self, event: PipelineEvent) -> None:
        if self.finished:
            logger.debug(f"Dropping {event.event.value} event published after terminal event")
            return
        self._queue.put_nowait(event)

    def publish_sources(self, passages: Sequence[Passage]) -> None:
        if self._sources_sent:
            raise RuntimeError("Sources were already published for this invocation")
        self._sources_sent = True
        self._put(streaming.sources(passages))

    def publish_response(self, chunk: str) -> None:
        if not self._sources_sent:
            raise RuntimeError("Response chunks must follow the sources event")
        self._put(streaming.response(chunk))

    def complete(self) -> None:
        if self.finished:
            return
        if not self._sources_sent:
            self.publish_sources([])
        self._put(streaming.end())
        self._state = PipelineState.COMPLETED

    def fail(self, message: str = streaming.GENERIC_ERROR_MESSAGE) -> None:
        if self.finished:
            return
        if not self._sources_sent:
            self.publish_sources([])
        self._put(streaming.error(message))
        self._state = PipelineState.FAILED

    def start(self, producer: Callable[[], Awaitable[None]]) -> None:
        """Schedule the producer; without a running loop it starts on first iteration."""
        if self._producer is not None:
            raise RuntimeError("EventSource already started")
        self._producer = producer
        self._state = PipelineState.RUNNING
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._task = loop.create_task(self._run_producer())

    async def _run_producer(self) -> None:
        try:
            await self._producer()
        except Exception as e:
            logger.exception(f"Event producer crashed: {e}")
            self.fail()
        else:
            # Producers are expected to finish the stream; close it if one forgot.
            self.complete()

    def __aiter__(self) -> AsyncIterator[PipelineEvent]:
        if self._subscribed:
            raise RuntimeError("EventSource can only be consumed once")
        self._subscribed = True
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[PipelineEvent]:
        if self._producer is not None and self._task is None and not self.finished:
            self._task = asyncio.get_running_loop().create_task(self._run_producer())
        while True:
            event = await self._queue.get()
            yield event
            if event.is_terminal:
                return

    async def collect(self) -> EventLog:
        """Drain the stream into an EventLog."""
        log = EventLog()
        async for event in self:
            log.events.append(event)
        return log
