from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventType(str, Enum):
    SOURCES = "sources"
    RESPONSE = "response"
    END = "end"
    ERROR = "error"


TERMINAL_EVENTS = frozenset({EventType.END, EventType.ERROR})


@dataclass
class PipelineEvent:
    event: EventType
    data: Any = None

    @property
    def is_terminal(self) -> bool:
        return self.event in TERMINAL_EVENTS

    def to_message(self) -> dict[str, Any]:
        message: dict[str, Any] = {"type": self.event.value}
        if self.data is not None:
            message["data"] = self.data
        return message


class PipelineState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class EventLog:
    """Collected events of one invocation, mainly for callers that do not stream."""

    events: list[PipelineEvent] = field(default_factory=list)

    @property
    def answer(self) -> str:
        return "".join(e.data for e in self.events if e.event == EventType.RESPONSE)

    @property
    def sources(self) -> list[dict[str, Any]]:
        for e in self.events:
            if e.event == EventType.SOURCES:
                return list(e.data or [])
        return []

    @property
    def kinds(self) -> list[str]:
        return [e.event.value for e in self.events]
