from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Union

SUMMARIZE = "summarize"
NOT_NEEDED_MARKER = "not_needed"


def is_summary_query(query: str) -> bool:
    """True when the query asks for a plain summary of the given links."""
    return query.strip().lower() == SUMMARIZE


@dataclass(frozen=True, slots=True)
class ConversationTurn:
    role: str  # user | assistant
    content: str

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ConversationTurn":
        role = str(payload.get("role", "user")).lower()
        if role in ("human", "user"):
            role = "user"
        elif role in ("ai", "assistant"):
            role = "assistant"
        else:
            raise ValueError(f"Unsupported conversation role: {role}")
        return cls(role=role, content=str(payload.get("content", "")))


def normalize_history(history: Iterable[Any] | None) -> tuple[ConversationTurn, ...]:
    """Copy caller history into an immutable tuple of turns."""
    turns: list[ConversationTurn] = []
    for item in history or ():
        if isinstance(item, ConversationTurn):
            turns.append(item)
        elif isinstance(item, dict):
            turns.append(ConversationTurn.from_dict(item))
        else:
            raise TypeError(f"Unsupported history item: {type(item).__name__}")
    return tuple(turns)


def format_history(history: Iterable[ConversationTurn]) -> str:
    labels = {"user": "User", "assistant": "Assistant"}
    return "\n".join(f"{labels.get(turn.role, turn.role)}: {turn.content}" for turn in history)


@dataclass(frozen=True, slots=True)
class PassageMetadata:
    title: str
    url: str
    image_source: str | None = None
    total_chunks: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"title": self.title, "url": self.url}
        if self.image_source:
            data["img_src"] = self.image_source
        if self.total_chunks is not None:
            data["total_chunks"] = self.total_chunks
        return data


@dataclass(frozen=True, slots=True)
class Passage:
    content: str
    metadata: PassageMetadata

    def with_content(self, content: str, **metadata_changes: Any) -> "Passage":
        return Passage(content=content, metadata=replace(self.metadata, **metadata_changes))

    def to_dict(self) -> dict[str, Any]:
        return {"content": self.content, "metadata": self.metadata.to_dict()}


class NotNeeded(Enum):
    """Sentinel: the query can be answered without retrieval."""

    NOT_NEEDED = "not_needed"

    def __repr__(self) -> str:
        return "NOT_NEEDED"


NOT_NEEDED = NotNeeded.NOT_NEEDED


@dataclass(frozen=True, slots=True)
class RetrievalRequest:
    query: str
    links: tuple[str, ...] = field(default_factory=tuple)


ReformulatedRequest = Union[NotNeeded, RetrievalRequest]
