from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from citesearch.errors import ProfileError


class OptimizationMode(str, Enum):
    SPEED = "speed"
    BALANCED = "balanced"
    QUALITY = "quality"

    @property
    def reranks(self) -> bool:
        return self is not OptimizationMode.SPEED

    @classmethod
    def parse(cls, value: "str | OptimizationMode") -> "OptimizationMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower().strip())
        except ValueError as exc:
            raise ProfileError(f"Unsupported optimization mode: {value}") from exc


@dataclass(frozen=True, slots=True)
class SourceProfile:
    """Everything that distinguishes one focus mode from another.

    Prompts are keys into the prompt catalog. `similarity_threshold` is
    applied only when reranking runs; passages scoring at or below it are
    discarded. `language=None` falls back to ``settings.search_language``.
    """

    name: str
    description: str
    retriever_prompt: str
    response_prompt: str
    engines: tuple[str, ...] = field(default_factory=tuple)
    language: str | None = None
    uses_reranking: bool = True
    similarity_threshold: float | None = None
    link_aware: bool = False
    uses_retrieval: bool = True


PROFILES: dict[str, SourceProfile] = {
    profile.name: profile
    for profile in (
        SourceProfile(
            name="web",
            description="Search the whole web; can also summarize links you paste.",
            retriever_prompt="web.retriever",
            response_prompt="web.response",
            uses_reranking=True,
            similarity_threshold=0.3,
            link_aware=True,
        ),
        SourceProfile(
            name="academic",
            description="Search academic papers and articles.",
            retriever_prompt="academic.retriever",
            response_prompt="academic.response",
            engines=("arxiv", "google scholar", "pubmed"),
        ),
        SourceProfile(
            name="youtube",
            description="Search YouTube videos and their descriptions.",
            retriever_prompt="youtube.retriever",
            response_prompt="youtube.response",
            engines=("youtube",),
            language="en",
            similarity_threshold=0.3,
        ),
        SourceProfile(
            name="reddit",
            description="Search Reddit discussions and opinions.",
            retriever_prompt="reddit.retriever",
            response_prompt="reddit.response",
            engines=("reddit",),
            language="en",
            similarity_threshold=0.3,
        ),
        SourceProfile(
            name="wolfram_alpha",
            description="Ask Wolfram Alpha for calculations and data analysis.",
            retriever_prompt="wolfram_alpha.retriever",
            response_prompt="wolfram_alpha.response",
            engines=("wolframalpha",),
            language="en",
            uses_reranking=False,
        ),
        SourceProfile(
            name="writing",
            description="Chat without searching the web.",
            retriever_prompt="",
            response_prompt="writing.response",
            uses_reranking=False,
            uses_retrieval=False,
        ),
    )
}


def get_profile(name: "str | SourceProfile") -> SourceProfile:
    if isinstance(name, SourceProfile):
        return name
    key = str(name).strip().lower().replace("-", "_")
    aliases = {"web_search": "web", "academic_search": "academic", "youtube_search": "youtube",
               "reddit_search": "reddit", "wolfram_alpha_search": "wolfram_alpha",
               "writing_assistant": "writing"}
    key = aliases.get(key, key)
    if key not in PROFILES:
        raise ProfileError(f"Unknown focus mode: {name}")
    return PROFILES[key]
