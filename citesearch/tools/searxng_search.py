from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

import httpx

from citesearch.config import settings


@dataclass
class SearchResult:
    title: str
    url: str
    content: str = ""
    img_src: str | None = None
    thumbnail: str | None = None
    iframe_src: str | None = None


@dataclass
class SearchResponse:
    results: list[SearchResult]


def _optional_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _map_results(payload: dict[str, Any]) -> list[SearchResult]:
    mapped: list[SearchResult] = []
    for item in payload.get("results", []) or []:
        if not isinstance(item, dict):
            continue
        mapped.append(
            SearchResult(
                title=str(item.get("title", "") or ""),
                url=str(item.get("url", "") or ""),
                content=str(item.get("content", "") or ""),
                img_src=_optional_str(item.get("img_src")),
                thumbnail=_optional_str(item.get("thumbnail_src")) or _optional_str(item.get("thumbnail")),
                iframe_src=_optional_str(item.get("iframe_src")),
            )
        )
    return mapped


async def search(
    query: str,
    *,
    language: str | None = None,
    engines: Sequence[str] | None = None,
) -> SearchResponse:
    """Query a SearxNG instance through its JSON API and normalize results."""
    base_url = settings.searxng_api_url.strip().rstrip("/")
    if not base_url:
        raise RuntimeError("SEARXNG_API_URL is not configured")

    params: dict[str, Any] = {"q": query, "format": "json"}
    if language:
        params["language"] = language
    if engines:
        params["engines"] = ",".join(engines)

    async with httpx.AsyncClient(timeout=settings.search_timeout) as client:
        response = await client.get(
            f"{base_url}/search",
            params=params,
            headers={"Accept": "application/json"},
        )
        response.raise_for_status()
        payload = response.json()

    return SearchResponse(results=_map_results(payload))

