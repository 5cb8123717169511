from __future__ import annotations

from typing import Any, Iterable

from citesearch.models.passage import format_history, normalize_history
from citesearch.services.prompt_store import render_prompt
from citesearch.services.source_fetcher import SearchFn
from citesearch.tools import searxng_search

IMAGE_ENGINES = ("bing images", "google images")
VIDEO_ENGINES = ("youtube",)
MAX_MEDIA_RESULTS = 10


async def _rephrase(prompt_key: str, query: str, history: Iterable[Any] | None, model: Any) -> str:
    prompt = render_prompt(
        prompt_key,
        chat_history=format_history(normalize_history(history)),
        query=query,
    )
    output = await model.invoke(prompt, temperature=0)
    return output.strip() or query


async def search_images(
    query: str,
    history: Iterable[Any] | None,
    model: Any,
    *,
    search: SearchFn | None = None,
) -> list[dict[str, str]]:
    """Find images for the query; only results with an image, url and title are kept."""
    search = search or searxng_search.search
    rephrased = await _rephrase("media.image_query", query, history, model)
    response = await search(rephrased, engines=list(IMAGE_ENGINES))

    images: list[dict[str, str]] = []
    for result in response.results:
        if result.img_src and result.url and result.title:
            images.append({"img_src": result.img_src, "url": result.url, "title": result.title})
    return images[:MAX_MEDIA_RESULTS]


async def search_videos(
    query: str,
    history: Iterable[Any] | None,
    model: Any,
    *,
    search: SearchFn | None = None,
) -> list[dict[str, str]]:
    """Find embeddable videos; results need a thumbnail, url, title and iframe source."""
    search = search or searxng_search.search
    rephrased = await _rephrase("media.video_query", query, history, model)
    response = await search(rephrased, engines=list(VIDEO_ENGINES))

    videos: list[dict[str, str]] = []
    for result in response.results:
        if result.thumbnail and result.url and result.title and result.iframe_src:
            videos.append(
                {
                    "img_src": result.thumbnail,
                    "url": result.url,
                    "title": result.title,
                    "iframe_src": result.iframe_src,
                }
            )
    return videos[:MAX_MEDIA_RESULTS]
