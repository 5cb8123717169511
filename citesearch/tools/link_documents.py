from __future__ import annotations

import asyncio
from typing import Sequence

import httpx
from loguru import logger

from citesearch.config import settings
from citesearch.models.passage import Passage, PassageMetadata
from citesearch.tools import content_extractor, web_utils

USER_AGENT = "Mozilla/5.0 (compatible; CiteSearch/0.1; +https://github.com/citesearch)"


def _chunk_passages(url: str, title: str, text: str) -> list[Passage]:
    chunks = web_utils.chunk_text(
        text,
        chunk_size=settings.link_chunk_size,
        overlap=settings.link_chunk_overlap,
    )
    return [
        Passage(content=chunk, metadata=PassageMetadata(title=title or url, url=url))
        for chunk in chunks
    ]


def _failure_passage(url: str, error: Exception) -> Passage:
    return Passage(
        content=f"Failed to retrieve content from the link: {error}",
        metadata=PassageMetadata(title="Failed to retrieve content", url=url),
    )


async def _fetch_one(client: httpx.AsyncClient, link: str) -> list[Passage]:
    url = web_utils.normalize_link(link)
    if not web_utils.is_valid_url(url):
        return [_failure_passage(url, ValueError(f"invalid URL {link!r}"))]
    try:
        response = await client.get(url)
        response.raise_for_status()
        content_type = response.headers.get("content-type", "").lower()
        if "application/pdf" in content_type or url.lower().endswith(".pdf"):
            extracted = await asyncio.to_thread(content_extractor.extract_pdf_content, url, response.content)
        else:
            extracted = await asyncio.to_thread(content_extractor.extract_html_content, url, response.text)
    except Exception as e:
        logger.warning(f"Failed to load link {url}: {e}")
        return [_failure_passage(url, e)]

    passages = _chunk_passages(url, extracted.title, extracted.text)
    logger.debug(f"Loaded {len(passages)} chunks from {url} via {extracted.method}")
    return passages


async def fetch_links(urls: Sequence[str]) -> list[Passage]:
    """Dereference links and split their readable text into passages.

    Links that cannot be fetched produce a single passage describing the
    failure, so one dead link does not sink the whole request.
    """
    if not urls:
        return []
    async with httpx.AsyncClient(
        timeout=settings.link_fetch_timeout,
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT},
    ) as client:
        per_link = await asyncio.gather(*(_fetch_one(client, link) for link in urls))
    return [passage for passages in per_link for passage in passages]
