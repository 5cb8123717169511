from __future__ import annotations

from urllib.parse import urlparse


def is_valid_url(url: str) -> bool:
    """Basic URL validation."""
    try:
        result = urlparse(url)
        return all([result.scheme in ("http", "https"), result.netloc])
    except Exception:
        return False


def normalize_link(link: str) -> str:
    """Prefix scheme-less links with http:// so they can be fetched."""
    link = link.strip()
    if link.startswith(("http://", "https://")):
        return link
    return f"http://{link}"


def chunk_text(text: str, *, chunk_size: int = 1000, overlap: int = 200) -> list[str]:
    """Split text into overlapping windows of collapsed whitespace."""
    if not text.strip():
        return []
    normalized = " ".join(text.split())
    chunks: list[str] = []
    start = 0
    step = max(chunk_size - overlap, 1)
    while start < len(normalized):
        chunk = normalized[start : start + chunk_size].strip()
        if chunk:
            chunks.append(chunk)
        if start + chunk_size >= len(normalized):
            break
        start += step
    return chunks
