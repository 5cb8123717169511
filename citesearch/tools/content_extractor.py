from __future__ import annotations

import io
import re
from dataclasses import dataclass

from bs4 import BeautifulSoup


@dataclass
class ExtractedContent:
    url: str
    title: str
    text: str
    method: str


def _normalize_text(text: str) -> str:
    text = text.replace("\xa0", " ")
    text = re.sub(r"\r\n?", "\n", text)
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def _extract_title(raw_html: str) -> str:
    soup = BeautifulSoup(raw_html, "html.parser")
    title = soup.title.string if soup.title and soup.title.string else ""
    return _normalize_text(title)


def _extract_with_trafilatura(raw_html: str) -> str:
    import trafilatura

    extracted = trafilatura.extract(raw_html, output_format="txt")
    if not isinstance(extracted, str):
        return ""
    return _normalize_text(extracted)


def _extract_with_soup(raw_html: str) -> str:
    soup = BeautifulSoup(raw_html, "html.parser")
    for tag in soup(["script", "style", "noscript", "svg"]):
        tag.decompose()
    return _normalize_text(soup.get_text("\n"))


def extract_html_content(url: str, raw_html: str) -> ExtractedContent:
    """Extract readable text from an HTML page.

    Trafilatura isolates the main article; pages it cannot parse (or where it
    returns nothing) fall back to the full visible text.
    """
    title = _extract_title(raw_html)
    seems_html = "<html" in raw_html.lower() or "<body" in raw_html.lower()
    primary_input = raw_html if seems_html else f"<html><body>{raw_html}</body></html>"

    primary_text = _extract_with_trafilatura(primary_input)
    if primary_text:
        return ExtractedContent(url=url, title=title, text=primary_text, method="trafilatura")

    return ExtractedContent(url=url, title=title, text=_extract_with_soup(primary_input), method="soup")


def extract_pdf_content(url: str, payload: bytes) -> ExtractedContent:
    from pypdf import PdfReader

    reader = PdfReader(io.BytesIO(payload))
    text_parts = []
    for page in reader.pages:
        text = page.extract_text()
        if text:
            text_parts.append(text)
    title = url.rstrip("/").split("/")[-1] or url
    return ExtractedContent(url=url, title=title, text=_normalize_text("\n\n".join(text_parts)), method="pypdf")
