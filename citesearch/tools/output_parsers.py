"""Parsers for the XML-ish blocks the prompts ask models to emit."""
from __future__ import annotations

import re

_LIST_MARKER = re.compile(r"^(\s*(-|\*|\d+\.\s|\d+\)\s|•)\s*)+")


def _block(text: str, key: str) -> str | None:
    text = (text or "").strip()
    start_tag = f"<{key}>"
    end_tag = f"</{key}>"
    start = text.find(start_tag)
    end = text.find(end_tag, start + len(start_tag)) if start != -1 else -1
    if start == -1 or end == -1:
        return None
    return text[start + len(start_tag) : end]


def parse_line(text: str, key: str) -> str | None:
    """Return the single-line content of ``<key>...</key>``, or None when the block is missing."""
    block = _block(text, key)
    if block is None:
        return None
    return _LIST_MARKER.sub("", block.strip())


def parse_line_list(text: str, key: str) -> list[str]:
    """Return one entry per non-empty line of ``<key>...</key>``; [] when missing."""
    block = _block(text, key)
    if block is None:
        return []
    lines: list[str] = []
    for raw in block.strip().split("\n"):
        line = _LIST_MARKER.sub("", raw.strip()).strip()
        if line:
            lines.append(line)
    return lines
