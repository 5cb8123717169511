from __future__ import annotations

from unittest.mock import MagicMock, patch

from citesearch.tools import content_extractor


def test_extract_html_content_uses_trafilatura_path(monkeypatch):
    monkeypatch.setattr(
        content_extractor,
        "_extract_with_trafilatura",
        lambda *_args, **_kwargs: "Docker packages software into containers.",
    )

    result = content_extractor.extract_html_content(
        "https://example.com/article",
        "<html><head><title>Article</title></head><body>Body</body></html>",
    )

    assert result.method == "trafilatura"
    assert result.title == "Article"
    assert result.text == "Docker packages software into containers."


def test_extract_html_content_falls_back_to_visible_text(monkeypatch):
    monkeypatch.setattr(content_extractor, "_extract_with_trafilatura", lambda *_args, **_kwargs: "")

    result = content_extractor.extract_html_content(
        "https://example.com/short",
        "<html><head><title>Short</title><script>var x = 1;</script></head>"
        "<body><p>Visible   text</p></body></html>",
    )

    assert result.method == "soup"
    assert "Visible text" in result.text
    assert "var x" not in result.text


def test_extract_pdf_content_joins_pages():
    pages = [MagicMock(), MagicMock(), MagicMock()]
    pages[0].extract_text.return_value = "Page one."
    pages[1].extract_text.return_value = ""
    pages[2].extract_text.return_value = "Page\xa0three."
    reader = MagicMock(pages=pages)

    with patch("pypdf.PdfReader", return_value=reader):
        result = content_extractor.extract_pdf_content("https://example.com/docs/paper.pdf", b"%PDF")

    assert result.method == "pypdf"
    assert result.title == "paper.pdf"
    assert result.text == "Page one.\n\nPage three."
