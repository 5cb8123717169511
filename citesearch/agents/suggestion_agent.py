from __future__ import annotations

from typing import Any, Iterable

from citesearch.models.passage import format_history, normalize_history
from citesearch.services.prompt_store import render_prompt
from citesearch.tools.output_parsers import parse_line_list


async def generate_suggestions(history: Iterable[Any] | None, model: Any) -> list[str]:
    """Propose follow-up questions for the conversation so far."""
    prompt = render_prompt(
        "suggestions.generator",
        chat_history=format_history(normalize_history(history)),
    )
    output = await model.invoke(prompt, temperature=0)
    return parse_line_list(output, "suggestions")
