from __future__ import annotations

from typing import Sequence

from citesearch.models.passage import Passage


def assemble(passages: Sequence[Passage]) -> str:
    """Number passages from 1; the number is the citation key used in answers."""
    return "\n".join(f"{index + 1}. {passage.content}" for index, passage in enumerate(passages))
