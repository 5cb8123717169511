from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, AsyncIterator, Sequence

from citesearch.config import settings
from citesearch.errors import GenerationFailure
from citesearch.models.passage import ConversationTurn
from citesearch.models.profile import SourceProfile
from citesearch.services.prompt_store import render_prompt


class AnswerGenerator:
    """Streams the cited answer for one query."""

    def __init__(self, model: Any, profile: SourceProfile, temperature: float | None = None):
        self.model = model
        self.profile = profile
        self.temperature = settings.answer_temperature if temperature is None else temperature

    def build_system_prompt(self, context: str) -> str:
        return render_prompt(
            self.profile.response_prompt,
            context=context,
            date=datetime.now(timezone.utc).isoformat(),
        )

    @staticmethod
    def build_messages(history: Sequence[ConversationTurn], query: str) -> list[dict[str, Any]]:
        messages = [{"role": turn.role, "content": turn.content} for turn in history]
        messages.append({"role": "user", "content": query})
        return messages

    async def generate(
        self,
        history: Sequence[ConversationTurn],
        query: str,
        context: str,
    ) -> AsyncIterator[str]:
        stream = self.model.stream(
            system=self.build_system_prompt(context),
            messages=self.build_messages(history, query),
            temperature=self.temperature,
        )
        try:
            async for chunk in stream:
                if chunk:
                    yield chunk
        except Exception as e:
            raise GenerationFailure(f"Answer generation failed: {e}") from e
