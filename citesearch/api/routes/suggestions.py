from __future__ import annotations

from fastapi import APIRouter, HTTPException
from loguru import logger

from citesearch.agents.suggestion_agent import generate_suggestions
from citesearch.api.deps import get_chat_model
from citesearch.models.schemas import SuggestionsRequest, SuggestionsResponse

router = APIRouter(prefix="/api/suggestions", tags=["suggestions"])


@router.post("", response_model=SuggestionsResponse)
async def suggest(request: SuggestionsRequest):
    """Suggest follow-up questions for a conversation."""
    model = get_chat_model(request.model)
    history = [turn.model_dump() for turn in request.history]
    try:
        suggestions = await generate_suggestions(history, model)
    except Exception as e:
        logger.exception(f"Error generating suggestions: {e}")
        raise HTTPException(status_code=500, detail="An error has occurred.") from e
    return SuggestionsResponse(suggestions=suggestions)
