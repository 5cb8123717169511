from __future__ import annotations

import json as _json

from fastapi import APIRouter
from loguru import logger
from sse_starlette.sse import EventSourceResponse

from citesearch.agents.orchestrator import run
from citesearch.api.deps import get_chat_model, get_embeddings_for
from citesearch.errors import ProfileError
from citesearch.models.profile import get_profile
from citesearch.models.schemas import SearchRequest
from citesearch.services import logger as log_service

router = APIRouter(prefix="/api/search", tags=["search"])


@router.post("")
async def stream_search(request: SearchRequest):
    """SSE endpoint streaming sources, answer chunks and the terminal event."""
    model = get_chat_model(request.model)
    try:
        embeddings = get_embeddings_for(get_profile(request.focus_mode), request.optimization_mode)
    except ProfileError:
        # run() reports the bad focus or optimization mode as an error event
        embeddings = None
    except Exception as e:
        logger.exception(f"Failed to load embedding provider: {e}")
        log_service.log_event(
            event_type="embeddings_unavailable",
            message="Embedding provider could not be loaded",
            error=str(e),
        )
        # without embeddings a reranking mode fails inside the stream
        embeddings = None

    history = [turn.model_dump() for turn in request.history]

    async def event_generator():
        log_service.log_event(
            event_type="search_started",
            message="Search started",
            focus_mode=request.focus_mode,
            optimization_mode=request.optimization_mode,
            model=model.model,
            query=request.query[:100],
        )
        source = run(
            request.query,
            history,
            model,
            embeddings,
            request.optimization_mode,
            profile=request.focus_mode,
        )
        async for event in source:
            yield {
                "event": event.event.value,
                "data": _json.dumps(event.to_message()),
            }

    return EventSourceResponse(event_generator())
