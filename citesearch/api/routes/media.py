from __future__ import annotations

from fastapi import APIRouter, HTTPException
from loguru import logger

from citesearch.agents.media_search import search_images, search_videos
from citesearch.api.deps import get_chat_model
from citesearch.models.schemas import ImagesResponse, MediaRequest, VideosResponse

router = APIRouter(prefix="/api", tags=["media"])


@router.post("/images", response_model=ImagesResponse)
async def images(request: MediaRequest):
    """Image results for the query, rephrased against the conversation."""
    model = get_chat_model(request.model)
    history = [turn.model_dump() for turn in request.history]
    try:
        results = await search_images(request.query, history, model)
    except Exception as e:
        logger.exception(f"Error in image search: {e}")
        raise HTTPException(status_code=500, detail="An error has occurred.") from e
    return ImagesResponse(images=results)


@router.post("/videos", response_model=VideosResponse)
async def videos(request: MediaRequest):
    """Embeddable video results for the query."""
    model = get_chat_model(request.model)
    history = [turn.model_dump() for turn in request.history]
    try:
        results = await search_videos(request.query, history, model)
    except Exception as e:
        logger.exception(f"Error in video search: {e}")
        raise HTTPException(status_code=500, detail="An error has occurred.") from e
    return VideosResponse(videos=results)
