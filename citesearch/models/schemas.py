from __future__ import annotations

from pydantic import BaseModel, Field


# --- Requests ---


class HistoryTurn(BaseModel):
    role: str
    content: str


class SearchRequest(BaseModel):
    query: str
    history: list[HistoryTurn] = Field(default_factory=list)
    focus_mode: str = "web"
    optimization_mode: str = "balanced"
    model: str | None = None


class SuggestionsRequest(BaseModel):
    history: list[HistoryTurn] = Field(default_factory=list)
    model: str | None = None


class MediaRequest(BaseModel):
    query: str
    history: list[HistoryTurn] = Field(default_factory=list)
    model: str | None = None


# --- Responses ---


class ProfileInfo(BaseModel):
    id: str
    description: str
    uses_retrieval: bool
    uses_reranking: bool


class ProfilesResponse(BaseModel):
    profiles: list[ProfileInfo]


class SuggestionsResponse(BaseModel):
    suggestions: list[str]


class ImageResult(BaseModel):
    img_src: str
    url: str
    title: str


class VideoResult(BaseModel):
    img_src: str
    url: str
    title: str
    iframe_src: str


class ImagesResponse(BaseModel):
    images: list[ImageResult]


class VideosResponse(BaseModel):
    videos: list[VideoResult]
