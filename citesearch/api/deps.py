from __future__ import annotations

from citesearch.llm_client import ChatModel
from citesearch.models.profile import OptimizationMode, SourceProfile
from citesearch.services.embeddings import Embeddings, get_embeddings


def get_chat_model(model: str | None = None) -> ChatModel:
    """Build the chat model for a request; falls back to the configured default."""
    return ChatModel(model)


def get_embeddings_for(profile: SourceProfile, mode: str | OptimizationMode) -> Embeddings | None:
    """Only load an embedding backend when the request will actually rerank."""
    if not profile.uses_retrieval or not profile.uses_reranking:
        return None
    if not OptimizationMode.parse(mode).reranks:
        return None
    return get_embeddings()
