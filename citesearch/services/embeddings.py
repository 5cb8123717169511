from __future__ import annotations

import asyncio
from typing import Any, Protocol

from citesearch.config import settings


class Embeddings(Protocol):
    async def embed_query(self, text: str) -> list[float]: ...

    async def embed_documents(self, texts: list[str]) -> list[list[float]]: ...


class LocalEmbeddingService:
    """sentence-transformers embeddings computed off the event loop."""

    def __init__(self, model_name: str | None = None, batch_size: int | None = None):
        self.model_name = model_name or settings.local_embed_model
        self.batch_size = batch_size or int(settings.local_embed_batch_size)
        self._model: Any | None = None
        self._lock = asyncio.Lock()

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        async with self._lock:
            if self._model is None:
                self._model = await asyncio.to_thread(self._load_model)
        return await asyncio.to_thread(self._embed_sync, texts)

    async def embed_query(self, text: str) -> list[float]:
        vectors = await self.embed_documents([text])
        return vectors[0]

    def _load_model(self) -> Any:
        from sentence_transformers import SentenceTransformer

        return SentenceTransformer(self.model_name)

    def _embed_sync(self, texts: list[str]) -> list[list[float]]:
        vectors = self._model.encode(
            texts,
            batch_size=self.batch_size,
            normalize_embeddings=True,
            show_progress_bar=False,
        )
        return [list(map(float, row)) for row in vectors]


class OpenAIEmbeddingService:
    """Embeddings from an OpenAI-compatible /embeddings endpoint."""

    def __init__(self, model_name: str | None = None, openai_client: Any | None = None):
        self.model_name = model_name or settings.openai_embed_model
        self._client = openai_client

    @property
    def client(self) -> Any:
        if self._client is None:
            from citesearch.llm_client import client

            self._client = client().raw
        return self._client

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        response = await self.client.embeddings.create(model=self.model_name, input=texts)
        ordered = sorted(response.data, key=lambda item: item.index)
        return [list(map(float, item.embedding)) for item in ordered]

    async def embed_query(self, text: str) -> list[float]:
        vectors = await self.embed_documents([text])
        return vectors[0]


_embeddings: Embeddings | None = None


def get_embeddings() -> Embeddings:
    """Get or create the configured embedding provider."""
    global _embeddings
    if _embeddings is not None:
        return _embeddings
    backend = settings.embedding_backend.lower().strip()
    if backend == "local":
        _embeddings = LocalEmbeddingService()
    elif backend == "openai":
        _embeddings = OpenAIEmbeddingService()
    else:
        raise ValueError(f"Unsupported EMBEDDING_BACKEND: {settings.embedding_backend}")
    return _embeddings
