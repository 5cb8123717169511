from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # OpenRouter (any OpenAI-compatible endpoint works)
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    default_model: str = "openai/gpt-4o-mini"
    openrouter_model: str = ""
    answer_temperature: float = 0.7
    answer_max_tokens: int = 4096

    # SearxNG
    searxng_api_url: str = "http://localhost:8080"
    search_language: str = "en"
    search_timeout: float = 30.0

    # Link documents
    link_fetch_timeout: float = 60.0
    link_chunk_size: int = 1000
    link_chunk_overlap: int = 200
    link_group_max_chunks: int = 10

    # Embeddings / reranking
    embedding_backend: str = "local"  # local | openai
    local_embed_model: str = "BAAI/bge-small-en-v1.5"
    local_embed_batch_size: int = 32
    openai_embed_model: str = "text-embedding-3-small"
    similarity_measure: str = "cosine"  # cosine | dot
    rerank_max_passages: int = 15

    # App
    cors_origins: str = "http://localhost:3000"
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"
    log_dir: str = "logs"
    log_file_name: str = "citesearch_{time:YYYY-MM-DD}.log"
    log_rotation: str = "00:00"
    log_retention: str = "7 days"
    log_console_format: str = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
    )
    log_file_format: str = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",")]


settings = Settings()
