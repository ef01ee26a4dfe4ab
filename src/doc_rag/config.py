"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # LLM
    openai_api_key: str = Field(default="", description="OpenAI API key (or dummy value for a local endpoint)")
    llm_model_name: str = Field(default="gpt-4o", description="Chat model identifier")
    llm_base_url: str = Field(
        default="",
        description=(
            "Base URL for an OpenAI-compatible chat API. Leave empty to use "
            "OpenAI cloud."
        ),
    )
    llm_temperature: float = 0.0

    # Embedding
    embedding_provider: str = Field(default="openai", description="'openai' or 'huggingface'")
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536

    # Ingestion
    chunk_size_words: int = 400
    min_chunk_chars: int = 50
    max_chunk_tokens: int = 7500
    embed_batch_size: int = 50
    preview_chars: int = 10_000
    min_file_chars: int = 10
    min_link_chars: int = 50
    fetch_timeout: float = 30.0
    mark_failed_on_error: bool = Field(
        default=True,
        description="Move a document to 'failed' when ingestion breaks after it was created.",
    )

    # Retrieval
    match_threshold: float = 0.5
    match_count: int = 3

    # Chat
    max_chat_steps: int = 5

    # Knowledge store
    store_backend: str = Field(default="memory", description="'memory' or 'chroma'")
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = "doc_rag"

    # Blob store
    blob_backend: str = Field(default="local", description="'local' or 's3'")
    blob_local_dir: str = "./data/blobs"
    blob_public_base_url: str = "http://localhost:8080/blobs"
    s3_bucket: str = ""
    s3_region: str = "us-east-1"

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton: import `settings` wherever needed.
settings = Settings()
