"""
RAGBot — Application Configuration
Reads settings from environment variables / .env file.
"""

import uuid
from functools import lru_cache
from urllib.parse import urlparse

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── App ──────────────────────────────────────────────────
    app_name: str = "RAGBot"
    app_version: str = "0.1.0"
    host: str = "0.0.0.0"
    port: int = 3000

    # ── ChromaDB ─────────────────────────────────────────────
    chromadb_path: str = "http://localhost:8000"
    # Every process appends a fresh uuid4, so runs never share a collection.
    collection_prefix: str = "ollama-embeddings"
    insert_workers: int = 8

    # ── Ollama ───────────────────────────────────────────────
    ollama_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.1:latest"
    ollama_embedding_model: str = "nomic-embed-text:latest"
    ollama_timeout: float = 180.0

    def collection_name(self) -> str:
        """Mint a process-unique collection name."""
        return f"{self.collection_prefix}-{uuid.uuid4()}"

    def chroma_endpoint(self) -> tuple[str, int, bool]:
        """Split ``chromadb_path`` into (host, port, ssl) for chromadb.HttpClient."""
        parsed = urlparse(self.chromadb_path)
        if not parsed.hostname:
            raise ValueError(f"Invalid CHROMADB_PATH: {self.chromadb_path!r}")
        ssl = parsed.scheme == "https"
        port = parsed.port or (443 if ssl else 8000)
        return parsed.hostname, port, ssl


@lru_cache
def get_settings() -> Settings:
    """Cache-backed settings loader."""
    return Settings()
