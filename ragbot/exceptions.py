"""
RAGBot — Exceptions
"""

from typing import Optional

from loguru import logger

__all__ = [
    "RagbotError",
    "OllamaError",
    "VectorStoreError",
]


class RagbotError(Exception):
    """Base exception for RAGBot. Its message is safe to return to clients."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class OllamaError(RagbotError):
    """Raised when Ollama is unreachable or answers with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        logger.error(f"OllamaError (status={status_code}): {message}")
        super().__init__(message)


class VectorStoreError(RagbotError):
    """Raised when a ChromaDB collection cannot be created, fetched or filled."""

    def __init__(self, message: str):
        logger.error(f"VectorStoreError: {message}")
        super().__init__(message)
