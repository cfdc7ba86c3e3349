"""
RAG Engine Package
==================
Llama knowledge-base retrieval using Ollama embeddings + ChromaDB.

Quickstart:
    from ragbot.rag_engine import retriever
    from ragbot.knowledge import MODEL_DOCUMENTS

    retriever.load()    # call once at startup
    result = retriever.retrieve("What animals are llamas related to?", MODEL_DOCUMENTS)
"""

from ragbot.config import get_settings
from ragbot.rag_engine.retriever import (
    Found,
    InfrastructureError,
    NotFound,
    RAGRetriever,
    RetrievalResult,
)

# Module-level singleton; its collection name lives as long as the process.
retriever = RAGRetriever(collection_name=get_settings().collection_name())

__all__ = [
    "retriever",
    "RAGRetriever",
    "RetrievalResult",
    "Found",
    "NotFound",
    "InfrastructureError",
]
