"""
RAG Engine — Retriever Service
================================
Resolves the process collection, lazily fills it with the knowledge base
on first use, and returns the single nearest document for a prompt.

Usage (from other modules):
    from ragbot.rag_engine.retriever import RAGRetriever
    retriever = RAGRetriever(collection_name="ollama-embeddings-…")
    result = retriever.retrieve("What animals are llamas related to?", MODEL_DOCUMENTS)
    context = result.text      # "" when nothing was found or retrieval failed
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Union

from loguru import logger

from ragbot.config import get_settings
from ragbot.exceptions import VectorStoreError
from ragbot.rag_engine.store import EmbeddingStore, OllamaEmbeddingFunction


# ── Results ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Found:
    text: str


@dataclass(frozen=True)
class NotFound:
    @property
    def text(self) -> str:
        return ""


@dataclass(frozen=True)
class InfrastructureError:
    cause: Exception

    @property
    def text(self) -> str:
        return ""


RetrievalResult = Union[Found, NotFound, InfrastructureError]


# ── Retriever ─────────────────────────────────────────────────────────────────

class RAGRetriever:
    """
    Owns one collection name for its whole lifetime.
    The collection itself is re-resolved from the store on every call.
    """

    def __init__(
        self,
        collection_name: str,
        store: Optional[EmbeddingStore] = None,
        embedding_function: Optional[OllamaEmbeddingFunction] = None,
    ):
        self.collection_name = collection_name
        self._store = store
        self._embedder = embedding_function

    # ── Lazy load ─────────────────────────────────────────────────────────

    def load(self) -> None:
        """Build the ChromaDB client and Ollama embedder from settings."""
        if self.is_ready:
            return

        settings = get_settings()
        if self._store is None:
            self._store = EmbeddingStore.from_settings(settings)
        if self._embedder is None:
            self._embedder = OllamaEmbeddingFunction.from_settings(settings)

        logger.success(
            f"✅ RAG Retriever ready | collection={self.collection_name} | "
            f"embedder={self._embedder.model}"
        )

    def initialise(self, documents: Sequence[str]) -> None:
        """Create the collection and insert every document; all must succeed."""
        collection = self._store.ensure_collection(self.collection_name, self._embedder)
        result = self._store.add_documents(collection, documents)
        result.raise_for_failures()
        logger.info(
            f"[Retriever] Initialised {self.collection_name} with "
            f"{len(result.ids)} document(s)"
        )

    # ── Core retrieval ────────────────────────────────────────────────────

    def retrieve(self, prompt: str, documents: Sequence[str]) -> RetrievalResult:
        """
        Return the single stored document nearest to *prompt*.

        Never raises: failures come back as InfrastructureError so callers
        can tell them apart from an empty match.
        """
        try:
            if not self.is_ready:
                self.load()

            collection = self._store.get_collection(self.collection_name, self._embedder)
            if collection is None:
                self.initialise(documents)
                collection = self._store.get_collection(self.collection_name, self._embedder)
                if collection is None:
                    raise VectorStoreError(
                        f"Collection {self.collection_name!r} missing after initialisation"
                    )

            embedding = self._embedder.embed_text(prompt)
            results = collection.query(query_embeddings=[embedding], n_results=1)

            docs = (results or {}).get("documents") or [[]]
            first = docs[0][0] if docs and docs[0] else None
        except Exception as e:
            logger.error(f"[Retriever] Retrieval failed: {e}")
            return InfrastructureError(cause=e)

        if not first:
            logger.debug(f"[Retriever] No match for '{prompt[:60]}'")
            return NotFound()

        logger.debug(f"[Retriever] '{prompt[:60]}' → '{first[:60]}'")
        return Found(text=first)

    # ── Convenience ───────────────────────────────────────────────────────

    @property
    def is_ready(self) -> bool:
        return self._store is not None and self._embedder is not None

    def __repr__(self) -> str:
        status = "ready" if self.is_ready else "not loaded"
        return f"<RAGRetriever [{self.collection_name} | {status}]>"
