"""
RAG Engine — Embedding Store
==============================
Thin wrapper over a ChromaDB client:

  • get / create a named collection bound to an Ollama embedding function
  • fan-out insertion of documents, one uuid4 per document, with a
    per-document outcome instead of all-or-nothing

Usage:
    store = EmbeddingStore.from_settings(get_settings())
    embedder = OllamaEmbeddingFunction.from_settings(get_settings())
    collection = store.ensure_collection("ollama-embeddings-…", embedder)
    result = store.add_documents(collection, MODEL_DOCUMENTS)
    result.raise_for_failures()
"""

from __future__ import annotations

import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence

import chromadb
import httpx
from chromadb.api.types import Documents, EmbeddingFunction, Embeddings
from chromadb.config import Settings as ChromaSettings
from chromadb.errors import NotFoundError
from chromadb.utils.embedding_functions import register_embedding_function
from loguru import logger

from ragbot.config import Settings
from ragbot.exceptions import OllamaError, VectorStoreError

# chromadb >= 1.0 signals a missing collection with NotFoundError.
_MISSING_COLLECTION_ERRORS = (NotFoundError,)


# ── Ollama embeddings ─────────────────────────────────────────────────────────

def get_embedding(text: str, model: str, base_url: str, timeout: float) -> list[float]:
    """
    Call Ollama /api/embeddings for a single text.
    Raises OllamaError on connection failure or a malformed reply.
    """
    try:
        resp = httpx.post(
            f"{base_url}/api/embeddings",
            json={"model": model, "prompt": text},
            timeout=timeout,
        )
        resp.raise_for_status()
        embedding = resp.json()["embedding"]
    except httpx.ConnectError:
        raise OllamaError(
            f"Cannot reach Ollama at {base_url}. Is `ollama serve` running?"
        )
    except httpx.HTTPStatusError as e:
        raise OllamaError(
            f"Ollama embedding call failed: {e}",
            status_code=e.response.status_code,
        )
    except (httpx.HTTPError, KeyError, ValueError) as e:
        raise OllamaError(f"Ollama embedding call failed: {e}")

    if not embedding:
        raise OllamaError(f"Ollama returned an empty embedding for model {model!r}")
    return embedding


@register_embedding_function
class OllamaEmbeddingFunction(EmbeddingFunction[Documents]):
    """ChromaDB embedding function backed by an Ollama embedding model."""

    def __init__(self, model: str, base_url: str, timeout: float = 180.0):
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "OllamaEmbeddingFunction":
        return cls(
            model=settings.ollama_embedding_model,
            base_url=settings.ollama_url,
            timeout=settings.ollama_timeout,
        )

    def embed_text(self, text: str) -> list[float]:
        return get_embedding(text, self.model, self.base_url, self.timeout)

    def __call__(self, input: Documents) -> Embeddings:
        return [self.embed_text(text) for text in input]

    # ── Collection config (persisted by chromadb alongside the collection) ──

    @staticmethod
    def name() -> str:
        return "ragbot-ollama"

    def get_config(self) -> Dict[str, Any]:
        return {"model": self.model, "base_url": self.base_url, "timeout": self.timeout}

    @staticmethod
    def build_from_config(config: Dict[str, Any]) -> "OllamaEmbeddingFunction":
        return OllamaEmbeddingFunction(
            model=config["model"],
            base_url=config["base_url"],
            timeout=config.get("timeout", 180.0),
        )


# ── Batch insertion results ───────────────────────────────────────────────────

@dataclass
class InsertOutcome:
    """Outcome of inserting one document."""
    document: str
    id: str
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchInsertResult:
    outcomes: list[InsertOutcome] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(o.ok for o in self.outcomes)

    @property
    def failed(self) -> list[InsertOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def ids(self) -> list[str]:
        return [o.id for o in self.outcomes if o.ok]

    def raise_for_failures(self) -> None:
        """Turn any failed insert into a VectorStoreError."""
        failed = self.failed
        if failed:
            first = failed[0]
            raise VectorStoreError(
                f"{len(failed)}/{len(self.outcomes)} document insert(s) failed; "
                f"first error: {first.error}"
            )


# ── Store ─────────────────────────────────────────────────────────────────────

class EmbeddingStore:
    """Collection lookup/creation and document insertion against ChromaDB."""

    def __init__(self, client: Any, max_workers: int = 8):
        self.client = client
        self.max_workers = max_workers

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmbeddingStore":
        host, port, ssl = settings.chroma_endpoint()
        logger.info(f"[Store] Connecting to ChromaDB at {host}:{port} (ssl={ssl})")
        client = chromadb.HttpClient(
            host=host,
            port=port,
            ssl=ssl,
            settings=ChromaSettings(anonymized_telemetry=False),
        )
        return cls(client, max_workers=settings.insert_workers)

    def get_collection(self, name: str, embedding_function: EmbeddingFunction):
        """Fetch a collection, or None when the store reports it missing."""
        try:
            collection = self.client.get_collection(
                name=name,
                embedding_function=embedding_function,
            )
        except _MISSING_COLLECTION_ERRORS as e:
            logger.debug(f"[Store] Collection {name!r} not found: {e}")
            return None
        return collection

    def ensure_collection(self, name: str, embedding_function: EmbeddingFunction):
        """Fetch the named collection, creating it when absent."""
        collection = self.get_collection(name, embedding_function)
        if collection is not None:
            return collection

        logger.info(f"[Store] Creating collection {name!r}")
        return self.client.create_collection(
            name=name,
            embedding_function=embedding_function,
            metadata={"hnsw:space": "cosine"},
        )

    def add_documents(self, collection, documents: Sequence[str]) -> BatchInsertResult:
        """
        Insert every document concurrently under a fresh uuid4.

        Each document also carries its own text as metadata under ``name``.
        Not idempotent: calling twice stores duplicates under new ids.
        """
        if not documents:
            return BatchInsertResult()

        def _insert(doc_id: str, document: str) -> None:
            collection.add(
                ids=[doc_id],
                documents=[document],
                metadatas=[{"name": document}],
            )

        workers = max(1, min(self.max_workers, len(documents)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            pending = []
            for document in documents:
                doc_id = str(uuid.uuid4())
                pending.append((document, doc_id, executor.submit(_insert, doc_id, document)))

            outcomes = []
            for document, doc_id, future in pending:
                try:
                    future.result()
                    outcomes.append(InsertOutcome(document=document, id=doc_id))
                except Exception as e:
                    logger.warning(f"[Store] Insert {doc_id} failed: {e}")
                    outcomes.append(InsertOutcome(document=document, id=doc_id, error=e))

        result = BatchInsertResult(outcomes)
        logger.info(
            f"[Store] Inserted {len(result.ids)}/{len(documents)} document(s) "
            f"into {getattr(collection, 'name', '?')!r}"
        )
        return result
