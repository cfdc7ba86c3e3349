"""Pytest configuration and fixtures."""

from __future__ import annotations

import math
import threading
from typing import List

import pytest
from chromadb.errors import NotFoundError

from ragbot.knowledge import MODEL_DOCUMENTS
from ragbot.rag_engine.retriever import RAGRetriever
from ragbot.rag_engine.store import EmbeddingStore


def letter_vector(text: str) -> List[float]:
    """Toy embedding: normalised a-z letter counts."""
    counts = [0.0] * 26
    for ch in text.lower():
        if "a" <= ch <= "z":
            counts[ord(ch) - ord("a")] += 1.0
    norm = math.sqrt(sum(c * c for c in counts)) or 1.0
    return [c / norm for c in counts]


class FakeEmbedder:
    """Stands in for OllamaEmbeddingFunction."""

    model = "fake-embed"

    def __init__(self):
        self.calls = 0

    def embed_text(self, text: str) -> List[float]:
        self.calls += 1
        return letter_vector(text)

    def __call__(self, input):
        return [self.embed_text(t) for t in input]


class FakeCollection:
    def __init__(self, name: str, embedding_function):
        self.name = name
        self.embedding_function = embedding_function
        self.ids: List[str] = []
        self.docs: List[str] = []
        self.metadatas: List[dict] = []
        self.embs: List[List[float]] = []
        self._lock = threading.Lock()

    def add(self, ids, documents, metadatas=None):
        embeddings = self.embedding_function(documents)
        with self._lock:
            self.ids.extend(ids)
            self.docs.extend(documents)
            self.metadatas.extend(metadatas or [{} for _ in ids])
            self.embs.extend(embeddings)

    def count(self) -> int:
        return len(self.ids)

    def query(self, query_embeddings=None, n_results=10, **kwargs):
        q = query_embeddings[0]
        sims = [sum(a * b for a, b in zip(e, q)) for e in self.embs]
        idxs = sorted(range(len(sims)), key=lambda i: -sims[i])[:n_results]
        return {
            "ids": [[self.ids[i] for i in idxs]],
            "documents": [[self.docs[i] for i in idxs]],
            "distances": [[1.0 - sims[i] for i in idxs]],
        }


class FakeChromaClient:
    def __init__(self):
        self.collections: dict = {}
        self.created: List[str] = []

    def get_collection(self, name, embedding_function=None):
        if name not in self.collections:
            raise NotFoundError(f"Collection {name} does not exist.")
        return self.collections[name]

    def create_collection(self, name, embedding_function=None, metadata=None):
        if name in self.collections:
            raise ValueError(f"Collection {name} already exists.")
        collection = FakeCollection(name, embedding_function)
        self.collections[name] = collection
        self.created.append(name)
        return collection


@pytest.fixture
def documents():
    return list(MODEL_DOCUMENTS)


@pytest.fixture
def chroma_client():
    return FakeChromaClient()


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def store(chroma_client):
    return EmbeddingStore(chroma_client, max_workers=4)


@pytest.fixture
def retriever(store, embedder):
    return RAGRetriever(
        collection_name="ollama-embeddings-test",
        store=store,
        embedding_function=embedder,
    )


@pytest.fixture
def letter_embedding():
    return letter_vector
