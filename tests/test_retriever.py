from __future__ import annotations

import uuid

import chromadb
import pytest
from chromadb.config import Settings as ChromaSettings
from chromadb.errors import NotFoundError

from ragbot.exceptions import OllamaError
from ragbot.rag_engine import store as store_mod
from ragbot.rag_engine.retriever import Found, InfrastructureError, NotFound, RAGRetriever
from ragbot.rag_engine.store import EmbeddingStore, OllamaEmbeddingFunction


@pytest.mark.parametrize(
    "prompt",
    [
        "What animals are llamas related to?",
        "How long do llamas live?",
        "quantum chromodynamics lattice gauge",
        "zzz",
    ],
)
def test_retrieve_returns_exactly_one_stored_document(retriever, documents, prompt):
    result = retriever.retrieve(prompt, documents)

    assert isinstance(result, Found)
    assert result.text in documents


def test_retrieve_initialises_collection_lazily(retriever, chroma_client, documents):
    assert chroma_client.collections == {}

    retriever.retrieve("What animals are llamas related to?", documents)

    collection = chroma_client.collections["ollama-embeddings-test"]
    assert collection.count() == len(documents)


def test_repeated_retrieval_does_not_reinsert(retriever, chroma_client, documents):
    for prompt in ("How tall are llamas?", "What do llamas eat?", "How heavy?"):
        retriever.retrieve(prompt, documents)

    assert chroma_client.created == ["ollama-embeddings-test"]
    assert chroma_client.collections["ollama-embeddings-test"].count() == len(documents)


def test_retrieve_not_found_on_empty_collection(retriever, chroma_client, embedder):
    chroma_client.create_collection("ollama-embeddings-test", embedding_function=embedder)

    result = retriever.retrieve("anything", [])

    assert isinstance(result, NotFound)
    assert result.text == ""


def test_retrieve_wraps_embedding_failure(store, documents):
    class FailingEmbedder:
        model = "broken"

        def __call__(self, input):
            return [[1.0] for _ in input]

        def embed_text(self, text):
            raise OllamaError("Cannot reach Ollama")

    retriever = RAGRetriever("c", store=store, embedding_function=FailingEmbedder())

    result = retriever.retrieve("hi", documents)

    assert isinstance(result, InfrastructureError)
    assert isinstance(result.cause, OllamaError)
    assert result.text == ""


def test_retrieve_wraps_partial_initialisation_failure(embedder, documents):
    class RejectingCollection:
        name = "c"

        def add(self, ids, documents, metadatas=None):
            raise RuntimeError("disk full")

    class Client:
        def get_collection(self, name, embedding_function=None):
            raise NotFoundError("Collection c does not exist.")

        def create_collection(self, name, embedding_function=None, metadata=None):
            return RejectingCollection()

    retriever = RAGRetriever("c", store=EmbeddingStore(Client()), embedding_function=embedder)

    result = retriever.retrieve("hi", documents)

    assert isinstance(result, InfrastructureError)
    assert "insert" in str(result.cause)


def test_retrieve_loads_from_settings_when_not_ready(monkeypatch, store, embedder, documents):
    retriever = RAGRetriever("ollama-embeddings-test")
    assert not retriever.is_ready

    monkeypatch.setattr(
        EmbeddingStore, "from_settings", classmethod(lambda cls, settings: store)
    )
    monkeypatch.setattr(
        OllamaEmbeddingFunction, "from_settings", classmethod(lambda cls, settings: embedder)
    )

    result = retriever.retrieve("What animals are llamas related to?", documents)

    assert retriever.is_ready
    assert isinstance(result, Found)


def test_collection_name_is_fixed_for_retriever_lifetime(retriever, chroma_client, documents):
    retriever.retrieve("a", documents)
    retriever.retrieve("b", documents)

    assert list(chroma_client.collections) == [retriever.collection_name]


def test_lazy_initialisation_against_real_chroma_client(monkeypatch, documents, letter_embedding):
    class LetterResponse:
        def __init__(self, text):
            self._text = text

        def raise_for_status(self):
            pass

        def json(self):
            return {"embedding": letter_embedding(self._text)}

    monkeypatch.setattr(
        store_mod.httpx, "post",
        lambda url, json=None, timeout=None: LetterResponse(json["prompt"]),
    )
    client = chromadb.EphemeralClient(settings=ChromaSettings(anonymized_telemetry=False))
    embedder = OllamaEmbeddingFunction(model="nomic-embed-text:latest", base_url="http://ollama.test")
    name = f"ollama-embeddings-{uuid.uuid4()}"
    retriever = RAGRetriever(name, store=EmbeddingStore(client), embedding_function=embedder)

    first = retriever.retrieve("What animals are llamas related to?", documents)
    second = retriever.retrieve("How long do llamas live?", documents)

    assert isinstance(first, Found)
    assert first.text in documents
    assert isinstance(second, Found)
    collection = client.get_collection(name=name, embedding_function=embedder)
    assert collection.count() == len(documents) == 6
