"""
RAGBot — FastAPI Entry Point

Minimal retrieval-augmented generation over a fixed llama knowledge base.
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from loguru import logger

from ragbot.config import get_settings
from ragbot.routers import ragbot

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup / shutdown lifecycle."""
    logger.info(f"🚀 Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"📌 ChromaDB: {settings.chromadb_path} | Ollama: {settings.ollama_url}")

    # Build the ChromaDB client + embedder up front (non-fatal)
    try:
        from ragbot.rag_engine import retriever as rag_retriever
        rag_retriever.load()
    except Exception as e:
        logger.warning(f"RAG preload skipped: {e}")

    yield
    logger.info("🛑 Shutting down RAGBot")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=(
        "Answers questions about llamas by retrieving the closest fact from a "
        "ChromaDB collection and passing it to an Ollama chat model."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# ── Routers ───────────────────────────────────────────────────────────────
app.include_router(ragbot.router)


# ── Root health-check ─────────────────────────────────────────────────────
@app.get("/", tags=["Health"])
async def root():
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "status": "ok",
    }


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "healthy"}


def run() -> None:
    """Console entry point: serve the API on the configured port."""
    logger.info(f"Server is running on port {settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
