"""
RAGBot — retrieval-augmented answers about llamas, backed by Ollama + ChromaDB.
"""
