"""
RAGBot — LLM Engine
====================
Answer generation via Ollama (llama3.1 at http://localhost:11434).

Flow:
  1. Build the prompt from the retrieved context + the user's question
  2. POST to Ollama /api/chat (no tools, non-streaming)
  3. Return the assistant's message content, or None on any failure

The interactive CLI uses stream_chat(), which yields partial tokens from the
same endpoint with ``stream: true``.
"""

from __future__ import annotations

import json
from typing import Iterator, Optional

import httpx
from loguru import logger

from ragbot.config import get_settings
from ragbot.exceptions import OllamaError
from ragbot.llm_engine.prompts import generate_prompt, user_message

__all__ = [
    "generate_prompt",
    "get_chat_response",
    "answer",
    "stream_chat",
]


# ── Ollama callers ────────────────────────────────────────────────────────────

def get_chat_response(
    model: str,
    messages: list[dict],
    tools: Optional[list[dict]] = None,
) -> Optional[dict]:
    """
    Call Ollama /api/chat in non-streaming mode.
    Returns the decoded response body, or None if the call failed.
    """
    settings = get_settings()
    payload = {
        "model":    model,
        "messages": messages,
        "stream":   False,
        "tools":    tools or [],
    }
    try:
        resp = httpx.post(
            f"{settings.ollama_url}/api/chat",
            json=payload,
            timeout=settings.ollama_timeout,
        )
        resp.raise_for_status()
        return resp.json()
    except Exception as e:
        logger.error(f"[LLM] Error getting Ollama chat response: {e}")
        return None


def stream_chat(
    messages: list[dict],
    model: Optional[str] = None,
    base_url: Optional[str] = None,
) -> Iterator[str]:
    """
    Call Ollama /api/chat with ``stream: true`` and yield content chunks
    as they arrive. Raises OllamaError on connection or protocol failure.
    """
    settings = get_settings()
    base_url = (base_url or settings.ollama_url).rstrip("/")
    payload = {
        "model":    model or settings.ollama_model,
        "messages": messages,
        "stream":   True,
    }
    try:
        with httpx.stream(
            "POST",
            f"{base_url}/api/chat",
            json=payload,
            timeout=settings.ollama_timeout,
        ) as resp:
            resp.raise_for_status()
            for line in resp.iter_lines():
                if not line.strip():
                    continue
                chunk = json.loads(line)
                if chunk.get("error"):
                    raise OllamaError(f"Ollama stream error: {chunk['error']}")
                content = (chunk.get("message") or {}).get("content", "")
                if content:
                    yield content
                if chunk.get("done"):
                    break
    except httpx.ConnectError:
        raise OllamaError(
            f"Cannot reach Ollama at {base_url}. Is `ollama serve` running?"
        )
    except httpx.HTTPStatusError as e:
        raise OllamaError(
            f"Ollama stream failed: {e}",
            status_code=e.response.status_code,
        )
    except (httpx.HTTPError, json.JSONDecodeError) as e:
        raise OllamaError(f"Ollama stream failed: {e}")


# ── Main entry point ──────────────────────────────────────────────────────────

def answer(question: str, context: str) -> Optional[str]:
    """
    Generate a human-readable answer to *question* grounded in *context*.
    Returns None when Ollama fails or replies without a message.
    """
    settings = get_settings()
    try:
        prompt = generate_prompt(question, context)
        logger.info(f"[LLM] Calling Ollama ({settings.ollama_model}) for answer...")
        response = get_chat_response(settings.ollama_model, [user_message(prompt)], [])
        if not response:
            return None
        content = (response.get("message") or {}).get("content")
        if content is not None:
            logger.info(f"[LLM] Ollama reply: {len(content)} chars.")
        return content
    except Exception as e:
        logger.error(f"[LLM] Error getting Ollama human response: {e}")
        return None
