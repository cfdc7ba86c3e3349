"""
RAGBot — Pydantic Schemas

Response contracts for the /ragbot endpoint.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class RagbotResponse(BaseModel):
    success: bool = True
    prompt: str = Field(..., description="The prompt as received (or the default question).")
    response: Optional[str] = Field(
        default=None,
        description="LLM answer grounded in the retrieved document; null if the model failed.",
    )


class RagbotErrorResponse(BaseModel):
    """
    Returned with HTTP 500.
    ``error`` is only populated for RAGBot's own exceptions; anything else is
    reported with a generic message.
    """
    success: bool = False
    message: str
    error: Optional[str] = None
