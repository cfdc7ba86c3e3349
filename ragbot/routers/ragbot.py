"""
RAGBot — Router
=================
Exposes the RAG endpoint:

    GET  /ragbot?prompt=<str>
        Retrieve the nearest llama fact for the prompt and let the LLM
        answer with it as context. Falls back to the built-in question
        when no prompt is given.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from loguru import logger

from ragbot.exceptions import RagbotError
from ragbot.knowledge import MAIN_PROMPT, MODEL_DOCUMENTS
from ragbot.llm_engine import answer
from ragbot.rag_engine import InfrastructureError, RAGRetriever
from ragbot.rag_engine import retriever as _retriever
from ragbot.schemas import RagbotErrorResponse, RagbotResponse

router = APIRouter(tags=["RAGBot"])


def get_retriever() -> RAGRetriever:
    return _retriever


def start_ragbot(prompt: str, retriever: RAGRetriever) -> Optional[str]:
    """Retrieve context for *prompt*, then generate the answer."""
    cleaned_prompt = prompt.strip()

    result = retriever.retrieve(cleaned_prompt, MODEL_DOCUMENTS)
    if isinstance(result, InfrastructureError):
        logger.warning(
            f"[RagbotRouter] Retrieval failed, answering without context: {result.cause}"
        )

    return answer(cleaned_prompt, result.text)


# ── GET /ragbot ───────────────────────────────────────────────────────────────

@router.get(
    "/ragbot",
    response_model=RagbotResponse,
    responses={
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": RagbotErrorResponse},
    },
    summary="Ask the llama RAG bot a question",
    status_code=status.HTTP_200_OK,
)
def ragbot(
    prompt: Optional[str] = Query(default=None, description="Question to answer."),
    retriever: RAGRetriever = Depends(get_retriever),
):
    user_prompt = prompt or MAIN_PROMPT
    logger.info(f"[RagbotRouter] GET /ragbot | prompt={user_prompt!r}")

    try:
        response = start_ragbot(user_prompt, retriever)
        return RagbotResponse(success=True, prompt=user_prompt, response=response)
    except RagbotError as e:
        logger.error(f"[RagbotRouter] Error starting RAG Bot: {e.message}")
        body = RagbotErrorResponse(message="Internal Server Error", error=e.message)
    except Exception as e:
        logger.error(f"[RagbotRouter] Unknown error: {e!r}")
        body = RagbotErrorResponse(message="An unknown error occurred")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body.model_dump(exclude_none=True),
    )
