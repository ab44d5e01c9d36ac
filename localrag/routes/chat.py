"""
Question answering and search routes.
"""
from typing import List

from fastapi import APIRouter, Depends

from ..errors import LocalRagError
from ..logging_config import logger
from ..schemas import Answer, AskBody, SearchBody, SearchHit
from ..services.rag_service import RagService
from .deps import get_rag, to_http

router = APIRouter(prefix="/api", tags=["chat"])


@router.post("/search", response_model=List[SearchHit])
async def search(body: SearchBody, rag: RagService = Depends(get_rag)):
    """Top-k chunks for a query, without calling a language model."""
    try:
        return await rag.search(body.query, body.collection_id, body.top_k)
    except LocalRagError as e:
        raise to_http(e)


@router.post("/ask", response_model=Answer)
async def ask(body: AskBody, rag: RagService = Depends(get_rag)):
    """
    Retrieval-augmented answer.

    Workflow:
    1. Embed the question
    2. Rank stored chunks (optionally within one collection)
    3. Build the context and call the selected model
    4. Return the answer with per-document source scores
    """
    try:
        return await rag.answer_query(
            body.question,
            collection_id=body.collection_id,
            k=body.top_k,
            model=body.model,
            api_key=body.api_key,
        )
    except LocalRagError as e:
        logger.error("Error answering question", question=body.question, error=str(e))
        raise to_http(e)
