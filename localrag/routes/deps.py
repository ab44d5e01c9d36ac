"""
Shared route dependencies and error mapping.
"""
from fastapi import HTTPException, Request

from ..errors import (
    AuthError,
    EmbeddingFailure,
    GenerationTimeout,
    LocalRagError,
    NotFound,
    RateLimited,
    StorageFailure,
    TransportError,
    UnsupportedFormat,
)
from ..logging_config import logger
from ..services.library_service import LibraryStore
from ..services.rag_service import RagService

_STATUS = [
    (NotFound, 404),
    (UnsupportedFormat, 415),
    (AuthError, 401),
    (RateLimited, 429),
    (GenerationTimeout, 504),
    (TransportError, 502),
    (EmbeddingFailure, 500),
    (StorageFailure, 500),
]


def get_store(request: Request) -> LibraryStore:
    return request.app.state.store


def get_rag(request: Request) -> RagService:
    return request.app.state.rag


def to_http(e: LocalRagError) -> HTTPException:
    """Translate a domain error into an HTTP error response."""
    for exc_type, status in _STATUS:
        if isinstance(e, exc_type):
            if status >= 500:
                logger.error("Request failed", error=str(e), error_type=type(e).__name__)
            return HTTPException(status_code=status, detail=str(e))
    logger.error("Unhandled domain error", error=str(e), error_type=type(e).__name__)
    return HTTPException(status_code=500, detail="Internal server error")
