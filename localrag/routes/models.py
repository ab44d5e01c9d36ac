"""
Model listing and health routes.
"""
from fastapi import APIRouter, Depends

from ..errors import LocalRagError
from ..services.library_service import LibraryStore
from ..services.model_service import get_available_models
from .deps import get_store, to_http

router = APIRouter(prefix="/api", tags=["models"])


@router.get("/models")
async def list_available_models():
    """
    Return all supported LLM models grouped by provider.

    Example response:
    {
        "openai": ["gpt-4o-mini"],
        "ollama": ["qwen2.5:7b"]
    }
    """
    return get_available_models()


@router.get("/health")
def health(store: LibraryStore = Depends(get_store)):
    try:
        stats = store.stats()
    except LocalRagError as e:
        raise to_http(e)
    return {
        "ok": True,
        "embedder": store.embedder.name,
        "dimension": store.embedder.dimension,
        **stats,
    }
