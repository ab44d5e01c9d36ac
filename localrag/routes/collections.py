"""
Collection API routes.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..errors import LocalRagError
from ..schemas import CollectionCreate, CollectionOut
from ..services.library_service import LibraryStore
from .deps import get_store, to_http

router = APIRouter(prefix="/api", tags=["collections"])


@router.get("/collections", response_model=List[CollectionOut])
def list_collections(store: LibraryStore = Depends(get_store)):
    """List collections, creating the default one on first access."""
    try:
        return store.list_collections()
    except LocalRagError as e:
        raise to_http(e)


@router.post("/collections", response_model=CollectionOut, status_code=201)
def create_collection(body: CollectionCreate, store: LibraryStore = Depends(get_store)):
    try:
        return store.create_collection(body.name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LocalRagError as e:
        raise to_http(e)


@router.delete("/collections/{collection_id}")
def delete_collection(collection_id: str, store: LibraryStore = Depends(get_store)):
    """
    Delete a collection with all of its documents and chunks.
    """
    try:
        removed = store.delete_collection(collection_id)
    except LocalRagError as e:
        raise to_http(e)
    return {"ok": True, "deleted": collection_id, **removed}
