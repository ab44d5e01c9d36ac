"""
Document management API routes.
Handles document upload, listing, text reconstruction and deletion.
"""
import os
import shutil
import tempfile
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool

from ..errors import LocalRagError
from ..logging_config import logger
from ..schemas import DocumentOut
from ..services.library_service import LibraryStore
from ..text_extraction import read_any
from .deps import get_store, to_http

router = APIRouter(prefix="/api", tags=["documents"])

MAX_FILES_PER_UPLOAD = 5
MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024  # 10 MB per file


def _file_size(f: UploadFile) -> int:
    f.file.seek(0, os.SEEK_END)
    size = f.file.tell()
    f.file.seek(0)
    return size


def _extract(f: UploadFile) -> str:
    """Copy the upload to a temp file and extract its text."""
    with tempfile.NamedTemporaryFile(delete=False) as tmp:
        shutil.copyfileobj(f.file, tmp)
        tmp_path = tmp.name
    try:
        text, kind = read_any(tmp_path, f.content_type or "", f.filename or "")
    finally:
        os.remove(tmp_path)
    logger.info("Extracted text", filename=f.filename, kind=kind, chars=len(text))
    return text


# ==================== Document Upload ====================

@router.post("/collections/{collection_id}/documents", response_model=List[DocumentOut], status_code=201)
async def upload_documents(
    collection_id: str,
    files: List[UploadFile] = File(...),
    store: LibraryStore = Depends(get_store),
):
    """
    Upload one or more documents into a collection.

    Supported formats: TXT, MD, PDF, DOCX. Each file becomes a new document,
    even when a document with the same name already exists. If any file is
    rejected, nothing from the batch is stored.
    """
    if not files:
        raise HTTPException(status_code=400, detail="No files uploaded")
    if len(files) > MAX_FILES_PER_UPLOAD:
        raise HTTPException(
            status_code=400,
            detail=f"Too many files. Maximum {MAX_FILES_PER_UPLOAD} files per upload.",
        )

    for f in files:
        if _file_size(f) > MAX_FILE_SIZE_BYTES:
            raise HTTPException(
                status_code=400,
                detail=(
                    f"File '{f.filename}' is too large. "
                    f"Max size is {MAX_FILE_SIZE_BYTES // (1024 * 1024)} MB."
                ),
            )

    # Extract everything first, then store the batch in one transaction
    try:
        extracted = []
        for f in files:
            text = await run_in_threadpool(_extract, f)
            extracted.append((f.filename or "untitled", text))
        return await run_in_threadpool(store.save_documents, collection_id, extracted)
    except LocalRagError as e:
        logger.warning("Upload rejected", collection_id=collection_id, error=str(e))
        raise to_http(e)


# ==================== Document Listing ====================

@router.get("/collections/{collection_id}/documents", response_model=List[DocumentOut])
def list_documents(collection_id: str, store: LibraryStore = Depends(get_store)):
    try:
        return store.list_documents(collection_id)
    except LocalRagError as e:
        raise to_http(e)


@router.get("/documents/{document_id}/text")
def document_text(document_id: str, store: LibraryStore = Depends(get_store)):
    """Reassemble a document from its chunks, in order."""
    try:
        document = store.get_document(document_id)
        text = store.document_text(document_id)
    except LocalRagError as e:
        raise to_http(e)
    return {"id": document.id, "filename": document.filename, "text": text}


# ==================== Document Deletion ====================

@router.delete("/documents/{document_id}")
def delete_document(document_id: str, store: LibraryStore = Depends(get_store)):
    """
    Delete a document and all its chunks.
    """
    try:
        removed = store.delete_document(document_id)
    except LocalRagError as e:
        logger.warning("Document delete failed", document_id=document_id, error=str(e))
        raise to_http(e)
    return {"ok": True, "deleted": document_id, "chunks": removed}
