"""
Pydantic schemas for request/response validation.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CollectionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200, description="Display name")


class CollectionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    created_at: datetime


class DocumentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    collection_id: str
    filename: str
    created_at: datetime
    chunk_count: int


class SearchBody(BaseModel):
    """Request body for raw similarity search."""
    query: str = Field(..., min_length=1)
    collection_id: Optional[str] = Field(None, description="Restrict search to one collection")
    top_k: int = Field(4, ge=1, le=50, description="Number of chunks to return")


class SearchHit(BaseModel):
    """One retrieved chunk."""
    text: str
    source: str
    document_id: str
    score: float


class AskBody(BaseModel):
    """Request body for asking questions."""
    question: str = Field(..., min_length=1, description="The question to ask")
    collection_id: Optional[str] = Field(None, description="Restrict retrieval to one collection")
    top_k: Optional[int] = Field(None, ge=1, le=20, description="Number of chunks to retrieve")
    model: Optional[str] = Field(None, description="Model identifier: 'openai:gpt-4o-mini' or 'ollama:qwen2.5:7b'")
    api_key: Optional[str] = Field(None, description="Provider API key for this request only")


class Source(BaseModel):
    """A source document used in an answer, with its best chunk score in percent."""
    name: str
    score: int


class Answer(BaseModel):
    answer: str
    sources: List[Source]
