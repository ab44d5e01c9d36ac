from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, Integer, ForeignKey, DateTime, JSON, Index
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow():
    return datetime.now(timezone.utc)


class Collection(Base):
    __tablename__ = "collections"
    id = Column(String(36), primary_key=True)
    name = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class Document(Base):
    __tablename__ = "documents"
    id = Column(String(36), primary_key=True)
    collection_id = Column(String(36), ForeignKey("collections.id"), nullable=False)
    filename = Column(Text, nullable=False)
    # Insertion order across the whole library; timestamps can collide.
    seq = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    # Fixed at creation; documents are append-only.
    chunk_count = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("ix_documents_collection_id", "collection_id"),
        Index("ix_documents_seq", "seq"),
    )


class Chunk(Base):
    __tablename__ = "chunks"
    # "<document_id>-<chunk_index>"
    id = Column(String, primary_key=True)
    document_id = Column(String(36), ForeignKey("documents.id"), nullable=False)
    collection_id = Column(String(36), ForeignKey("collections.id"), nullable=False)
    document_name = Column(Text, nullable=False)
    chunk_index = Column(Integer, nullable=False)
    content = Column(Text, nullable=False)
    embedding = Column(JSON, nullable=False)

    __table_args__ = (
        Index("ix_chunks_document_id", "document_id"),
        Index("ix_chunks_collection_id", "collection_id"),
    )


class StoreMeta(Base):
    """Key/value facts about the stored data (embedder name, dimension)."""
    __tablename__ = "store_meta"
    key = Column(String(64), primary_key=True)
    value = Column(Text, nullable=False)
