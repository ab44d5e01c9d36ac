"""
Library store.
Durable CRUD over collections, documents and chunks with application-level
cascading deletes. Every public operation runs in a single transaction.
"""
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..embedding import Embedder
from ..errors import EmbedderMismatch, EmbeddingFailure, NotFound, StorageFailure
from ..logging_config import logger
from ..models import Chunk, Collection, Document, StoreMeta
from ..text_extraction import chunk_text

DEFAULT_COLLECTION_NAME = "Personal Library"

ProgressCallback = Callable[[int], None]


def chunk_id(document_id: str, index: int) -> str:
    return f"{document_id}-{index}"


def chunk_sequence(chunk_id_value: str) -> int:
    """Sequence index encoded as the numeric suffix of a chunk id."""
    return int(chunk_id_value.rsplit("-", 1)[1])


class LibraryStore:
    def __init__(
        self,
        session_factory: sessionmaker,
        embedder: Embedder,
        chunk_size: int = 900,
        default_collection_name: str = DEFAULT_COLLECTION_NAME,
    ):
        self._session_factory = session_factory
        self.embedder = embedder
        self.chunk_size = chunk_size
        self.default_collection_name = default_collection_name

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        """
        One session, one transaction. Any exception rolls everything back;
        database errors surface as StorageFailure.
        """
        session = self._session_factory()
        try:
            with session.begin():
                yield session
        except SQLAlchemyError as e:
            logger.error("Storage operation failed", error=str(e))
            raise StorageFailure(str(e)) from e
        finally:
            session.close()

    # ==================== Collections ====================

    def ensure_default_collection(self) -> Collection:
        with self._transaction() as db:
            return self._ensure_default(db)

    def _ensure_default(self, db: Session) -> Collection:
        first = db.execute(
            select(Collection).order_by(Collection.created_at, Collection.id).limit(1)
        ).scalar_one_or_none()
        if first is not None:
            return first
        collection = Collection(
            id=str(uuid.uuid4()),
            name=self.default_collection_name,
            created_at=datetime.now(timezone.utc),
        )
        db.add(collection)
        logger.info("Created default collection", collection_id=collection.id)
        return collection

    def create_collection(self, name: str) -> Collection:
        name = (name or "").strip()
        if not name:
            raise ValueError("Collection name must not be empty")
        collection = Collection(
            id=str(uuid.uuid4()),
            name=name,
            created_at=datetime.now(timezone.utc),
        )
        with self._transaction() as db:
            db.add(collection)
        logger.info("Created collection", collection_id=collection.id, name=name)
        return collection

    def get_collection(self, collection_id: str) -> Collection:
        with self._transaction() as db:
            return self._require_collection(db, collection_id)

    def list_collections(self) -> List[Collection]:
        """All collections, oldest first. Creates the default one if none exist."""
        with self._transaction() as db:
            rows = db.execute(
                select(Collection).order_by(Collection.created_at, Collection.id)
            ).scalars().all()
            if not rows:
                return [self._ensure_default(db)]
            return list(rows)

    def delete_collection(self, collection_id: str) -> Dict[str, int]:
        """
        Delete a collection, its documents and all their chunks atomically.
        """
        with self._transaction() as db:
            self._require_collection(db, collection_id)
            doc_ids = db.execute(
                select(Document.id).where(Document.collection_id == collection_id)
            ).scalars().all()

            chunks_deleted = 0
            for doc_id in doc_ids:
                chunks_deleted += self._delete_document_rows(db, doc_id)

            # Denormalized strays pointing at this collection
            chunks_deleted += db.execute(
                delete(Chunk).where(Chunk.collection_id == collection_id)
            ).rowcount or 0
            db.execute(delete(Collection).where(Collection.id == collection_id))

        logger.info(
            "Deleted collection",
            collection_id=collection_id,
            documents=len(doc_ids),
            chunks=chunks_deleted,
        )
        return {"documents": len(doc_ids), "chunks": chunks_deleted}

    # ==================== Documents ====================

    def save_document(
        self,
        collection_id: str,
        filename: str,
        content: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Document:
        """
        Chunk, embed and persist a document.

        on_progress receives a non-decreasing percentage (1..100) after each
        chunk. Either the document and all its chunks are stored, or nothing is.
        Re-ingesting the same filename always creates a new document.
        """
        with self._transaction() as db:
            self._require_collection(db, collection_id)
            self._check_embedder(db)
            document = self._insert_document(db, collection_id, filename, content, on_progress)

        self._log_saved(document)
        return document

    def save_documents(self, collection_id: str, files: Sequence[Tuple[str, str]]) -> List[Document]:
        """
        Persist several (filename, content) pairs in one transaction.
        If any of them fails, none is stored.
        """
        with self._transaction() as db:
            self._require_collection(db, collection_id)
            self._check_embedder(db)
            documents = [
                self._insert_document(db, collection_id, filename, content)
                for filename, content in files
            ]

        for document in documents:
            self._log_saved(document)
        return documents

    def _insert_document(
        self,
        db: Session,
        collection_id: str,
        filename: str,
        content: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Document:
        parts = chunk_text(content or "", self.chunk_size)
        last_seq = db.execute(select(func.coalesce(func.max(Document.seq), 0))).scalar_one()
        document = Document(
            id=str(uuid.uuid4()),
            collection_id=collection_id,
            filename=filename,
            seq=last_seq + 1,
            created_at=datetime.now(timezone.utc),
            chunk_count=len(parts),
        )
        db.add(document)
        db.flush()

        total = len(parts)
        for index, text in enumerate(parts):
            vector = self.embedder.embed(text)
            if len(vector) != self.embedder.dimension:
                raise EmbeddingFailure(
                    f"Embedder returned {len(vector)} values, expected {self.embedder.dimension}"
                )
            db.add(Chunk(
                id=chunk_id(document.id, index),
                document_id=document.id,
                collection_id=collection_id,
                document_name=filename,
                chunk_index=index,
                content=text,
                embedding=vector,
            ))
            db.flush()
            if on_progress is not None:
                on_progress(max(1, round((index + 1) * 100 / total)))
        return document

    def _log_saved(self, document: Document) -> None:
        logger.info(
            "Saved document",
            document_id=document.id,
            collection_id=document.collection_id,
            filename=document.filename,
            chunks=document.chunk_count,
        )

    def get_document(self, document_id: str) -> Document:
        with self._transaction() as db:
            return self._require_document(db, document_id)

    def list_documents(self, collection_id: str) -> List[Document]:
        with self._transaction() as db:
            self._require_collection(db, collection_id)
            rows = db.execute(
                select(Document)
                .where(Document.collection_id == collection_id)
                .order_by(Document.seq, Document.created_at)
            ).scalars().all()
            return list(rows)

    def delete_document(self, document_id: str) -> int:
        """Delete a document and its chunks atomically. Returns the chunk count removed."""
        with self._transaction() as db:
            self._require_document(db, document_id)
            removed = self._delete_document_rows(db, document_id)
        logger.info("Deleted document", document_id=document_id, chunks=removed)
        return removed

    def _delete_document_rows(self, db: Session, document_id: str) -> int:
        # Children first, then the parent row.
        removed = db.execute(
            delete(Chunk).where(Chunk.document_id == document_id)
        ).rowcount or 0
        db.execute(delete(Document).where(Document.id == document_id))
        return removed

    # ==================== Chunks ====================

    def list_chunks(self, document_id: str) -> List[Chunk]:
        """Chunks of one document in their original order."""
        with self._transaction() as db:
            self._require_document(db, document_id)
            rows = db.execute(
                select(Chunk).where(Chunk.document_id == document_id)
            ).scalars().all()
        return sorted(rows, key=lambda c: chunk_sequence(c.id))

    def document_text(self, document_id: str) -> str:
        return " ".join(c.content for c in self.list_chunks(document_id))

    def scan_chunks(self, collection_id: Optional[str] = None) -> List[Chunk]:
        """
        Every live chunk, optionally scoped to one collection, in ingestion
        order (document insertion sequence, then chunk index). Chunks whose
        document no longer exists are skipped.
        """
        with self._transaction() as db:
            stmt = select(Chunk).join(Document, Document.id == Chunk.document_id)
            if collection_id is not None:
                stmt = stmt.where(Chunk.collection_id == collection_id)
            stmt = stmt.order_by(Document.seq, Document.created_at, Chunk.document_id, Chunk.chunk_index)
            return list(db.execute(stmt).scalars().all())

    # ==================== Maintenance ====================

    def ensure_embedder_compatible(self, auto_reembed: bool = True) -> str:
        """
        Compare the stored embedder name/dimension with the active embedder.

        Returns "initialized", "ok", "updated" (empty store) or "reembedded".
        Raises EmbedderMismatch when they differ, chunks exist and
        auto_reembed is off.
        """
        with self._transaction() as db:
            meta = self._read_meta(db)
            if "embedder" not in meta:
                self._write_meta(db)
                return "initialized"
            if self._meta_matches(meta):
                return "ok"

            stored = f"{meta.get('embedder')} (dim {meta.get('embed_dim')})"
            chunk_total = db.execute(select(func.count()).select_from(Chunk)).scalar_one()
            if chunk_total == 0:
                self._write_meta(db)
                logger.info("Embedder changed on empty store", stored=stored, active=self.embedder.name)
                return "updated"
            if not auto_reembed:
                raise EmbedderMismatch(stored, self.embedder.name)

            logger.warning("Embedder changed, re-embedding library", stored=stored, active=self.embedder.name)
            self._reembed(db)
            self._write_meta(db)
            return "reembedded"

    def reembed_all(self) -> int:
        """Recompute every chunk vector with the active embedder."""
        with self._transaction() as db:
            count = self._reembed(db)
            self._write_meta(db)
        return count

    def _reembed(self, db: Session) -> int:
        chunks = db.execute(select(Chunk)).scalars().all()
        for chunk in chunks:
            chunk.embedding = self.embedder.embed(chunk.content)
        logger.info("Re-embedded chunks", chunks=len(chunks), embedder=self.embedder.name)
        return len(chunks)

    def sweep_orphans(self) -> Dict[str, int]:
        """
        Remove rows left behind by an interrupted cascade: documents whose
        collection is gone, then chunks whose document is gone.
        """
        with self._transaction() as db:
            docs = db.execute(
                delete(Document).where(Document.collection_id.not_in(select(Collection.id)))
            ).rowcount or 0
            chunks = db.execute(
                delete(Chunk).where(Chunk.document_id.not_in(select(Document.id)))
            ).rowcount or 0
        if docs or chunks:
            logger.warning("Swept orphaned rows", documents=docs, chunks=chunks)
        return {"documents": docs, "chunks": chunks}

    def stats(self) -> Dict[str, int]:
        with self._transaction() as db:
            return {
                "collections": db.execute(select(func.count()).select_from(Collection)).scalar_one(),
                "documents": db.execute(select(func.count()).select_from(Document)).scalar_one(),
                "chunks": db.execute(select(func.count()).select_from(Chunk)).scalar_one(),
            }

    # ==================== Helpers ====================

    def _require_collection(self, db: Session, collection_id: str) -> Collection:
        collection = db.get(Collection, collection_id)
        if collection is None:
            raise NotFound("Collection", collection_id)
        return collection

    def _require_document(self, db: Session, document_id: str) -> Document:
        document = db.get(Document, document_id)
        if document is None:
            raise NotFound("Document", document_id)
        return document

    def _read_meta(self, db: Session) -> Dict[str, str]:
        rows = db.execute(select(StoreMeta)).scalars().all()
        return {row.key: row.value for row in rows}

    def _meta_matches(self, meta: Dict[str, str]) -> bool:
        return (
            meta.get("embedder") == self.embedder.name
            and meta.get("embed_dim") == str(self.embedder.dimension)
        )

    def _write_meta(self, db: Session) -> None:
        db.merge(StoreMeta(key="embedder", value=self.embedder.name))
        db.merge(StoreMeta(key="embed_dim", value=str(self.embedder.dimension)))

    def _check_embedder(self, db: Session) -> None:
        """New vectors must match what is already stored."""
        meta = self._read_meta(db)
        if "embedder" not in meta:
            self._write_meta(db)
        elif not self._meta_matches(meta):
            raise EmbedderMismatch(
                f"{meta.get('embedder')} (dim {meta.get('embed_dim')})", self.embedder.name
            )
