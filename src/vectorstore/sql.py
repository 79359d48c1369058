from __future__ import annotations

"""SQL-backed document embedding store."""

import json
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    delete,
    func,
    select,
)
from sqlalchemy.exc import SQLAlchemyError

from src.loaders.chunking import embed_document
from src.rag.embeddings import EmbeddingProvider
from src.rag.types import DocumentChunk, DocumentEmbeddingRecord
from src.vectorstore.inmemory import DocumentSummary, VectorStoreError


@dataclass
class SQLVectorStore:
    """Store chunk text and JSON-encoded embeddings in a SQL table."""
    embedder: EmbeddingProvider
    connection_uri: str

    def __post_init__(self) -> None:
        """Create the engine and ensure the chunk table exists."""
        self._engine = create_engine(self.connection_uri)
        self._metadata = MetaData()
        self._table = Table(
            "document_chunks",
            self._metadata,
            Column("id", Integer, primary_key=True, autoincrement=True),
            Column("hotel_id", Integer, nullable=False, index=True),
            Column("document_id", String(128), nullable=False, index=True),
            Column("chunk_index", Integer, nullable=False),
            Column("content", Text, nullable=False),
            Column("embedding", Text, nullable=False),
            Column("created_at", DateTime(timezone=True), nullable=False),
        )
        self._metadata.create_all(self._engine)

    def add_document(
        self, hotel_id: int, document_id: str, text: str, max_chars: int, overlap: int
    ) -> int:
        """Chunk, embed and store a document, replacing any previous version."""
        chunks = embed_document(self.embedder, hotel_id, document_id, text, max_chars, overlap)
        if not chunks:
            return 0
        created_at = datetime.now(timezone.utc)
        rows = [
            {
                "hotel_id": hotel_id,
                "document_id": document_id,
                "chunk_index": idx,
                "content": chunk.text,
                "embedding": json.dumps(list(chunk.embedding)),
                "created_at": created_at,
            }
            for idx, chunk in enumerate(chunks, start=1)
        ]
        try:
            with self._engine.begin() as conn:
                conn.execute(
                    delete(self._table).where(
                        self._table.c.hotel_id == hotel_id,
                        self._table.c.document_id == document_id,
                    )
                )
                conn.execute(self._table.insert(), rows)
        except SQLAlchemyError as exc:
            raise VectorStoreError(type(exc).__name__) from exc
        return len(chunks)

    def fetch_embeddings(self, hotel_id: int, limit: int = 10) -> list[DocumentEmbeddingRecord]:
        """Return up to ``limit`` document records belonging to the hotel."""
        table = self._table
        try:
            with self._engine.connect() as conn:
                document_ids = [
                    row.document_id
                    for row in conn.execute(
                        select(table.c.document_id)
                        .where(table.c.hotel_id == hotel_id)
                        .group_by(table.c.document_id)
                        .order_by(table.c.document_id)
                        .limit(limit)
                    )
                ]
                if not document_ids:
                    return []
                rows = conn.execute(
                    select(table)
                    .where(
                        table.c.hotel_id == hotel_id,
                        table.c.document_id.in_(document_ids),
                    )
                    .order_by(table.c.document_id, table.c.chunk_index)
                ).all()
        except SQLAlchemyError as exc:
            raise VectorStoreError(type(exc).__name__) from exc

        grouped: dict[str, list[DocumentChunk]] = {doc_id: [] for doc_id in document_ids}
        for row in rows:
            grouped[row.document_id].append(
                DocumentChunk(
                    chunk_id=f"{row.document_id}-{row.chunk_index}",
                    document_id=row.document_id,
                    hotel_id=row.hotel_id,
                    text=row.content,
                    embedding=tuple(self._decode(row.embedding)),
                )
            )
        return [
            DocumentEmbeddingRecord(document_id=doc_id, hotel_id=hotel_id, chunks=tuple(chunks))
            for doc_id, chunks in grouped.items()
        ]

    def list_documents(self, hotel_id: int) -> list[DocumentSummary]:
        table = self._table
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(
                    select(table.c.document_id, func.count().label("chunk_count"))
                    .where(table.c.hotel_id == hotel_id)
                    .group_by(table.c.document_id)
                    .order_by(table.c.document_id)
                ).all()
        except SQLAlchemyError as exc:
            raise VectorStoreError(type(exc).__name__) from exc
        return [DocumentSummary(document_id=row.document_id, chunk_count=int(row.chunk_count)) for row in rows]

    def delete_document(self, hotel_id: int, document_id: str) -> int:
        try:
            with self._engine.begin() as conn:
                result = conn.execute(
                    delete(self._table).where(
                        self._table.c.hotel_id == hotel_id,
                        self._table.c.document_id == document_id,
                    )
                )
        except SQLAlchemyError as exc:
            raise VectorStoreError(type(exc).__name__) from exc
        return result.rowcount or 0

    @staticmethod
    def _decode(value: str) -> list[float]:
        """Decode a stored embedding, treating corrupt rows as empty vectors."""
        try:
            data = json.loads(value)
        except (TypeError, json.JSONDecodeError):
            return []
        if not isinstance(data, list):
            return []
        return [float(item) for item in data if isinstance(item, (int, float))]
