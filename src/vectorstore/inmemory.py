from __future__ import annotations

"""In-memory document embedding store for local testing and demos."""

from dataclasses import dataclass, field
from typing import Protocol

from src.loaders.chunking import embed_document
from src.rag.embeddings import EmbeddingProvider
from src.rag.types import DocumentEmbeddingRecord


class VectorStoreError(RuntimeError):
    """Raised when stored embeddings cannot be read or written."""
    pass


@dataclass(frozen=True)
class DocumentSummary:
    """Stored document id with its chunk count."""
    document_id: str
    chunk_count: int


class VectorStore(Protocol):
    """Stores per-document chunk embeddings and returns them in bulk."""

    def add_document(
        self, hotel_id: int, document_id: str, text: str, max_chars: int, overlap: int
    ) -> int:
        raise NotImplementedError

    def fetch_embeddings(self, hotel_id: int, limit: int = 10) -> list[DocumentEmbeddingRecord]:
        raise NotImplementedError

    def list_documents(self, hotel_id: int) -> list[DocumentSummary]:
        raise NotImplementedError

    def delete_document(self, hotel_id: int, document_id: str) -> int:
        raise NotImplementedError


@dataclass
class InMemoryVectorStore:
    """Keeps document records in insertion order, keyed by hotel and document id."""
    embedder: EmbeddingProvider
    records: dict[tuple[int, str], DocumentEmbeddingRecord] = field(default_factory=dict)

    def add_document(
        self, hotel_id: int, document_id: str, text: str, max_chars: int, overlap: int
    ) -> int:
        """Chunk, embed and store a document, replacing the hotel's previous version."""
        chunks = embed_document(self.embedder, hotel_id, document_id, text, max_chars, overlap)
        if not chunks:
            return 0
        key = (hotel_id, document_id)
        self.records.pop(key, None)
        self.records[key] = DocumentEmbeddingRecord(
            document_id=document_id,
            hotel_id=hotel_id,
            chunks=tuple(chunks),
        )
        return len(chunks)

    def fetch_embeddings(self, hotel_id: int, limit: int = 10) -> list[DocumentEmbeddingRecord]:
        """Return up to ``limit`` document records belonging to the hotel."""
        matches = [record for record in self.records.values() if record.hotel_id == hotel_id]
        return matches[:limit]

    def list_documents(self, hotel_id: int) -> list[DocumentSummary]:
        return [
            DocumentSummary(document_id=record.document_id, chunk_count=len(record.chunks))
            for record in self.records.values()
            if record.hotel_id == hotel_id
        ]

    def delete_document(self, hotel_id: int, document_id: str) -> int:
        record = self.records.pop((hotel_id, document_id), None)
        return len(record.chunks) if record is not None else 0
