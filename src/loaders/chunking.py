from __future__ import annotations

"""Text normalization and chunking for hotel documents."""

import re

from src.rag.embeddings import EmbeddingProvider
from src.rag.types import DocumentChunk

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Normalize whitespace and line endings in text."""
    return _WHITESPACE_RE.sub(" ", text.replace("\r\n", "\n")).strip()


def chunk_text(text: str, max_chars: int, overlap: int) -> list[str]:
    """Split text into overlapping character-based chunks."""
    cleaned = normalize_text(text)
    if not cleaned:
        return []
    if max_chars <= 0:
        return [cleaned]
    if overlap >= max_chars:
        overlap = max(0, max_chars // 4)

    chunks: list[str] = []
    start = 0
    length = len(cleaned)
    while start < length:
        end = min(length, start + max_chars)
        chunk = cleaned[start:end].strip()
        if chunk:
            chunks.append(chunk)
        if end >= length:
            break
        start = max(0, end - overlap)
    return chunks


def embed_document(
    embedder: EmbeddingProvider,
    hotel_id: int,
    document_id: str,
    text: str,
    max_chars: int,
    overlap: int,
) -> list[DocumentChunk]:
    """Chunk document text and embed every chunk."""
    chunks: list[DocumentChunk] = []
    for idx, piece in enumerate(chunk_text(text, max_chars, overlap), start=1):
        chunks.append(
            DocumentChunk(
                chunk_id=f"{document_id}-{idx}",
                document_id=document_id,
                hotel_id=hotel_id,
                text=piece,
                embedding=tuple(embedder.embed(piece)),
            )
        )
    return chunks
