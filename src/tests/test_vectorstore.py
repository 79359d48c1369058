from __future__ import annotations

import sqlite3

import pytest

from src.rag.embeddings import HashEmbedder
from src.vectorstore.inmemory import InMemoryVectorStore
from src.vectorstore.sql import SQLVectorStore


@pytest.fixture(params=["memory", "sql"])
def store(request, tmp_path):
    embedder = HashEmbedder(dimension=64)
    if request.param == "memory":
        return InMemoryVectorStore(embedder=embedder)
    return SQLVectorStore(embedder=embedder, connection_uri=f"sqlite:///{tmp_path / 'chunks.db'}")


def test_add_and_fetch_scoped_by_hotel(store) -> None:
    assert store.add_document(1, "pool", "The rooftop pool opens at 9am.", 1000, 100) == 1
    store.add_document(2, "spa", "The spa is in the basement.", 1000, 100)

    records = store.fetch_embeddings(1)

    assert [record.document_id for record in records] == ["pool"]
    chunk = records[0].chunks[0]
    assert chunk.chunk_id == "pool-1"
    assert chunk.text == "The rooftop pool opens at 9am."
    assert len(chunk.embedding) == 64


def test_add_replaces_previous_version(store) -> None:
    store.add_document(1, "menu", "Old menu. " * 50, 100, 10)
    store.add_document(1, "menu", "New menu.", 100, 10)

    records = store.fetch_embeddings(1)

    assert len(records) == 1
    assert [chunk.text for chunk in records[0].chunks] == ["New menu."]


def test_fetch_limit_counts_documents(store) -> None:
    for idx in range(12):
        store.add_document(1, f"doc-{idx:02d}", f"Document number {idx}", 1000, 100)

    assert len(store.fetch_embeddings(1, limit=10)) == 10


def test_delete_document(store) -> None:
    store.add_document(1, "pool", "The rooftop pool opens at 9am.", 1000, 100)

    assert store.delete_document(2, "pool") == 0
    assert store.delete_document(1, "pool") == 1
    assert store.fetch_embeddings(1) == []


def test_empty_document_is_not_stored(store) -> None:
    assert store.add_document(1, "blank", "   ", 1000, 100) == 0
    assert store.fetch_embeddings(1) == []


def test_sql_store_tolerates_corrupt_embedding(tmp_path) -> None:
    db_path = tmp_path / "chunks.db"
    store = SQLVectorStore(embedder=HashEmbedder(dimension=8), connection_uri=f"sqlite:///{db_path}")
    store.add_document(1, "pool", "The rooftop pool opens at 9am.", 1000, 100)

    conn = sqlite3.connect(db_path)
    try:
        conn.execute("UPDATE document_chunks SET embedding = 'not-json'")
        conn.commit()
    finally:
        conn.close()

    records = store.fetch_embeddings(1)
    assert records[0].chunks[0].embedding == ()


def test_same_document_id_in_two_hotels(store) -> None:
    store.add_document(1, "menu", "Hotel one serves pancakes.", 1000, 100)
    store.add_document(2, "menu", "Hotel two serves waffles.", 1000, 100)

    hotel_one = store.fetch_embeddings(1)
    hotel_two = store.fetch_embeddings(2)

    assert [record.document_id for record in hotel_one] == ["menu"]
    assert hotel_one[0].chunks[0].text == "Hotel one serves pancakes."
    assert hotel_two[0].chunks[0].text == "Hotel two serves waffles."

    assert store.delete_document(2, "menu") == 1
    assert [record.document_id for record in store.fetch_embeddings(1)] == ["menu"]


def test_list_documents_counts_chunks(store) -> None:
    store.add_document(1, "menu", "Breakfast menu. " * 30, 100, 10)
    store.add_document(1, "pool", "The rooftop pool opens at 9am.", 1000, 100)
    store.add_document(2, "spa", "The spa is in the basement.", 1000, 100)

    documents = {summary.document_id: summary.chunk_count for summary in store.list_documents(1)}

    assert set(documents) == {"menu", "pool"}
    assert documents["menu"] > 1
    assert documents["pool"] == 1
