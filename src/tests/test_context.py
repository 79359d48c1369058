from __future__ import annotations

import time

import pytest

from src.rag.context import ContextAssembler, HotelNotFoundError, format_context
from src.rag.embeddings import EmbeddingError, HashEmbedder
from src.rag.types import FAQEntry, HotelProfile, SimilarityCandidate
from src.vectorstore.inmemory import InMemoryVectorStore

pytestmark = pytest.mark.anyio

POOL_TEXT = "The rooftop pool is open from 9am to 9pm every day."


class FailingEmbedder:
    dimension = 256

    def embed(self, text: str) -> list[float]:
        raise EmbeddingError("APIConnectionError")


class SlowEmbedder:
    dimension = 256

    def embed(self, text: str) -> list[float]:
        time.sleep(0.5)
        return HashEmbedder().embed(text)


def test_format_context_defaults_and_sections() -> None:
    hotel = HotelProfile(id=1, name="Seaside Inn", phone="+1 555 0100")
    faqs = [FAQEntry(id=1, hotel_id=1, question="Pets?", answer="Dogs welcome.")]

    text = format_context(hotel, faqs, [])

    assert text.startswith("Hotel Information:\n- Name: Seaside Inn")
    assert "- Address: N/A" in text
    assert "- Phone: +1 555 0100" in text
    assert "- Breakfast: N/A - N/A" in text
    assert "Frequently Asked Questions:\nQ: Pets?\nA: Dogs welcome." in text
    assert "Additional Context from Documents:" not in text

    with_docs = format_context(hotel, faqs, [SimilarityCandidate(chunk_id="a-1", text=POOL_TEXT, score=0.9)])
    assert with_docs.endswith(f"Additional Context from Documents:\n{POOL_TEXT}")


async def test_assemble_includes_relevant_documents_only(hotel_store, hotel_id) -> None:
    embedder = HashEmbedder()
    vector_store = InMemoryVectorStore(embedder=embedder)
    vector_store.add_document(hotel_id, "pool", POOL_TEXT, 1000, 100)
    vector_store.add_document(hotel_id, "parking", "Valet parking costs twenty dollars nightly.", 1000, 100)
    assembler = ContextAssembler(hotels=hotel_store, embedder=embedder, vector_store=vector_store)

    context = await assembler.assemble(hotel_id, POOL_TEXT, "en")

    assert [candidate.chunk_id for candidate in context.retrieved] == ["pool-1"]
    assert POOL_TEXT in context.text
    assert "Valet parking" not in context.text
    assert len(context.faqs) == 2
    assert "harbour-secret" not in context.text


async def test_retrieval_failure_degrades_to_facts_only(hotel_store, hotel_id) -> None:
    vector_store = InMemoryVectorStore(embedder=HashEmbedder())
    vector_store.add_document(hotel_id, "pool", POOL_TEXT, 1000, 100)
    assembler = ContextAssembler(hotels=hotel_store, embedder=FailingEmbedder(), vector_store=vector_store)

    context = await assembler.assemble(hotel_id, "When does the pool open?", "en")

    assert context.retrieved == []
    assert "Hotel Information:" in context.text
    assert "Additional Context from Documents:" not in context.text


async def test_assemble_unknown_hotel(hotel_store) -> None:
    assembler = ContextAssembler(hotels=hotel_store)

    with pytest.raises(HotelNotFoundError):
        await assembler.assemble(999, "Hello?", "en")


async def test_retrieval_timeout_degrades_to_facts_only(hotel_store, hotel_id) -> None:
    vector_store = InMemoryVectorStore(embedder=HashEmbedder())
    vector_store.add_document(hotel_id, "pool", POOL_TEXT, 1000, 100)
    assembler = ContextAssembler(
        hotels=hotel_store,
        embedder=SlowEmbedder(),
        vector_store=vector_store,
        retrieval_timeout=0.05,
    )

    started = time.monotonic()
    context = await assembler.assemble(hotel_id, POOL_TEXT, "en")

    assert time.monotonic() - started < 0.4
    assert context.retrieved == []
    assert POOL_TEXT not in context.text
    assert context.text.startswith("Hotel Information:")
