from __future__ import annotations

"""Assemble hotel facts, FAQs and retrieved document chunks into one context block."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol

from src.rag.embeddings import EmbeddingProvider
from src.rag.ranker import rank, select_top
from src.rag.types import FAQEntry, HotelProfile, SimilarityCandidate
from src.vectorstore.inmemory import VectorStore

logger = logging.getLogger(__name__)

MAX_FAQS = 20
MAX_DOCUMENTS = 10
SIMILARITY_THRESHOLD = 0.7
MAX_RETRIEVED_CHUNKS = 3


class HotelNotFoundError(RuntimeError):
    """Raised when a hotel does not exist or is inactive."""
    pass


class HotelSource(Protocol):
    def get_active_hotel(self, hotel_id: int) -> HotelProfile | None:
        raise NotImplementedError

    def list_active_faqs(self, hotel_id: int, limit: int | None = None) -> list[FAQEntry]:
        raise NotImplementedError


@dataclass(frozen=True)
class AssembledContext:
    """Context block plus the pieces it was built from."""
    hotel: HotelProfile
    text: str
    faqs: list[FAQEntry] = field(default_factory=list)
    retrieved: list[SimilarityCandidate] = field(default_factory=list)


def _or_na(value: str | None) -> str:
    return value or "N/A"


def format_context(
    hotel: HotelProfile, faqs: list[FAQEntry], retrieved: list[SimilarityCandidate]
) -> str:
    """Render the prompt context block."""
    lines = [
        "Hotel Information:",
        f"- Name: {hotel.name}",
        f"- Description: {_or_na(hotel.description)}",
        f"- Address: {_or_na(hotel.address)}",
        f"- Phone: {_or_na(hotel.phone)}",
        f"- Email: {_or_na(hotel.email)}",
        f"- WiFi: {_or_na(hotel.wifi_ssid)}",
        f"- Check-in: {_or_na(hotel.check_in_time)}",
        f"- Check-out: {_or_na(hotel.check_out_time)}",
        f"- Breakfast: {_or_na(hotel.breakfast_time_start)} - {_or_na(hotel.breakfast_time_end)}",
        f"- Emergency: {_or_na(hotel.emergency_contact)}",
        "",
        "Frequently Asked Questions:",
        "\n\n".join(f"Q: {faq.question}\nA: {faq.answer}" for faq in faqs),
    ]
    if retrieved:
        lines.extend(
            [
                "",
                "Additional Context from Documents:",
                "\n\n".join(candidate.text for candidate in retrieved),
            ]
        )
    return "\n".join(lines).strip()


@dataclass
class ContextAssembler:
    """Collect everything the generator needs to answer a guest question."""
    hotels: HotelSource
    embedder: EmbeddingProvider | None = None
    vector_store: VectorStore | None = None
    retrieval_timeout: float = 10.0

    async def assemble(self, hotel_id: int, question: str, language: str = "en") -> AssembledContext:
        hotel = self.hotels.get_active_hotel(hotel_id)
        if hotel is None:
            raise HotelNotFoundError(f"Hotel {hotel_id} not found")
        faqs = self.hotels.list_active_faqs(hotel_id, limit=MAX_FAQS)
        retrieved = await self.retrieve(hotel_id, question)
        logger.info(
            "context_assembled",
            extra={
                "hotel_id": hotel_id,
                "language": language,
                "faqs": len(faqs),
                "retrieved": len(retrieved),
            },
        )
        return AssembledContext(
            hotel=hotel,
            text=format_context(hotel, faqs, retrieved),
            faqs=faqs,
            retrieved=retrieved,
        )

    async def retrieve(self, hotel_id: int, question: str) -> list[SimilarityCandidate]:
        """Return the best matching chunks; any retrieval failure yields an empty list."""
        if self.embedder is None or self.vector_store is None:
            return []
        try:
            query_vector = await asyncio.wait_for(
                asyncio.to_thread(self.embedder.embed, question),
                timeout=self.retrieval_timeout,
            )
            records = await asyncio.wait_for(
                asyncio.to_thread(self.vector_store.fetch_embeddings, hotel_id, MAX_DOCUMENTS),
                timeout=self.retrieval_timeout,
            )
        except Exception as exc:
            logger.warning(
                "retrieval_degraded",
                extra={"hotel_id": hotel_id, "detail": type(exc).__name__},
            )
            return []
        chunks = {chunk.chunk_id: chunk for record in records for chunk in record.chunks}
        ranked = rank(query_vector, ((chunk_id, chunk.embedding) for chunk_id, chunk in chunks.items()))
        candidates = [
            SimilarityCandidate(chunk_id=item.item_id, text=chunks[item.item_id].text, score=item.score)
            for item in ranked
        ]
        return select_top(candidates, threshold=SIMILARITY_THRESHOLD, limit=MAX_RETRIEVED_CHUNKS)
