from __future__ import annotations

"""Core data types for hotel facts, retrieval and answers."""

from dataclasses import dataclass
from datetime import datetime
from typing import Union


@dataclass(frozen=True)
class HotelProfile:
    """Guest-facing facts about a hotel."""
    id: int
    name: str
    slug: str = ""
    description: str | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    wifi_ssid: str | None = None
    check_in_time: str | None = None
    check_out_time: str | None = None
    breakfast_time_start: str | None = None
    breakfast_time_end: str | None = None
    emergency_contact: str | None = None
    is_active: bool = True


@dataclass(frozen=True)
class FAQEntry:
    """Question and answer pair scoped to one hotel."""
    id: int
    hotel_id: int
    question: str
    answer: str
    category: str | None = None
    order_index: int = 0
    is_active: bool = True


@dataclass(frozen=True)
class DocumentChunk:
    """Ingested document text with its embedding vector."""
    chunk_id: str
    document_id: str
    hotel_id: int
    text: str
    embedding: tuple[float, ...] = ()


@dataclass(frozen=True)
class DocumentEmbeddingRecord:
    """All stored chunks of a single document."""
    document_id: str
    hotel_id: int
    chunks: tuple[DocumentChunk, ...] = ()


@dataclass(frozen=True)
class SimilarityCandidate:
    """Chunk text scored against the guest question."""
    chunk_id: str
    text: str
    score: float


@dataclass(frozen=True)
class GenerationResult:
    """Raw completion text and the reason generation stopped."""
    text: str
    finish_reason: str | None = None


@dataclass(frozen=True)
class AnswerPayload:
    """Final answer returned to the guest and written to the chat log."""
    answer: str
    confidence: float
    was_ai_response: bool
    escalated: bool


@dataclass(frozen=True)
class ChatLogRecord:
    """Persisted question/answer exchange."""
    hotel_id: int
    session_id: str
    question: str
    answer: str
    confidence: float
    was_ai_response: bool
    escalated: bool
    language: str = "en"
    created_at: datetime | None = None


@dataclass(frozen=True)
class PipelineSuccess:
    """Primary pipeline produced an answer."""
    payload: AnswerPayload


@dataclass(frozen=True)
class PipelineFailure:
    """Primary pipeline failed; the category names the stage."""
    category: str
    detail: str = ""


PipelineOutcome = Union[PipelineSuccess, PipelineFailure]


@dataclass(frozen=True)
class ChatReply:
    """Answer for one chat request with the path that produced it."""
    payload: AnswerPayload
    session_id: str
    path: str
