from __future__ import annotations

"""Degraded answers used when the generation pipeline fails."""

import logging
from dataclasses import dataclass
from typing import Protocol, Sequence

from src.rag.types import AnswerPayload, FAQEntry

logger = logging.getLogger(__name__)

KEYWORD_MATCH_CONFIDENCE = 0.6
GENERIC_CONFIDENCE = 0.3
MIN_MATCHING_TOKENS = 2


class FallbackSource(Protocol):
    def list_active_faqs(self, hotel_id: int, limit: int | None = None) -> list[FAQEntry]:
        raise NotImplementedError

    def get_hotel_phone(self, hotel_id: int) -> str | None:
        raise NotImplementedError


def match_faq(question: str, faqs: Sequence[FAQEntry]) -> FAQEntry | None:
    """Return the first FAQ whose question contains at least two question tokens."""
    tokens = question.lower().split()
    for faq in faqs:
        faq_question = faq.question.lower()
        matches = sum(1 for token in tokens if token in faq_question)
        if matches >= MIN_MATCHING_TOKENS:
            return faq
    return None


def generic_answer(phone: str | None) -> str:
    contact = phone or "the front desk"
    return (
        "I apologize, but I couldn't find a specific answer to your question. "
        f"Please contact {contact} for assistance."
    )


@dataclass
class FallbackResponder:
    """Keyword FAQ match first, then a contact-the-hotel apology."""
    source: FallbackSource

    def keyword_answer(self, hotel_id: int, question: str) -> AnswerPayload | None:
        faq = match_faq(question, self.source.list_active_faqs(hotel_id))
        if faq is None:
            return None
        logger.info("fallback_faq_matched", extra={"hotel_id": hotel_id, "faq_id": faq.id})
        return AnswerPayload(
            answer=faq.answer,
            confidence=KEYWORD_MATCH_CONFIDENCE,
            was_ai_response=False,
            escalated=False,
        )

    def generic(self, hotel_id: int) -> AnswerPayload:
        return AnswerPayload(
            answer=generic_answer(self.source.get_hotel_phone(hotel_id)),
            confidence=GENERIC_CONFIDENCE,
            was_ai_response=False,
            escalated=True,
        )

    def respond(self, hotel_id: int, question: str) -> AnswerPayload:
        return self.keyword_answer(hotel_id, question) or self.generic(hotel_id)
