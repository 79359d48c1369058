from __future__ import annotations

"""Fallback responder tests."""

from src.rag.fallback import FallbackResponder, generic_answer, match_faq
from src.rag.types import FAQEntry

FAQS = [
    FAQEntry(id=1, hotel_id=1, question="What is the WiFi password?", answer="It is on your key card."),
    FAQEntry(id=2, hotel_id=1, question="What time is breakfast served?", answer="From 7 to 10."),
]


class StaticSource:
    def __init__(self, faqs: list[FAQEntry], phone: str | None) -> None:
        self.faqs = faqs
        self.phone = phone

    def list_active_faqs(self, hotel_id: int, limit: int | None = None) -> list[FAQEntry]:
        return self.faqs

    def get_hotel_phone(self, hotel_id: int) -> str | None:
        return self.phone


def test_match_faq_needs_two_tokens() -> None:
    assert match_faq("wifi", FAQS) is None
    assert match_faq("wifi password", FAQS).id == 1


def test_match_faq_first_match_wins() -> None:
    # Both FAQs share "what" and "is"; storage order decides.
    assert match_faq("what is served", FAQS).id == 1


def test_keyword_answer_for_wifi_question() -> None:
    responder = FallbackResponder(source=StaticSource(FAQS, "+1 555 0100"))

    payload = responder.respond(1, "What's the wifi password please")

    assert payload.answer == "It is on your key card."
    assert payload.confidence == 0.6
    assert payload.was_ai_response is False
    assert payload.escalated is False


def test_generic_answer_includes_phone() -> None:
    responder = FallbackResponder(source=StaticSource(FAQS, "+1 555 0100"))

    payload = responder.respond(1, "Do you allow pets")

    assert payload.confidence == 0.3
    assert payload.was_ai_response is False
    assert payload.escalated is True
    assert "+1 555 0100" in payload.answer


def test_generic_answer_without_phone() -> None:
    assert "the front desk" in generic_answer(None)
