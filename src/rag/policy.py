from __future__ import annotations

"""Confidence scoring and escalation rules for generated answers.

Confidence is a coarse two-tier heuristic on the completion's finish reason,
not a calibrated probability.
"""

from src.rag.types import AnswerPayload

NATURAL_STOP_CONFIDENCE = 0.9
TRUNCATED_CONFIDENCE = 0.7
MIN_CONFIDENCE = 0.5
MAX_CONFIDENCE = 0.95
ESCALATION_THRESHOLD = 0.7
ESCALATION_KEYWORDS = ("complaint", "problem", "issue")

_NATURAL_STOP_REASONS = {"stop"}


def derive_confidence(finish_reason: str | None) -> float:
    """Map a finish reason to a clamped confidence score."""
    reason = (finish_reason or "").strip().lower()
    raw = NATURAL_STOP_CONFIDENCE if reason in _NATURAL_STOP_REASONS else TRUNCATED_CONFIDENCE
    return min(MAX_CONFIDENCE, max(MIN_CONFIDENCE, raw))


def should_escalate(confidence: float, question: str) -> bool:
    """Escalate low-confidence answers and questions that mention trouble."""
    if confidence < ESCALATION_THRESHOLD:
        return True
    lowered = question.lower()
    return any(keyword in lowered for keyword in ESCALATION_KEYWORDS)


def escalation_suffix(phone: str | None) -> str:
    contact = phone or "the reception"
    return f"\n\nIf you need further assistance, please contact our front desk at {contact}."


def apply_policy(answer: str, finish_reason: str | None, question: str, phone: str | None) -> AnswerPayload:
    """Build the AI answer payload, appending a front-desk pointer when escalating."""
    confidence = derive_confidence(finish_reason)
    escalated = should_escalate(confidence, question)
    if escalated:
        answer = f"{answer}{escalation_suffix(phone)}"
    return AnswerPayload(
        answer=answer,
        confidence=confidence,
        was_ai_response=True,
        escalated=escalated,
    )
