from __future__ import annotations

"""Chat orchestration: answer a guest question and record the exchange."""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Protocol

from src.rag.context import ContextAssembler, HotelNotFoundError, HotelSource
from src.rag.fallback import FallbackResponder
from src.rag.llm import AnswerGenerator, resolve_answer_text, system_prompt, user_content
from src.rag.policy import apply_policy
from src.rag.types import (
    ChatLogRecord,
    ChatReply,
    PipelineFailure,
    PipelineOutcome,
    PipelineSuccess,
)
from src.storage.analytics import AnalyticsEvent, AnalyticsSink

logger = logging.getLogger(__name__)

PATH_AI = "ai"
PATH_KEYWORD_FALLBACK = "keyword_fallback"
PATH_GENERIC_FALLBACK = "generic_fallback"


class InvalidChatRequest(ValueError):
    """Raised when the hotel ID or question is missing."""
    pass


class ChatStore(HotelSource, Protocol):
    def record_chat_log(self, record: ChatLogRecord) -> int:
        raise NotImplementedError


def new_session_id() -> str:
    return f"guest-{int(time.time() * 1000)}"


@dataclass
class ChatOrchestrator:
    """Sequence context assembly, generation, scoring and fallback for one question.

    Input errors and unknown hotels raise before anything is recorded. Every
    answered request writes exactly one chat log row; a failed write raises
    ``ChatLogWriteError``. Analytics events are best effort.
    """
    store: ChatStore
    assembler: ContextAssembler
    fallback: FallbackResponder
    generator: AnswerGenerator | None = None
    analytics: AnalyticsSink | None = None
    generation_timeout: float = 30.0

    async def handle(
        self,
        hotel_id: int | None,
        question: str | None,
        language: str = "en",
        session_id: str | None = None,
    ) -> ChatReply:
        if not hotel_id or not question or not question.strip():
            raise InvalidChatRequest("Hotel ID and question are required")
        if self.store.get_active_hotel(hotel_id) is None:
            raise HotelNotFoundError(f"Hotel {hotel_id} not found")
        language = language or "en"

        outcome = await self.run_pipeline(hotel_id, question, language)
        if isinstance(outcome, PipelineSuccess):
            payload = outcome.payload
            path = PATH_AI
        else:
            logger.warning(
                "pipeline_failed",
                extra={
                    "hotel_id": hotel_id,
                    "category": outcome.category,
                    "detail": outcome.detail,
                },
            )
            keyword = self.fallback.keyword_answer(hotel_id, question)
            if keyword is not None:
                payload = keyword
                path = PATH_KEYWORD_FALLBACK
            else:
                payload = self.fallback.generic(hotel_id)
                path = PATH_GENERIC_FALLBACK

        session = session_id or new_session_id()
        self.store.record_chat_log(
            ChatLogRecord(
                hotel_id=hotel_id,
                session_id=session,
                question=question,
                answer=payload.answer,
                confidence=payload.confidence,
                was_ai_response=payload.was_ai_response,
                escalated=payload.escalated,
                language=language,
            )
        )
        if self.analytics is not None:
            self.analytics.track(
                AnalyticsEvent(
                    hotel_id=hotel_id,
                    event_type="chat_message",
                    session_id=session,
                    data={
                        "session_id": session,
                        "question_length": len(question),
                        "ai_confidence": payload.confidence,
                        "was_ai_response": payload.was_ai_response,
                        "escalated": payload.escalated,
                    },
                )
            )
        logger.info(
            "chat_answered",
            extra={
                "hotel_id": hotel_id,
                "path": path,
                "confidence": payload.confidence,
                "escalated": payload.escalated,
            },
        )
        return ChatReply(payload=payload, session_id=session, path=path)

    async def run_pipeline(self, hotel_id: int, question: str, language: str) -> PipelineOutcome:
        """Run the primary answer path, reporting the failing stage instead of raising."""
        try:
            context = await self.assembler.assemble(hotel_id, question, language)
        except Exception as exc:
            return PipelineFailure(category="context", detail=type(exc).__name__)
        if self.generator is None:
            return PipelineFailure(category="generator_unavailable")
        try:
            result = await asyncio.wait_for(
                self.generator.generate(system_prompt(language), user_content(context.text, question)),
                timeout=self.generation_timeout,
            )
        except Exception as exc:
            return PipelineFailure(category="generation", detail=type(exc).__name__)
        payload = apply_policy(
            resolve_answer_text(result),
            result.finish_reason,
            question,
            context.hotel.phone,
        )
        return PipelineSuccess(payload=payload)
