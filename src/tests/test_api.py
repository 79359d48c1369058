from __future__ import annotations

from dataclasses import dataclass, field

import httpx
import pytest

from src.app.dependencies import (
    get_analytics_store,
    get_embedder,
    get_hotel_store,
    get_orchestrator,
    get_vector_store,
    reset_caches,
)
from src.app.main import app
from src.rag.context import ContextAssembler
from src.rag.fallback import FallbackResponder
from src.rag.orchestrator import ChatOrchestrator
from src.rag.types import GenerationResult
from src.storage.hotels import ChatLogWriteError

pytestmark = pytest.mark.anyio

POOL_TEXT = "The rooftop pool is open from 9am to 9pm every day."


@dataclass
class FakeGenerator:
    text: str = "The rooftop pool is open from 9am to 9pm."
    calls: list[str] = field(default_factory=list)

    async def generate(self, system_prompt: str, user_content: str) -> GenerationResult:
        self.calls.append(user_content)
        return GenerationResult(text=self.text, finish_reason="stop")


class UnwritableLogStore:
    def __init__(self, inner) -> None:
        self.inner = inner

    def get_active_hotel(self, hotel_id):
        return self.inner.get_active_hotel(hotel_id)

    def list_active_faqs(self, hotel_id, limit=None):
        return self.inner.list_active_faqs(hotel_id, limit=limit)

    def get_hotel_phone(self, hotel_id):
        return self.inner.get_hotel_phone(hotel_id)

    def record_chat_log(self, record):
        raise ChatLogWriteError("OperationalError")


@pytest.fixture
def seeded(monkeypatch, db_uri, hotel_id):
    monkeypatch.setenv("CONCIERGE_DB_URI", db_uri)
    reset_caches()
    yield hotel_id
    app.dependency_overrides.clear()
    reset_caches()


def get_client() -> httpx.AsyncClient:
    transport = httpx.ASGITransport(app=app)
    return httpx.AsyncClient(transport=transport, base_url="http://test")


def ai_orchestrator(store, generator) -> ChatOrchestrator:
    return ChatOrchestrator(
        store=store,
        assembler=ContextAssembler(hotels=store, embedder=get_embedder(), vector_store=get_vector_store()),
        fallback=FallbackResponder(source=store),
        generator=generator,
        analytics=get_analytics_store(),
    )


async def test_health_endpoint() -> None:
    async with get_client() as client:
        response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["X-Request-ID"]


async def test_chat_without_llm_uses_fallback(seeded) -> None:
    async with get_client() as client:
        response = await client.post(
            "/chat/message",
            json={"hotelId": seeded, "question": "What time is breakfast?", "language": "en"},
        )
        assert response.status_code == 200
        payload = response.json()
        history = await client.get(f"/chat/history/{payload['sessionId']}", params={"hotelId": seeded})

    assert payload["success"] is True
    assert payload["answer"]
    assert payload["confidence"] in (0.6, 0.3)
    assert payload["sessionId"].startswith("guest-")
    entries = history.json()["history"]
    assert len(entries) == 1
    assert entries[0]["question"] == "What time is breakfast?"
    assert entries[0]["answer"] == payload["answer"]
    assert entries[0]["aiConfidence"] == pytest.approx(payload["confidence"])
    assert entries[0]["wasAiResponse"] is False


async def test_chat_ai_path_uses_ingested_documents(seeded) -> None:
    store = get_hotel_store()
    get_vector_store().add_document(seeded, "pool", POOL_TEXT, 1000, 100)
    generator = FakeGenerator()
    app.dependency_overrides[get_orchestrator] = lambda: ai_orchestrator(store, generator)

    async with get_client() as client:
        response = await client.post(
            "/chat/message",
            json={"hotelId": seeded, "question": POOL_TEXT, "sessionId": "guest-7"},
        )

    assert response.status_code == 200
    payload = response.json()
    assert payload == {
        "success": True,
        "answer": "The rooftop pool is open from 9am to 9pm.",
        "confidence": 0.9,
        "escalated": False,
        "sessionId": "guest-7",
    }
    assert f"Additional Context from Documents:\n{POOL_TEXT}" in generator.calls[0]
    assert len(store.chat_history("guest-7", seeded)) == 1


async def test_chat_requires_hotel_and_question(seeded) -> None:
    async with get_client() as client:
        missing_question = await client.post("/chat/message", json={"hotelId": seeded})
        missing_hotel = await client.post("/chat/message", json={"question": "Hello?"})

    assert missing_question.status_code == 400
    assert missing_question.json()["detail"] == "Hotel ID and question are required"
    assert missing_hotel.status_code == 400


async def test_chat_unknown_hotel(seeded) -> None:
    async with get_client() as client:
        response = await client.post("/chat/message", json={"hotelId": 999, "question": "Hello?"})

    assert response.status_code == 404
    assert response.json()["detail"] == "Hotel not found"
    assert get_hotel_store().recent_chat_logs(999) == []


async def test_chat_log_failure_is_reported(seeded) -> None:
    store = UnwritableLogStore(get_hotel_store())
    app.dependency_overrides[get_orchestrator] = lambda: ai_orchestrator(store, FakeGenerator())

    async with get_client() as client:
        response = await client.post("/chat/message", json={"hotelId": seeded, "question": "Where is the gym?"})

    assert response.status_code == 500
    assert response.json()["detail"] == "Unable to record conversation"


async def test_chat_history_requires_hotel(seeded) -> None:
    async with get_client() as client:
        response = await client.get("/chat/history/guest-1")

    assert response.status_code == 400


async def test_guest_hotel_hides_wifi_password(seeded) -> None:
    async with get_client() as client:
        response = await client.get("/guest/hotel/seaside")
        missing = await client.get("/guest/hotel/nowhere")

    assert response.status_code == 200
    hotel = response.json()["hotel"]
    assert hotel["name"] == "Seaside Inn"
    assert hotel["wifiSsid"] == "Seaside-Guest"
    assert hotel["checkInTime"] == "15:00"
    assert "wifiPassword" not in hotel
    assert "harbour-secret" not in response.text
    assert missing.status_code == 404
    assert get_analytics_store().count_events(seeded, "hotel_page_viewed") == 1


async def test_guest_guide_and_faqs(seeded) -> None:
    async with get_client() as client:
        guide = await client.get(f"/guest/guide/{seeded}")
        faqs = await client.get(f"/faqs/hotel/{seeded}")

    assert [section["title"] for section in guide.json()["sections"]] == ["WiFi", "Dining"]
    assert [faq["question"] for faq in faqs.json()["faqs"]] == [
        "What is the WiFi password?",
        "What time is breakfast served?",
    ]
    assert get_analytics_store().count_events(seeded, "guide_viewed") == 1


async def test_metrics_count_answers(seeded) -> None:
    async with get_client() as client:
        await client.post("/chat/message", json={"hotelId": seeded, "question": "Do you allow pets"})
        response = await client.get("/metrics")

    assert response.status_code == 200
    assert "concierge_answers_total{" in response.text
    assert 'path="generic_fallback"' in response.text
    assert "http_requests_total" in response.text


async def test_misconfigured_embedder_disables_retrieval_only(seeded, monkeypatch) -> None:
    monkeypatch.setenv("EMBEDDING_PROVIDER", "openai")
    reset_caches()

    async with get_client() as client:
        response = await client.post("/chat/message", json={"hotelId": seeded, "question": "Do you allow pets"})

    assert response.status_code == 200
    assert response.json()["confidence"] == 0.3
    assert get_embedder() is None
    assert get_vector_store() is None
