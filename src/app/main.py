from __future__ import annotations

"""FastAPI application entrypoint for the hotel concierge service."""

import logging
import uuid
from datetime import datetime

from fastapi import Depends, FastAPI, HTTPException, Query, Request

from src.app.dependencies import (
    get_analytics_store,
    get_hotel_store,
    get_orchestrator,
    get_vector_store,
)
from src.app.metrics import metrics_middleware, metrics_response, record_answer
from src.app.schemas import (
    ChatHistoryResponse,
    ChatLogEntry,
    ChatLogsResponse,
    ChatMessageRequest,
    ChatMessageResponse,
    DashboardAnalytics,
    DashboardResponse,
    DeleteResponse,
    DocumentDeleteResponse,
    DocumentIngestRequest,
    DocumentIngestResponse,
    DocumentListResponse,
    DocumentSummaryOut,
    FAQCreateRequest,
    FAQCreateResponse,
    FAQListResponse,
    FAQOut,
    FAQUpdateRequest,
    GuideResponse,
    GuideSectionCreateRequest,
    GuideSectionOut,
    GuideSectionResponse,
    GuideSectionUpdateRequest,
    HotelAdminInfo,
    HotelAdminResponse,
    HotelCreateRequest,
    HotelInfo,
    HotelResponse,
    HotelUpdateRequest,
)
from src.app.security import (
    ADMIN_ROLES,
    STAFF_ROLES,
    AuthContext,
    ensure_hotel_access,
    require_api_key,
    require_roles,
    resolve_hotel_id,
)
from src.app.settings import settings
from src.rag.context import HotelNotFoundError
from src.rag.orchestrator import ChatOrchestrator, InvalidChatRequest
from src.rag.types import ChatLogRecord, FAQEntry
from src.storage.analytics import AnalyticsEvent, AnalyticsStore
from src.storage.hotels import (
    ChatLogWriteError,
    DuplicateHotelSlugError,
    GuideSection,
    HotelStore,
    HotelStoreError,
)
from src.vectorstore.inmemory import VectorStore, VectorStoreError

logger = logging.getLogger(__name__)

app = FastAPI(title="Hotel Concierge", version="0.1.0")


def _configure_logging() -> None:
    """Configure root logging using environment settings."""
    level_name = settings.log_level.strip().upper()
    level = getattr(logging, level_name, logging.INFO)
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
    logger.setLevel(level)


_configure_logging()


def _safe_error_message(exc: Exception) -> str:
    """Return a safe error type name for logs and responses."""
    return type(exc).__name__


def _log_entry(record: ChatLogRecord) -> ChatLogEntry:
    return ChatLogEntry(
        session_id=record.session_id,
        question=record.question,
        answer=record.answer,
        ai_confidence=record.confidence,
        was_ai_response=record.was_ai_response,
        escalated_to_staff=record.escalated,
        language=record.language,
        created_at=record.created_at,
    )


def _faq_out(faq: FAQEntry) -> FAQOut:
    return FAQOut(
        id=faq.id,
        question=faq.question,
        answer=faq.answer,
        category=faq.category,
        order_index=faq.order_index,
        is_active=faq.is_active,
    )


def _section_out(section: GuideSection) -> GuideSectionOut:
    return GuideSectionOut(
        id=section.id,
        title=section.title,
        icon=section.icon,
        content=section.content,
        order_index=section.order_index,
        section_type=section.section_type,
        is_enabled=section.is_enabled,
    )


def _changed_fields(request: FAQUpdateRequest | GuideSectionUpdateRequest | HotelUpdateRequest) -> dict:
    fields = request.model_dump(exclude_unset=True, exclude_none=True)
    if not fields:
        raise HTTPException(status_code=400, detail="No fields to update")
    return fields


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Attach or create a request ID for traceability."""
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.middleware("http")
async def record_metrics(request: Request, call_next):
    """Capture request metrics before returning the response."""
    return await metrics_middleware(request, call_next)


@app.get("/metrics")
async def metrics():
    """Expose Prometheus-style metrics."""
    return metrics_response()


@app.get("/health")
async def health() -> dict[str, str]:
    """Simple health check for uptime monitoring."""
    return {"status": "ok"}


@app.post("/chat/message", response_model=ChatMessageResponse)
async def chat_message(
    request: ChatMessageRequest,
    http_request: Request,
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
) -> ChatMessageResponse:
    """Answer a guest question for a hotel."""
    request_id = getattr(http_request.state, "request_id", str(uuid.uuid4()))
    try:
        reply = await orchestrator.handle(
            request.hotel_id,
            request.question,
            language=request.language,
            session_id=request.session_id,
        )
    except InvalidChatRequest as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except HotelNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Hotel not found") from exc
    except ChatLogWriteError as exc:
        logger.error(
            "chat_log_write_failed",
            extra={"request_id": request_id, "detail": _safe_error_message(exc)},
        )
        raise HTTPException(status_code=500, detail="Unable to record conversation") from exc
    except HotelStoreError as exc:
        logger.error(
            "hotel_store_failed",
            extra={"request_id": request_id, "detail": _safe_error_message(exc)},
        )
        raise HTTPException(status_code=503, detail="Hotel data unavailable") from exc
    record_answer(reply.path, reply.payload.escalated)
    return ChatMessageResponse(
        answer=reply.payload.answer,
        confidence=reply.payload.confidence,
        escalated=reply.payload.escalated,
        session_id=reply.session_id,
    )


@app.get("/chat/history/{session_id}", response_model=ChatHistoryResponse)
async def chat_history(
    session_id: str,
    hotel_id: int | None = Query(default=None, alias="hotelId"),
    store: HotelStore = Depends(get_hotel_store),
) -> ChatHistoryResponse:
    """Return a guest session's exchanges."""
    if not hotel_id:
        raise HTTPException(status_code=400, detail="Hotel ID is required")
    records = store.chat_history(session_id, hotel_id, limit=50)
    return ChatHistoryResponse(history=[_log_entry(record) for record in records])


@app.get("/guest/hotel/{slug}", response_model=HotelResponse)
async def guest_hotel(
    slug: str,
    store: HotelStore = Depends(get_hotel_store),
    analytics: AnalyticsStore = Depends(get_analytics_store),
) -> HotelResponse:
    """Return public hotel details; the WiFi password is never exposed."""
    hotel = store.get_hotel_by_slug(slug)
    if hotel is None:
        raise HTTPException(status_code=404, detail="Hotel not found")
    analytics.track(AnalyticsEvent(hotel_id=hotel.id, event_type="hotel_page_viewed", data={"slug": slug}))
    return HotelResponse(
        hotel=HotelInfo(
            id=hotel.id,
            name=hotel.name,
            slug=hotel.slug,
            description=hotel.description,
            address=hotel.address,
            phone=hotel.phone,
            email=hotel.email,
            website=hotel.website,
            wifi_ssid=hotel.wifi_ssid,
            check_in_time=hotel.check_in_time,
            check_out_time=hotel.check_out_time,
            breakfast_time_start=hotel.breakfast_time_start,
            breakfast_time_end=hotel.breakfast_time_end,
            emergency_contact=hotel.emergency_contact,
        )
    )


@app.get("/guest/guide/{hotel_id}", response_model=GuideResponse)
async def guest_guide(
    hotel_id: int,
    store: HotelStore = Depends(get_hotel_store),
    analytics: AnalyticsStore = Depends(get_analytics_store),
) -> GuideResponse:
    """Return enabled guide sections in display order."""
    sections = store.list_guide_sections(hotel_id)
    analytics.track(
        AnalyticsEvent(hotel_id=hotel_id, event_type="guide_viewed", data={"section_count": len(sections)})
    )
    return GuideResponse(sections=[_section_out(section) for section in sections])


@app.get("/faqs/hotel/{hotel_id}", response_model=FAQListResponse)
async def hotel_faqs(hotel_id: int, store: HotelStore = Depends(get_hotel_store)) -> FAQListResponse:
    faqs = store.list_active_faqs(hotel_id)
    return FAQListResponse(faqs=[_faq_out(faq) for faq in faqs])


@app.post("/faqs", response_model=FAQCreateResponse, status_code=201)
async def create_faq(
    request: FAQCreateRequest,
    auth: AuthContext = Depends(require_api_key),
    store: HotelStore = Depends(get_hotel_store),
) -> FAQCreateResponse:
    """Add an FAQ to the caller's hotel."""
    require_roles(auth, STAFF_ROLES)
    hotel_id = resolve_hotel_id(auth, request.hotel_id)
    faq = store.create_faq(
        hotel_id,
        question=request.question,
        answer=request.answer,
        category=request.category,
        order_index=request.order_index,
    )
    return FAQCreateResponse(faq=_faq_out(faq))


@app.get("/faqs", response_model=FAQListResponse)
async def list_faqs(
    hotel_id: int | None = Query(default=None, alias="hotelId"),
    auth: AuthContext = Depends(require_api_key),
    store: HotelStore = Depends(get_hotel_store),
) -> FAQListResponse:
    """Staff view of every FAQ, hidden ones included."""
    target = resolve_hotel_id(auth, hotel_id)
    return FAQListResponse(faqs=[_faq_out(faq) for faq in store.list_faqs(target)])


@app.put("/faqs/{faq_id}", response_model=FAQCreateResponse)
async def update_faq(
    faq_id: int,
    request: FAQUpdateRequest,
    auth: AuthContext = Depends(require_api_key),
    store: HotelStore = Depends(get_hotel_store),
) -> FAQCreateResponse:
    require_roles(auth, STAFF_ROLES)
    existing = store.get_faq(faq_id)
    if existing is None:
        raise HTTPException(status_code=404, detail="FAQ not found")
    ensure_hotel_access(auth, existing.hotel_id)
    faq = store.update_faq(faq_id, _changed_fields(request))
    if faq is None:
        raise HTTPException(status_code=404, detail="FAQ not found")
    logger.info("faq_updated", extra={"hotel_id": faq.hotel_id, "faq_id": faq_id})
    return FAQCreateResponse(faq=_faq_out(faq))


@app.delete("/faqs/{faq_id}", response_model=DeleteResponse)
async def delete_faq(
    faq_id: int,
    auth: AuthContext = Depends(require_api_key),
    store: HotelStore = Depends(get_hotel_store),
) -> DeleteResponse:
    require_roles(auth, ADMIN_ROLES)
    existing = store.get_faq(faq_id)
    if existing is None:
        raise HTTPException(status_code=404, detail="FAQ not found")
    ensure_hotel_access(auth, existing.hotel_id)
    store.delete_faq(faq_id)
    logger.info("faq_deleted", extra={"hotel_id": existing.hotel_id, "faq_id": faq_id})
    return DeleteResponse(message="FAQ deleted successfully")


@app.get("/guide-sections", response_model=GuideResponse)
async def list_guide_sections(
    hotel_id: int | None = Query(default=None, alias="hotelId"),
    auth: AuthContext = Depends(require_api_key),
    store: HotelStore = Depends(get_hotel_store),
) -> GuideResponse:
    """Staff view of the guide, disabled sections included."""
    target = resolve_hotel_id(auth, hotel_id)
    sections = store.list_guide_sections(target, include_disabled=True)
    return GuideResponse(sections=[_section_out(section) for section in sections])


@app.post("/guide-sections", response_model=GuideSectionResponse, status_code=201)
async def create_guide_section(
    request: GuideSectionCreateRequest,
    auth: AuthContext = Depends(require_api_key),
    store: HotelStore = Depends(get_hotel_store),
) -> GuideSectionResponse:
    require_roles(auth, STAFF_ROLES)
    hotel_id = resolve_hotel_id(auth, request.hotel_id)
    section_id = store.create_guide_section(
        hotel_id,
        title=request.title,
        content=request.content,
        icon=request.icon,
        order_index=request.order_index,
        section_type=request.section_type,
    )
    section = store.get_guide_section(section_id)
    if section is None:
        raise HTTPException(status_code=404, detail="Section not found")
    logger.info("guide_section_created", extra={"hotel_id": hotel_id, "section_id": section_id})
    return GuideSectionResponse(section=_section_out(section))


@app.put("/guide-sections/{section_id}", response_model=GuideSectionResponse)
async def update_guide_section(
    section_id: int,
    request: GuideSectionUpdateRequest,
    auth: AuthContext = Depends(require_api_key),
    store: HotelStore = Depends(get_hotel_store),
) -> GuideSectionResponse:
    require_roles(auth, STAFF_ROLES)
    existing = store.get_guide_section(section_id)
    if existing is None:
        raise HTTPException(status_code=404, detail="Section not found")
    ensure_hotel_access(auth, existing.hotel_id)
    section = store.update_guide_section(section_id, _changed_fields(request))
    if section is None:
        raise HTTPException(status_code=404, detail="Section not found")
    return GuideSectionResponse(section=_section_out(section))


@app.delete("/guide-sections/{section_id}", response_model=DeleteResponse)
async def delete_guide_section(
    section_id: int,
    auth: AuthContext = Depends(require_api_key),
    store: HotelStore = Depends(get_hotel_store),
) -> DeleteResponse:
    require_roles(auth, ADMIN_ROLES)
    existing = store.get_guide_section(section_id)
    if existing is None:
        raise HTTPException(status_code=404, detail="Section not found")
    ensure_hotel_access(auth, existing.hotel_id)
    store.delete_guide_section(section_id)
    logger.info("guide_section_deleted", extra={"hotel_id": existing.hotel_id, "section_id": section_id})
    return DeleteResponse(message="Section deleted successfully")


@app.get("/hotels/{hotel_id}", response_model=HotelAdminResponse)
async def get_hotel(
    hotel_id: int,
    auth: AuthContext = Depends(require_api_key),
    store: HotelStore = Depends(get_hotel_store),
) -> HotelAdminResponse:
    """Full hotel record for staff, WiFi password included."""
    ensure_hotel_access(auth, hotel_id)
    details = store.get_hotel_details(hotel_id)
    if details is None:
        raise HTTPException(status_code=404, detail="Hotel not found")
    return HotelAdminResponse(hotel=HotelAdminInfo(**details))


@app.put("/hotels/{hotel_id}", response_model=HotelAdminResponse)
async def update_hotel(
    hotel_id: int,
    request: HotelUpdateRequest,
    auth: AuthContext = Depends(require_api_key),
    store: HotelStore = Depends(get_hotel_store),
) -> HotelAdminResponse:
    require_roles(auth, ADMIN_ROLES)
    ensure_hotel_access(auth, hotel_id)
    details = store.update_hotel(hotel_id, _changed_fields(request))
    if details is None:
        raise HTTPException(status_code=404, detail="Hotel not found")
    logger.info("hotel_updated", extra={"hotel_id": hotel_id})
    return HotelAdminResponse(hotel=HotelAdminInfo(**details))


@app.post("/hotels", response_model=HotelAdminResponse, status_code=201)
async def create_hotel(
    request: HotelCreateRequest,
    auth: AuthContext = Depends(require_api_key),
    store: HotelStore = Depends(get_hotel_store),
) -> HotelAdminResponse:
    """Register a new hotel; only super admins may do this."""
    require_roles(auth, {"super_admin"})
    fields = request.model_dump(exclude={"name", "slug"})
    try:
        hotel_id = store.create_hotel(request.name, request.slug, **fields)
    except DuplicateHotelSlugError as exc:
        raise HTTPException(status_code=409, detail="Hotel slug already exists") from exc
    details = store.get_hotel_details(hotel_id)
    if details is None:
        raise HTTPException(status_code=404, detail="Hotel not found")
    logger.info("hotel_created", extra={"hotel_id": hotel_id, "slug": request.slug})
    return HotelAdminResponse(hotel=HotelAdminInfo(**details))


@app.post("/documents", response_model=DocumentIngestResponse)
async def ingest_document(
    request: DocumentIngestRequest,
    http_request: Request,
    auth: AuthContext = Depends(require_api_key),
    store: HotelStore = Depends(get_hotel_store),
    vector_store: VectorStore | None = Depends(get_vector_store),
) -> DocumentIngestResponse:
    """Chunk and embed document text so the concierge can cite it."""
    require_roles(auth, STAFF_ROLES)
    hotel_id = resolve_hotel_id(auth, request.hotel_id)
    if vector_store is None:
        raise HTTPException(status_code=503, detail="Document retrieval is not configured")
    if store.get_active_hotel(hotel_id) is None:
        raise HTTPException(status_code=404, detail="Hotel not found")
    request_id = getattr(http_request.state, "request_id", str(uuid.uuid4()))
    try:
        chunks = vector_store.add_document(
            hotel_id,
            request.document_id,
            request.content,
            max_chars=settings.chunk_size,
            overlap=settings.chunk_overlap,
        )
    except VectorStoreError as exc:
        logger.error(
            "document_ingest_failed",
            extra={"request_id": request_id, "detail": _safe_error_message(exc)},
        )
        raise HTTPException(status_code=503, detail="Document store unavailable") from exc
    if not chunks:
        raise HTTPException(status_code=400, detail="Document has no text")
    logger.info(
        "document_ingested",
        extra={"request_id": request_id, "hotel_id": hotel_id, "chunks": chunks},
    )
    return DocumentIngestResponse(chunks=chunks)


@app.get("/documents", response_model=DocumentListResponse)
async def list_documents(
    hotel_id: int | None = Query(default=None, alias="hotelId"),
    auth: AuthContext = Depends(require_api_key),
    vector_store: VectorStore | None = Depends(get_vector_store),
) -> DocumentListResponse:
    target = resolve_hotel_id(auth, hotel_id)
    if vector_store is None:
        raise HTTPException(status_code=503, detail="Document retrieval is not configured")
    try:
        summaries = vector_store.list_documents(target)
    except VectorStoreError as exc:
        raise HTTPException(status_code=503, detail="Document store unavailable") from exc
    return DocumentListResponse(
        documents=[
            DocumentSummaryOut(document_id=summary.document_id, chunk_count=summary.chunk_count)
            for summary in summaries
        ]
    )


@app.delete("/documents/{document_id}", response_model=DocumentDeleteResponse)
async def delete_document(
    document_id: str,
    hotel_id: int | None = Query(default=None, alias="hotelId"),
    auth: AuthContext = Depends(require_api_key),
    vector_store: VectorStore | None = Depends(get_vector_store),
) -> DocumentDeleteResponse:
    require_roles(auth, ADMIN_ROLES)
    target = resolve_hotel_id(auth, hotel_id)
    if vector_store is None:
        raise HTTPException(status_code=503, detail="Document retrieval is not configured")
    try:
        deleted = vector_store.delete_document(target, document_id)
    except VectorStoreError as exc:
        raise HTTPException(status_code=503, detail="Document store unavailable") from exc
    logger.info("document_deleted", extra={"hotel_id": target, "document_id": document_id, "deleted": deleted})
    return DocumentDeleteResponse(deleted=deleted)


@app.get("/analytics/dashboard", response_model=DashboardResponse)
async def analytics_dashboard(
    hotel_id: int | None = Query(default=None, alias="hotelId"),
    start_date: datetime | None = Query(default=None, alias="startDate"),
    end_date: datetime | None = Query(default=None, alias="endDate"),
    auth: AuthContext = Depends(require_api_key),
    store: HotelStore = Depends(get_hotel_store),
) -> DashboardResponse:
    """Aggregate chat metrics for the staff dashboard."""
    require_roles(auth, STAFF_ROLES)
    target = resolve_hotel_id(auth, hotel_id)
    stats = store.dashboard(target, start=start_date, end=end_date)
    return DashboardResponse(analytics=DashboardAnalytics(**stats.__dict__))


@app.get("/analytics/chat-logs", response_model=ChatLogsResponse)
async def analytics_chat_logs(
    hotel_id: int | None = Query(default=None, alias="hotelId"),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    auth: AuthContext = Depends(require_api_key),
    store: HotelStore = Depends(get_hotel_store),
) -> ChatLogsResponse:
    require_roles(auth, STAFF_ROLES)
    target = resolve_hotel_id(auth, hotel_id)
    records = store.recent_chat_logs(target, limit=limit, offset=offset)
    return ChatLogsResponse(logs=[_log_entry(record) for record in records])
