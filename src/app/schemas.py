from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatMessageRequest(CamelModel):
    # Optional so that missing values reach the handler's 400 response.
    hotel_id: int | None = None
    question: str | None = None
    language: str = "en"
    session_id: str | None = None


class ChatMessageResponse(CamelModel):
    success: bool = True
    answer: str
    confidence: float
    escalated: bool
    session_id: str


class ChatLogEntry(CamelModel):
    session_id: str | None = None
    question: str
    answer: str
    ai_confidence: float | None = None
    was_ai_response: bool
    escalated_to_staff: bool
    language: str | None = None
    created_at: datetime | None = None


class ChatHistoryResponse(CamelModel):
    success: bool = True
    history: list[ChatLogEntry]


class ChatLogsResponse(CamelModel):
    success: bool = True
    logs: list[ChatLogEntry]


class HotelInfo(CamelModel):
    id: int
    name: str
    slug: str
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


class HotelResponse(CamelModel):
    success: bool = True
    hotel: HotelInfo


class GuideSectionOut(CamelModel):
    id: int
    title: str
    icon: str | None = None
    content: str | None = None
    order_index: int = 0
    section_type: str = "custom"
    is_enabled: bool = True


class GuideResponse(CamelModel):
    success: bool = True
    sections: list[GuideSectionOut]


class FAQOut(CamelModel):
    id: int
    question: str
    answer: str
    category: str | None = None
    order_index: int = 0
    is_active: bool = True


class FAQListResponse(CamelModel):
    success: bool = True
    faqs: list[FAQOut]


class FAQCreateRequest(CamelModel):
    question: str = Field(min_length=1)
    answer: str = Field(min_length=1)
    category: str | None = None
    order_index: int = 0
    hotel_id: int | None = None


class FAQCreateResponse(CamelModel):
    success: bool = True
    faq: FAQOut


class DocumentIngestRequest(CamelModel):
    document_id: str = Field(min_length=1)
    content: str = Field(min_length=1)
    hotel_id: int | None = None


class DocumentIngestResponse(CamelModel):
    success: bool = True
    chunks: int


class DashboardAnalytics(CamelModel):
    total_chat_messages: int
    ai_resolution_rate: float
    average_confidence: float
    escalation_rate: float
    top_questions: list[dict[str, Any]]
    daily_activity: list[dict[str, Any]]
    estimated_hours_saved: int


class DashboardResponse(CamelModel):
    success: bool = True
    analytics: DashboardAnalytics


class DocumentDeleteResponse(CamelModel):
    success: bool = True
    deleted: int


class DeleteResponse(CamelModel):
    success: bool = True
    message: str


class FAQUpdateRequest(CamelModel):
    question: str | None = Field(default=None, min_length=1)
    answer: str | None = Field(default=None, min_length=1)
    category: str | None = None
    order_index: int | None = None
    is_active: bool | None = None


class GuideSectionCreateRequest(CamelModel):
    title: str = Field(min_length=1)
    icon: str | None = None
    content: str | None = None
    order_index: int = 0
    section_type: str = "custom"
    hotel_id: int | None = None


class GuideSectionUpdateRequest(CamelModel):
    title: str | None = Field(default=None, min_length=1)
    icon: str | None = None
    content: str | None = None
    order_index: int | None = None
    is_enabled: bool | None = None


class GuideSectionResponse(CamelModel):
    success: bool = True
    section: GuideSectionOut


class HotelAdminInfo(HotelInfo):
    """Staff view of a hotel, WiFi password included."""
    wifi_password: str | None = None
    is_active: bool = True


class HotelAdminResponse(CamelModel):
    success: bool = True
    hotel: HotelAdminInfo


class HotelUpdateRequest(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    wifi_ssid: str | None = None
    wifi_password: str | None = None
    check_in_time: str | None = None
    check_out_time: str | None = None
    breakfast_time_start: str | None = None
    breakfast_time_end: str | None = None
    emergency_contact: str | None = None
    is_active: bool | None = None


class HotelCreateRequest(CamelModel):
    name: str = Field(min_length=1)
    slug: str = Field(min_length=1)
    description: str | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    wifi_ssid: str | None = None
    wifi_password: str | None = None
    check_in_time: str = "15:00"
    check_out_time: str = "11:00"
    breakfast_time_start: str = "07:00"
    breakfast_time_end: str = "10:00"
    emergency_contact: str | None = None


class DocumentSummaryOut(CamelModel):
    document_id: str
    chunk_count: int


class DocumentListResponse(CamelModel):
    success: bool = True
    documents: list[DocumentSummaryOut]
