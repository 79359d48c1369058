from __future__ import annotations

"""SQL persistence for hotels, FAQs, guide sections and chat logs."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    case,
    create_engine,
    func,
    select,
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from src.rag.types import ChatLogRecord, FAQEntry, HotelProfile


class HotelStoreError(RuntimeError):
    """Raised when hotel data cannot be read or written."""
    pass


class ChatLogWriteError(HotelStoreError):
    """Raised when a chat exchange could not be recorded."""
    pass


class DuplicateHotelSlugError(HotelStoreError):
    """Raised when a hotel slug is already taken."""
    pass


_PUBLIC_HOTEL_FIELDS = (
    "id",
    "name",
    "slug",
    "description",
    "address",
    "phone",
    "email",
    "website",
    "wifi_ssid",
    "check_in_time",
    "check_out_time",
    "breakfast_time_start",
    "breakfast_time_end",
    "emergency_contact",
    "is_active",
)

UPDATABLE_HOTEL_FIELDS = frozenset(
    {
        "name",
        "description",
        "address",
        "phone",
        "email",
        "website",
        "wifi_ssid",
        "wifi_password",
        "check_in_time",
        "check_out_time",
        "breakfast_time_start",
        "breakfast_time_end",
        "emergency_contact",
        "is_active",
    }
)
UPDATABLE_FAQ_FIELDS = frozenset({"question", "answer", "category", "order_index", "is_active"})
UPDATABLE_GUIDE_FIELDS = frozenset({"title", "icon", "content", "order_index", "is_enabled"})


@dataclass(frozen=True)
class GuideSection:
    """Public guide section shown in the guest app."""
    id: int
    hotel_id: int
    title: str
    icon: str | None = None
    content: str | None = None
    order_index: int = 0
    section_type: str = "custom"
    is_enabled: bool = True


@dataclass(frozen=True)
class DashboardStats:
    """Aggregated chat metrics for the staff dashboard."""
    total_chat_messages: int
    ai_resolution_rate: float
    average_confidence: float
    escalation_rate: float
    top_questions: list[dict[str, Any]] = field(default_factory=list)
    daily_activity: list[dict[str, Any]] = field(default_factory=list)
    estimated_hours_saved: int = 0


class HotelStore:
    """Read and write hotel data through SQLAlchemy Core."""
    def __init__(self, connection_uri: str) -> None:
        """Create the engine and ensure tables exist."""
        self._engine = create_engine(connection_uri)
        self._metadata = MetaData()
        self._hotels = Table(
            "hotels",
            self._metadata,
            Column("id", Integer, primary_key=True, autoincrement=True),
            Column("name", String(255), nullable=False),
            Column("slug", String(255), nullable=False, unique=True),
            Column("description", Text, nullable=True),
            Column("address", Text, nullable=True),
            Column("phone", String(50), nullable=True),
            Column("email", String(255), nullable=True),
            Column("website", String(255), nullable=True),
            Column("wifi_ssid", String(255), nullable=True),
            Column("wifi_password", String(255), nullable=True),
            Column("check_in_time", String(5), nullable=True, default="15:00"),
            Column("check_out_time", String(5), nullable=True, default="11:00"),
            Column("breakfast_time_start", String(5), nullable=True, default="07:00"),
            Column("breakfast_time_end", String(5), nullable=True, default="10:00"),
            Column("emergency_contact", String(255), nullable=True),
            Column("is_active", Boolean, nullable=False, default=True),
            Column("created_at", DateTime(timezone=True), nullable=False),
        )
        self._faqs = Table(
            "faqs",
            self._metadata,
            Column("id", Integer, primary_key=True, autoincrement=True),
            Column("hotel_id", Integer, ForeignKey("hotels.id"), nullable=False, index=True),
            Column("question", Text, nullable=False),
            Column("answer", Text, nullable=False),
            Column("category", String(100), nullable=True),
            Column("order_index", Integer, nullable=False, default=0),
            Column("is_active", Boolean, nullable=False, default=True),
            Column("created_at", DateTime(timezone=True), nullable=False),
        )
        self._guide_sections = Table(
            "guide_sections",
            self._metadata,
            Column("id", Integer, primary_key=True, autoincrement=True),
            Column("hotel_id", Integer, ForeignKey("hotels.id"), nullable=False, index=True),
            Column("title", String(255), nullable=False),
            Column("icon", String(50), nullable=True),
            Column("content", Text, nullable=True),
            Column("order_index", Integer, nullable=False, default=0),
            Column("is_enabled", Boolean, nullable=False, default=True),
            Column("section_type", String(50), nullable=False, default="custom"),
            Column("created_at", DateTime(timezone=True), nullable=False),
        )
        self._chat_logs = Table(
            "chat_logs",
            self._metadata,
            Column("id", Integer, primary_key=True, autoincrement=True),
            Column("hotel_id", Integer, ForeignKey("hotels.id"), nullable=False, index=True),
            Column("session_id", String(255), nullable=True, index=True),
            Column("question", Text, nullable=False),
            Column("answer", Text, nullable=False),
            Column("ai_confidence", Float, nullable=True),
            Column("was_ai_response", Boolean, nullable=False, default=True),
            Column("escalated_to_staff", Boolean, nullable=False, default=False),
            Column("language", String(10), nullable=False, default="en"),
            Column("created_at", DateTime(timezone=True), nullable=False, index=True),
        )
        self._metadata.create_all(self._engine)

    def create_hotel(self, name: str, slug: str, **fields: Any) -> int:
        """Insert a hotel and return its ID; a taken slug raises DuplicateHotelSlugError."""
        payload = {"name": name, "slug": slug, **fields}
        payload.setdefault("created_at", datetime.now(timezone.utc))
        try:
            with self._engine.begin() as conn:
                result = conn.execute(self._hotels.insert().values(**payload))
        except IntegrityError as exc:
            raise DuplicateHotelSlugError(slug) from exc
        return int(result.inserted_primary_key[0])

    def get_active_hotel(self, hotel_id: int) -> HotelProfile | None:
        """Return the hotel profile when it exists and is active."""
        return self._fetch_hotel(
            (self._hotels.c.id == hotel_id) & (self._hotels.c.is_active.is_(True))
        )

    def get_hotel_by_slug(self, slug: str) -> HotelProfile | None:
        return self._fetch_hotel(
            (self._hotels.c.slug == slug) & (self._hotels.c.is_active.is_(True))
        )

    def get_hotel_details(self, hotel_id: int) -> dict[str, Any] | None:
        """Return every stored hotel field, including the WiFi password, for staff."""
        columns = [column for column in self._hotels.c if column.name != "created_at"]
        with self._engine.connect() as conn:
            row = conn.execute(select(*columns).where(self._hotels.c.id == hotel_id)).first()
        return dict(row._mapping) if row is not None else None

    def update_hotel(self, hotel_id: int, fields: dict[str, Any]) -> dict[str, Any] | None:
        if not self._update(self._hotels, hotel_id, fields, UPDATABLE_HOTEL_FIELDS):
            return None
        return self.get_hotel_details(hotel_id)

    def get_hotel_phone(self, hotel_id: int) -> str | None:
        with self._engine.connect() as conn:
            row = conn.execute(
                select(self._hotels.c.phone).where(self._hotels.c.id == hotel_id)
            ).first()
        return row.phone if row and row.phone else None

    def list_active_faqs(self, hotel_id: int, limit: int | None = None) -> list[FAQEntry]:
        """Return active FAQs ordered by display order."""
        faqs = self._faqs
        query = (
            select(faqs)
            .where(faqs.c.hotel_id == hotel_id, faqs.c.is_active.is_(True))
            .order_by(faqs.c.order_index, faqs.c.id)
        )
        if limit is not None:
            query = query.limit(limit)
        with self._engine.connect() as conn:
            rows = conn.execute(query).all()
        return [self._to_faq(row) for row in rows]

    def list_faqs(self, hotel_id: int) -> list[FAQEntry]:
        """Return all of a hotel's FAQs, hidden ones included."""
        faqs = self._faqs
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(faqs).where(faqs.c.hotel_id == hotel_id).order_by(faqs.c.order_index, faqs.c.id)
            ).all()
        return [self._to_faq(row) for row in rows]

    def get_faq(self, faq_id: int) -> FAQEntry | None:
        with self._engine.connect() as conn:
            row = conn.execute(select(self._faqs).where(self._faqs.c.id == faq_id)).first()
        return self._to_faq(row) if row is not None else None

    def create_faq(
        self,
        hotel_id: int,
        question: str,
        answer: str,
        category: str | None = None,
        order_index: int = 0,
        is_active: bool = True,
    ) -> FAQEntry:
        with self._engine.begin() as conn:
            result = conn.execute(
                self._faqs.insert().values(
                    hotel_id=hotel_id,
                    question=question,
                    answer=answer,
                    category=category,
                    order_index=order_index,
                    is_active=is_active,
                    created_at=datetime.now(timezone.utc),
                )
            )
        return FAQEntry(
            id=int(result.inserted_primary_key[0]),
            hotel_id=hotel_id,
            question=question,
            answer=answer,
            category=category,
            order_index=order_index,
            is_active=is_active,
        )

    def update_faq(self, faq_id: int, fields: dict[str, Any]) -> FAQEntry | None:
        if not self._update(self._faqs, faq_id, fields, UPDATABLE_FAQ_FIELDS):
            return None
        return self.get_faq(faq_id)

    def delete_faq(self, faq_id: int) -> bool:
        return self._delete(self._faqs, faq_id)

    def create_guide_section(
        self,
        hotel_id: int,
        title: str,
        content: str | None = None,
        icon: str | None = None,
        order_index: int = 0,
        section_type: str = "custom",
        is_enabled: bool = True,
    ) -> int:
        with self._engine.begin() as conn:
            result = conn.execute(
                self._guide_sections.insert().values(
                    hotel_id=hotel_id,
                    title=title,
                    content=content,
                    icon=icon,
                    order_index=order_index,
                    section_type=section_type,
                    is_enabled=is_enabled,
                    created_at=datetime.now(timezone.utc),
                )
            )
        return int(result.inserted_primary_key[0])

    def list_guide_sections(self, hotel_id: int, include_disabled: bool = False) -> list[GuideSection]:
        sections = self._guide_sections
        query = select(sections).where(sections.c.hotel_id == hotel_id)
        if not include_disabled:
            query = query.where(sections.c.is_enabled.is_(True))
        with self._engine.connect() as conn:
            rows = conn.execute(query.order_by(sections.c.order_index, sections.c.id)).all()
        return [self._to_section(row) for row in rows]

    def get_guide_section(self, section_id: int) -> GuideSection | None:
        sections = self._guide_sections
        with self._engine.connect() as conn:
            row = conn.execute(select(sections).where(sections.c.id == section_id)).first()
        return self._to_section(row) if row is not None else None

    def update_guide_section(self, section_id: int, fields: dict[str, Any]) -> GuideSection | None:
        if not self._update(self._guide_sections, section_id, fields, UPDATABLE_GUIDE_FIELDS):
            return None
        return self.get_guide_section(section_id)

    def delete_guide_section(self, section_id: int) -> bool:
        return self._delete(self._guide_sections, section_id)

    def record_chat_log(self, record: ChatLogRecord) -> int:
        """Insert one chat exchange; failures raise ChatLogWriteError."""
        created_at = record.created_at or datetime.now(timezone.utc)
        try:
            with self._engine.begin() as conn:
                result = conn.execute(
                    self._chat_logs.insert().values(
                        hotel_id=record.hotel_id,
                        session_id=record.session_id,
                        question=record.question,
                        answer=record.answer,
                        ai_confidence=record.confidence,
                        was_ai_response=record.was_ai_response,
                        escalated_to_staff=record.escalated,
                        language=record.language,
                        created_at=created_at,
                    )
                )
        except SQLAlchemyError as exc:
            raise ChatLogWriteError(type(exc).__name__) from exc
        return int(result.inserted_primary_key[0])

    def chat_history(self, session_id: str, hotel_id: int, limit: int = 50) -> list[ChatLogRecord]:
        """Return a session's exchanges, oldest first."""
        logs = self._chat_logs
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(logs)
                .where(logs.c.session_id == session_id, logs.c.hotel_id == hotel_id)
                .order_by(logs.c.created_at, logs.c.id)
                .limit(limit)
            ).all()
        return [self._to_record(row) for row in rows]

    def recent_chat_logs(self, hotel_id: int, limit: int = 50, offset: int = 0) -> list[ChatLogRecord]:
        """Return a hotel's exchanges, newest first."""
        logs = self._chat_logs
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(logs)
                .where(logs.c.hotel_id == hotel_id)
                .order_by(logs.c.created_at.desc(), logs.c.id.desc())
                .limit(limit)
                .offset(offset)
            ).all()
        return [self._to_record(row) for row in rows]

    def dashboard(
        self,
        hotel_id: int,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> DashboardStats:
        """Aggregate chat metrics, optionally restricted to a date range."""
        logs = self._chat_logs
        conditions = [logs.c.hotel_id == hotel_id]
        if start is not None and end is not None:
            conditions.append(logs.c.created_at.between(start, end))

        resolved_expr = func.sum(
            case(
                (
                    (logs.c.was_ai_response.is_(True)) & (logs.c.escalated_to_staff.is_(False)),
                    1,
                ),
                else_=0,
            )
        )
        escalated_expr = func.sum(case((logs.c.escalated_to_staff.is_(True), 1), else_=0))
        day = func.date(logs.c.created_at)
        with self._engine.connect() as conn:
            totals = conn.execute(
                select(
                    func.count().label("total"),
                    resolved_expr.label("resolved"),
                    escalated_expr.label("escalated"),
                ).where(*conditions)
            ).one()
            avg_confidence = conn.execute(
                select(func.avg(logs.c.ai_confidence)).where(
                    *conditions, logs.c.was_ai_response.is_(True)
                )
            ).scalar()
            top_questions = conn.execute(
                select(logs.c.question, func.count().label("count"))
                .where(*conditions)
                .group_by(logs.c.question)
                .order_by(func.count().desc(), logs.c.question)
                .limit(10)
            ).all()
            daily = conn.execute(
                select(day.label("date"), func.count().label("count"))
                .where(*conditions)
                .group_by(day)
                .order_by(day.desc())
                .limit(30)
            ).all()

        total = int(totals.total or 0)
        resolved = int(totals.resolved or 0)
        escalated = int(totals.escalated or 0)
        return DashboardStats(
            total_chat_messages=total,
            ai_resolution_rate=(resolved / total) * 100 if total else 0.0,
            average_confidence=float(avg_confidence or 0.0),
            escalation_rate=(escalated / total) * 100 if total else 0.0,
            top_questions=[{"question": row.question, "count": int(row.count)} for row in top_questions],
            daily_activity=[{"date": str(row.date), "count": int(row.count)} for row in daily],
            estimated_hours_saved=round((resolved * 0.1) / 60),
        )

    def _fetch_hotel(self, condition: Any) -> HotelProfile | None:
        columns = [self._hotels.c[name] for name in _PUBLIC_HOTEL_FIELDS]
        try:
            with self._engine.connect() as conn:
                row = conn.execute(select(*columns).where(condition)).first()
        except SQLAlchemyError as exc:
            raise HotelStoreError(type(exc).__name__) from exc
        if row is None:
            return None
        return HotelProfile(**dict(row._mapping))

    @staticmethod
    def _to_record(row: Any) -> ChatLogRecord:
        return ChatLogRecord(
            hotel_id=row.hotel_id,
            session_id=row.session_id,
            question=row.question,
            answer=row.answer,
            confidence=row.ai_confidence,
            was_ai_response=row.was_ai_response,
            escalated=row.escalated_to_staff,
            language=row.language,
            created_at=row.created_at,
        )

    def _update(self, table: Table, row_id: int, fields: dict[str, Any], allowed: frozenset[str]) -> bool:
        """Apply the allowed subset of ``fields``; returns False when the row is missing."""
        values = {key: value for key, value in fields.items() if key in allowed}
        if not values:
            raise ValueError("No fields to update")
        with self._engine.begin() as conn:
            result = conn.execute(table.update().where(table.c.id == row_id).values(**values))
        return bool(result.rowcount)

    def _delete(self, table: Table, row_id: int) -> bool:
        with self._engine.begin() as conn:
            result = conn.execute(table.delete().where(table.c.id == row_id))
        return bool(result.rowcount)

    @staticmethod
    def _to_faq(row: Any) -> FAQEntry:
        return FAQEntry(
            id=row.id,
            hotel_id=row.hotel_id,
            question=row.question,
            answer=row.answer,
            category=row.category,
            order_index=row.order_index or 0,
            is_active=bool(row.is_active),
        )

    @staticmethod
    def _to_section(row: Any) -> GuideSection:
        return GuideSection(
            id=row.id,
            hotel_id=row.hotel_id,
            title=row.title,
            icon=row.icon,
            content=row.content,
            order_index=row.order_index or 0,
            section_type=row.section_type,
            is_enabled=bool(row.is_enabled),
        )
