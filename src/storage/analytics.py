from __future__ import annotations

"""Best-effort analytics event storage."""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    func,
    select,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalyticsEvent:
    """Guest interaction event used for dashboard analytics."""
    hotel_id: int
    event_type: str
    data: dict[str, Any] | None = None
    session_id: str | None = None


class AnalyticsSink(Protocol):
    """Fire-and-forget event recorder.

    Implementations must never raise: a failed write is logged and dropped so
    that analytics can never break a guest request.
    """

    def track(self, event: AnalyticsEvent) -> None:
        raise NotImplementedError


class AnalyticsStore:
    """Persist analytics events to a SQL database."""
    def __init__(self, connection_uri: str) -> None:
        """Initialize the analytics store and ensure tables exist."""
        self._engine = create_engine(connection_uri)
        self._metadata = MetaData()
        self._table = Table(
            "analytics_events",
            self._metadata,
            Column("id", Integer, primary_key=True, autoincrement=True),
            Column("hotel_id", Integer, nullable=False, index=True),
            Column("event_type", String(100), nullable=False, index=True),
            Column("event_data", Text, nullable=True),
            Column("session_id", String(255), nullable=True),
            Column("created_at", DateTime(timezone=True), nullable=False, index=True),
        )
        self._metadata.create_all(self._engine)

    def track(self, event: AnalyticsEvent) -> None:
        """Insert an event row; errors are logged and swallowed."""
        payload = {
            "hotel_id": event.hotel_id,
            "event_type": event.event_type,
            "event_data": json.dumps(event.data or {}, ensure_ascii=True, default=str),
            "session_id": event.session_id,
            "created_at": datetime.now(timezone.utc),
        }
        try:
            with self._engine.begin() as conn:
                conn.execute(self._table.insert().values(**payload))
        except Exception as exc:
            logger.error(
                "analytics_event_failed",
                extra={
                    "hotel_id": event.hotel_id,
                    "event_type": event.event_type,
                    "detail": type(exc).__name__,
                },
            )

    def count_events(self, hotel_id: int, event_type: str | None = None) -> int:
        query = select(func.count()).where(self._table.c.hotel_id == hotel_id)
        if event_type:
            query = query.where(self._table.c.event_type == event_type)
        with self._engine.connect() as conn:
            return int(conn.execute(query).scalar() or 0)
