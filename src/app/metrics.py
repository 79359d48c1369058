from __future__ import annotations

import time

from fastapi import Request
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.responses import Response

from src.app.settings import settings

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)
ANSWER_COUNT = Counter(
    "concierge_answers_total",
    "Guest answers by producing path",
    ["path", "escalated"],
)


async def metrics_middleware(request: Request, call_next):
    """Count requests and time them, labelled by method, path and status."""
    if not settings.metrics_enabled:
        return await call_next(request)
    path = request.url.path
    if path == "/metrics":
        return await call_next(request)
    start = time.monotonic()
    status = 500
    try:
        response = await call_next(request)
        status = response.status_code
        return response
    finally:
        duration = time.monotonic() - start
        REQUEST_COUNT.labels(request.method, path, str(status)).inc()
        REQUEST_LATENCY.labels(request.method, path).observe(duration)


def record_answer(path: str, escalated: bool) -> None:
    """Count one guest answer by the path that produced it (ai or a fallback tier)."""
    if settings.metrics_enabled:
        ANSWER_COUNT.labels(path, str(escalated).lower()).inc()


def metrics_response() -> Response:
    """Render the Prometheus exposition, or 404 when metrics are disabled."""
    if not settings.metrics_enabled:
        return Response(status_code=404)
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
