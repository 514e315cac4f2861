"""
FastAPI middleware for request observability (request_id + latency + metrics).
Why: every request is counted once, including the ones that blow up.
"""

import time
import uuid
from datetime import datetime, timezone
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from .logging import get_logger
from .metrics import MetricsAggregator

_LOG = get_logger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "X-XSS-Protection": "0",
}


class ObservabilityMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, metrics: MetricsAggregator) -> None:
        super().__init__(app)
        self.metrics = metrics

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        start = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 3)
            status = response.status_code if response is not None else 500
            self.metrics.record_request(
                status_code=status,
                response_time_ms=duration_ms,
                method=request.method,
                path=request.url.path,
                timestamp=datetime.now(timezone.utc),
                client=request.client.host if request.client else None,
                user_agent=request.headers.get("User-Agent"),
            )
            _LOG.info(
                "Request completed",
                extra={
                    "extra_fields": {
                        "path": request.url.path,
                        "method": request.method,
                        "status": status,
                        "duration_ms": duration_ms,
                        "request_id": request_id,
                    }
                },
            )
            if response is not None:
                response.headers["X-Request-ID"] = request_id


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response
