"""
Error payloads and exception handlers for the JSON API.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .logging import get_logger

_LOG = get_logger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ApiError(Exception):
    """Raised by route handlers for expected client errors."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class NotFoundError(ApiError):
    def __init__(self, message: str) -> None:
        super().__init__(404, message)


def register_exception_handlers(app: FastAPI, *, expose_errors: bool = False) -> None:
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message, "timestamp": _now_iso()},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = [
            {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={"error": "Validation Error", "details": details, "timestamp": _now_iso()},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == 404:
            _LOG.warning(
                f"404 - Route not found: {request.method} {request.url.path}",
            )
            content: Dict[str, Any] = {
                "error": "Route not found",
                "method": request.method,
                "path": request.url.path,
                "timestamp": _now_iso(),
                "suggestion": "Check /docs for available endpoints",
            }
        else:
            content = {"error": exc.detail, "timestamp": _now_iso()}
        return JSONResponse(
            status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = getattr(request.state, "request_id", None)
        _LOG.error(
            "Unhandled error",
            exc_info=exc,
            extra={
                "extra_fields": {
                    "path": request.url.path,
                    "method": request.method,
                    "request_id": request_id,
                }
            },
        )
        error: Dict[str, Any] = {
            "message": str(exc) if expose_errors else "Internal Server Error",
            "status": 500,
            "path": request.url.path,
            "method": request.method,
            "timestamp": _now_iso(),
            "request_id": request_id,
        }
        if expose_errors:
            error["type"] = exc.__class__.__name__
        return JSONResponse(status_code=500, content={"error": error})
