"""FastAPI middleware: correlation IDs and error handling."""

from __future__ import annotations

import time
import uuid
from typing import TYPE_CHECKING

import structlog
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from problemscout.errors import (
    CreditExhaustedError,
    GenerationError,
    InvalidInputError,
    PaymentGatewayError,
    ProfileNotFoundError,
    ProviderError,
    ResearchCancelledError,
)

if TYPE_CHECKING:
    from fastapi import FastAPI, Request, Response

logger = structlog.get_logger()

# Most specific first; the first isinstance match wins.
_ERROR_STATUS: list[tuple[type[Exception], int, str]] = [
    (InvalidInputError, 400, "invalid_input"),
    (CreditExhaustedError, 402, "credits_exhausted"),
    (ProfileNotFoundError, 404, "not_found"),
    (ResearchCancelledError, 409, "cancelled"),
    (GenerationError, 502, "generation_failed"),
    (ProviderError, 503, "provider_unavailable"),
    (PaymentGatewayError, 503, "payment_gateway_unavailable"),
    (ValueError, 400, "bad_request"),
]


def error_status(exc: Exception) -> tuple[int, str]:
    """Map an exception to its HTTP status and machine-readable error code."""
    for exc_type, status, code in _ERROR_STATUS:
        if isinstance(exc, exc_type):
            return status, code
    return 500, "internal_server_error"


def error_body(exc: Exception) -> dict[str, object]:
    _, code = error_status(exc)
    if code == "internal_server_error":
        return {"error": code, "detail": "An unexpected error occurred"}
    body: dict[str, object] = {"error": code, "detail": str(exc)}
    if isinstance(exc, GenerationError) and exc.stage:
        body["stage"] = exc.stage
    return body


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Reads or generates X-Correlation-ID and binds it to structlog context."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = request.headers.get("X-Correlation-ID", uuid.uuid4().hex[:12])

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            correlation_id=correlation_id,
            path=request.url.path,
            method=request.method,
        )

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 2)

        logger.info("Request completed", status=response.status_code, duration_ms=duration_ms)

        response.headers["X-Correlation-ID"] = correlation_id
        return response


def add_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers returning structured JSON errors."""

    async def known_error_handler(_request: Request, exc: Exception) -> JSONResponse:
        status, _ = error_status(exc)
        logger.warning(
            "Request failed", status=status, error=str(exc), error_type=type(exc).__name__
        )
        return JSONResponse(status_code=status, content=error_body(exc))

    for exc_type, _status, _code in _ERROR_STATUS:
        app.add_exception_handler(exc_type, known_error_handler)

    @app.exception_handler(Exception)
    async def generic_error_handler(_request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled exception", error=str(exc), exc_info=exc)
        return JSONResponse(status_code=500, content=error_body(exc))
