"""Request tracing and exception handling for the store API."""

from __future__ import annotations

import time
import uuid

import structlog
from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.errors import DeepDiveError, ValidationError

logger = structlog.get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


def _correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", None) or str(uuid.uuid4())


def error_response(exc: DeepDiveError, correlation_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.to_dict(), "correlation_id": correlation_id},
        headers={CORRELATION_HEADER: correlation_id},
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies are client errors: 400 with the field errors attached."""
    correlation_id = _correlation_id(request)
    logger.warning("Request validation failed", path=request.url.path, errors=len(exc.errors()))
    error = ValidationError(
        "Invalid request body.",
        details={"errors": jsonable_errors(exc)},
    )
    return error_response(error, correlation_id)


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(item.get("loc", ())), "msg": item.get("msg", ""), "type": item.get("type", "")}
        for item in exc.errors()
    ]


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Binds a correlation id to every request and turns exceptions into JSON errors."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=correlation_id)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except DeepDiveError as exc:
            log_method = logger.warning if exc.status_code < 500 else logger.error
            log_method(
                "Handled application error",
                code=exc.code,
                message=exc.message,
                status_code=exc.status_code,
                path=request.url.path,
            )
            response = error_response(exc, correlation_id)
        except HTTPException as exc:
            logger.warning("HTTP exception", status_code=exc.status_code, detail=str(exc.detail))
            response = JSONResponse(
                status_code=exc.status_code,
                content={
                    "error": {"code": "http_error", "message": str(exc.detail)},
                    "correlation_id": correlation_id,
                },
            )
        except Exception as exc:
            logger.exception("Unhandled application error", path=request.url.path)
            response = JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": {
                        "code": "internal_server_error",
                        "message": "Internal server error",
                        "details": {"type": exc.__class__.__name__},
                    },
                    "correlation_id": correlation_id,
                },
            )
        finally:
            structlog.contextvars.clear_contextvars()

        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            correlation_id=correlation_id,
        )
        response.headers.setdefault(CORRELATION_HEADER, correlation_id)
        return response


__all__ = [
    "CORRELATION_HEADER",
    "ErrorHandlingMiddleware",
    "error_response",
    "request_validation_handler",
]
