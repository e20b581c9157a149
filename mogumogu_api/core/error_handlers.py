"""
FastAPI exception handlers.

All error responses are JSON objects with an ``error`` string. Quota errors
add ``limit`` and ``used``.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mogumogu_api.core.errors import (
    AppError,
    MalformedCompletion,
    UpstreamError,
)

logger = logging.getLogger(__name__)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Convert AppError into ``{"error": ..., **extra}``."""
    if isinstance(exc, UpstreamError):
        logger.error(
            f"Upstream error on {request.url.path}: status={exc.upstream_status}, "
            f"body={(exc.upstream_body or '')[:500]}"
        )
    elif isinstance(exc, MalformedCompletion):
        logger.error(f"Malformed completion on {request.url.path}: raw={exc.raw_text[:1000]!r}")
    elif exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{type(exc).__name__} on {request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, **exc.extra()},
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation failures as 400 with the first problem."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.url.path}: {type(exc).__name__}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
