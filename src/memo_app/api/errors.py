"""Translate memo errors into JSON error responses."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from memo_app.api.schemas import ErrorResponse
from memo_app.core.exceptions import MemoNotFoundError, MemoValidationError

logger = structlog.get_logger()

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


def _error_response(
    request: Request,
    status: int,
    error: str,
    message: str,
    **details: Any,
) -> JSONResponse:
    body = ErrorResponse(
        timestamp=datetime.now(timezone.utc),
        status=status,
        error=error,
        message=message,
        path=request.url.path,
        **details,
    )
    return JSONResponse(
        status_code=status,
        content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


async def memo_not_found_handler(request: Request, exc: MemoNotFoundError) -> JSONResponse:
    logger.info("memo_not_found", memo_id=exc.memo_id, path=request.url.path)
    return _error_response(request, 404, "Memo Not Found", str(exc), memo_id=exc.memo_id)


async def memo_validation_handler(request: Request, exc: MemoValidationError) -> JSONResponse:
    logger.info(
        "memo_validation_failed",
        field=exc.field,
        message=exc.message,
        path=request.url.path,
    )
    return _error_response(
        request,
        400,
        "Validation Error",
        exc.message,
        field=exc.field,
        rejected_value=exc.rejected_value,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = first.get("loc") or ()
    field = str(loc[-1]) if loc else None
    message = first.get("msg", "Invalid request")
    logger.info("request_validation_failed", field=field, message=message, path=request.url.path)
    return _error_response(request, 400, "Validation Error", message, field=field)


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path, error_type=type(exc).__name__)
    return _error_response(request, 500, "Internal Server Error", GENERIC_ERROR_MESSAGE)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MemoNotFoundError, memo_not_found_handler)
    app.add_exception_handler(MemoValidationError, memo_validation_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
