# src/app/errors.py
"""
Maps exceptions to JSON error responses.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.app.domain.errors import (
    InvalidInputError,
    MethodNotAllowedError,
    NotFoundError,
    PersistenceError,
    RecipeServiceError,
)

logger = logging.getLogger(__name__)


def _error_response(error: RecipeServiceError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content={"error": error.message})


async def handle_service_error(request: Request, exc: RecipeServiceError) -> JSONResponse:
    if isinstance(exc, PersistenceError):
        logger.error(
            "%s %s store_error operation=%s reason=%s",
            request.method,
            request.url.path,
            exc.operation,
            exc.reason,
        )
        return JSONResponse(status_code=exc.status_code, content={"error": "Database error"})
    if isinstance(exc, InvalidInputError) and exc.field:
        logger.info("%s %s rejected field=%s", request.method, request.url.path, exc.field)
    elif isinstance(exc, NotFoundError) and exc.recipe_id is not None:
        logger.info("%s %s not_found recipe=%s", request.method, request.url.path, exc.recipe_id)
    return _error_response(exc)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request body"
    if errors:
        first = errors[0]
        location = [str(part) for part in first.get("loc", ()) if part != "body"]
        if location and first.get("type") != "json_invalid":
            message = f"Invalid '{location[-1]}': {first.get('msg', 'invalid value')}"
    return _error_response(InvalidInputError(message))


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": MethodNotAllowedError().message},
            headers=getattr(exc, "headers", None),
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s unhandled error", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RecipeServiceError, handle_service_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
