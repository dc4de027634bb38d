"""
Exception handlers.

Every failure leaves the API as {"status": "fail"|"error", "message": ...};
in development the traceback is attached as "stack".
"""

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings
from ..database.exceptions import (
    DatabaseConstraintError,
    EntityNotFoundError,
    ValidationError as DataValidationError,
)
from ..utils.errors import AppError

logger = logging.getLogger(__name__)


def error_response(error: AppError, exc: Exception = None) -> JSONResponse:
    content = {"status": error.status, "message": error.message}
    if settings.is_development and exc is not None:
        content["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=error.status_code, content=content)


def format_validation_errors(errors) -> str:
    """'Validation failed: email: value is not a valid email address. password: ...'"""
    messages = []
    for err in errors:
        # Drop the "body"/"query"/"path" prefix FastAPI puts in front of the field path
        loc = [str(part) for part in err.get("loc", ())[1:]]
        msg = err.get("msg", "Invalid value")
        messages.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return f"Validation failed: {'. '.join(messages)}"


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return error_response(exc, exc)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if any(err.get("type") == "json_invalid" for err in errors):
        return error_response(AppError.bad_request("Invalid JSON in request body."), exc)
    return error_response(AppError.bad_request(format_validation_errors(errors)), exc)


async def constraint_error_handler(request: Request, exc: Exception):
    fields = getattr(exc, "fields", None) or "field"
    logger.warning(f"Constraint violation on {request.method} {request.url.path}: {exc}")
    return error_response(
        AppError.conflict(f"Duplicate value for: {fields}. Please use a different value."), exc
    )


async def not_found_error_handler(request: Request, exc: EntityNotFoundError):
    return error_response(AppError.not_found("The requested resource was not found."), exc)


async def data_validation_error_handler(request: Request, exc: DataValidationError):
    return error_response(AppError.bad_request(str(exc)), exc)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Unknown routes and methods get the catch-all message."""
    if exc.status_code in (404, 405):
        message = f"Cannot find {request.method} {request.url.path} on this server."
        return error_response(AppError.not_found(message))
    return error_response(AppError(str(exc.detail), exc.status_code))


async def unhandled_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
    return error_response(AppError.internal("An unexpected error occurred."), exc)


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(DatabaseConstraintError, constraint_error_handler)
    app.add_exception_handler(IntegrityError, constraint_error_handler)
    app.add_exception_handler(EntityNotFoundError, not_found_error_handler)
    app.add_exception_handler(DataValidationError, data_validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
