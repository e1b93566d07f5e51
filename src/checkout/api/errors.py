"""Exception handlers mapping checkout failures to JSON error bodies.

Every error response has the shape {"error": code, "message": str, "details": ...}.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError

from checkout.errors import CheckoutError

logger = structlog.get_logger(__name__)


def _error_body(code: str, message: str, details=None) -> dict:
    return {"error": code, "message": message, "details": details or {}}


async def _checkout_error(request: Request, exc: CheckoutError) -> JSONResponse:
    logger.info("Request failed", path=request.url.path, error_code=exc.code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.code, exc.message, exc.details))


async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    messages = getattr(exc, "messages", None) or {}
    first = next(iter(messages.values()), ["Invalid request"]) if isinstance(messages, dict) else [str(exc)]
    message = first[0] if isinstance(first, list) and first else str(first)
    return JSONResponse(status_code=400, content=_error_body("validation_error", message, messages))


async def _not_found(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content=_error_body("not_found", "Resource not found"))


async def _invalid_operation(request: Request, exc: InvalidOperationError) -> JSONResponse:
    return JSONResponse(status_code=409, content=_error_body("invalid_operation", str(exc)))


async def _internal_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path, method=request.method)
    return JSONResponse(status_code=500, content=_error_body("internal_error", "An unexpected error occurred"))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CheckoutError, _checkout_error)
    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(ObjectNotFoundError, _not_found)
    app.add_exception_handler(InvalidOperationError, _invalid_operation)
    app.add_exception_handler(Exception, _internal_error)
