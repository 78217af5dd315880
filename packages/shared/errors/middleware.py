"""FastAPI error handling middleware."""

import logging
import uuid
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from .models import create_error_response
from .exceptions import (
    BoutiqueError,
    ValidationError,
    NotFoundError,
    UnauthorizedError,
    ForbiddenError,
    ServiceUnavailableError,
)

logger = logging.getLogger(__name__)

EXCEPTION_STATUS_MAP = {
    ValidationError: 400,
    UnauthorizedError: 401,
    ForbiddenError: 403,
    NotFoundError: 404,
    ServiceUnavailableError: 503,
}


def status_for_exception(exc: BoutiqueError) -> int:
    """Resolve HTTP status, walking the MRO so subclasses inherit their parent's status."""
    for cls in type(exc).__mro__:
        if cls in EXCEPTION_STATUS_MAP:
            return EXCEPTION_STATUS_MAP[cls]
    return 500


def get_request_id(request: Request) -> str:
    """Get or create request ID for correlation."""
    request_id = request.headers.get("X-Request-ID") or getattr(
        request.state, "request_id", None
    )
    if not request_id:
        request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    return request_id


async def request_id_middleware(request: Request, call_next: Callable) -> Response:
    """Add request ID to all requests."""
    request_id = get_request_id(request)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


def boutique_exception_handler(request: Request, exc: BoutiqueError) -> JSONResponse:
    """Handle storefront exceptions with standardized error format."""
    request_id = get_request_id(request)
    status = status_for_exception(exc)

    error_response = create_error_response(
        code=exc.code,
        message=exc.message,
        category=exc.category,
        details=exc.details or None,
        request_id=request_id,
    )

    logger.warning(
        "Storefront exception",
        extra={
            "request_id": request_id,
            "context": {
                "error_code": exc.code,
                "error_message": exc.message,
                "category": exc.category,
            },
        },
    )

    return JSONResponse(
        status_code=status,
        content=error_response.model_dump(),
        headers={
            "X-Request-ID": request_id,
            **(_retry_headers(exc) if exc.details else {}),
        },
    )


def _retry_headers(exc: BoutiqueError) -> dict:
    """Add Retry-After header if applicable."""
    headers = {}
    if retry_after := exc.details.get("retry_after"):
        headers["Retry-After"] = str(retry_after)
    return headers


def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions - return 500 with generic message."""
    request_id = get_request_id(request)

    error_response = create_error_response(
        code="BB_500",
        message="An unexpected error occurred. Please try again later.",
        category="system",
        request_id=request_id,
    )

    logger.exception(
        "Unhandled exception",
        extra={"request_id": request_id},
        exc_info=exc,
    )

    return JSONResponse(
        status_code=500,
        content=error_response.model_dump(),
        headers={"X-Request-ID": request_id},
    )
