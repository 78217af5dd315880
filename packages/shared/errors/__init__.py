"""Standardized error handling for the storefront."""

from .models import (
    ErrorDetail,
    ErrorResponse,
    create_error_response,
)
from .exceptions import (
    BoutiqueError,
    TransientError,
    PermanentError,
    ValidationError,
    NotFoundError,
    UnauthorizedError,
    ForbiddenError,
    ServiceUnavailableError,
)

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "create_error_response",
    "BoutiqueError",
    "TransientError",
    "PermanentError",
    "ValidationError",
    "NotFoundError",
    "UnauthorizedError",
    "ForbiddenError",
    "ServiceUnavailableError",
]
