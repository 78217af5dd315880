"""Custom exceptions with storefront error codes."""

from typing import Any, Optional


class BoutiqueError(Exception):
    """Base exception for the Ballon Boutique storefront."""

    def __init__(
        self,
        message: str,
        code: str = "BB_000",
        category: str = "system",
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.category = category
        self.details = details or {}
        super().__init__(message)


class TransientError(BoutiqueError):
    """Retryable errors: SMTP hiccups, Stripe timeouts, temporary unavailability."""

    def __init__(
        self,
        message: str,
        code: str = "BB_001",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, "transient", details)


class PermanentError(BoutiqueError):
    """Non-retryable errors: invalid input, auth failures."""

    def __init__(
        self,
        message: str,
        code: str = "BB_002",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, "permanent", details)


class ValidationError(PermanentError):
    """Validation failures - 400 Bad Request."""

    def __init__(
        self,
        message: str,
        code: str = "BB_400",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)


class NotFoundError(PermanentError):
    """Resource not found - 404."""

    def __init__(
        self,
        message: str,
        code: str = "BB_404",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)


class UnauthorizedError(PermanentError):
    """Authentication failures - 401."""

    def __init__(
        self,
        message: str,
        code: str = "BB_401",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)


class ForbiddenError(PermanentError):
    """Authorization failures - 403."""

    def __init__(
        self,
        message: str,
        code: str = "BB_403",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)


class ServiceUnavailableError(TransientError):
    """Dependency not configured or temporarily unavailable - 503."""

    def __init__(
        self,
        message: str,
        code: str = "BB_503",
        retry_after: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        d = details or {}
        if retry_after is not None:
            d["retry_after"] = retry_after
        super().__init__(message, code, d)
