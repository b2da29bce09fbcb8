"""
Domain Exceptions

Every failure a service can report to a caller. The HTTP layer maps
``status_code`` straight onto the response; services never build
HTTP responses themselves.
"""

from typing import Any, Optional


class DeliveryError(Exception):
    """Base class for all expected, classified failures."""

    status_code: int = 500

    def __init__(self, message: str, detail: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class ValidationError(DeliveryError):
    """Missing or malformed input. Never retried."""
    status_code = 400


class AuthError(DeliveryError):
    """Credentials or identity assertion rejected."""
    status_code = 401


class PermissionDeniedError(DeliveryError):
    """Caller is known but not allowed to do this."""
    status_code = 403


class NotFoundError(DeliveryError):
    """Referenced order, rider or user does not exist."""
    status_code = 404


class ConflictError(DeliveryError):
    """Uniqueness violation or a state that forbids the operation."""
    status_code = 409


class ConditionFailedError(ConflictError):
    """A conditional store write found its predicate false."""


class StoreUnavailableError(DeliveryError):
    """Record store unreachable or misconfigured. Safe to retry with backoff."""
    status_code = 503
