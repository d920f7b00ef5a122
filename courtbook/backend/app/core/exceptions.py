"""
Domain exceptions raised by the booking core.

Every error carries a stable machine-checkable ``code`` and a human-readable
``message``. Routes convert them with :meth:`DomainException.to_http_exception`.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    code = "domain_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.code
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class NotFoundError(DomainException):
    """A referenced court, coach, equipment item, booking or user does not exist."""

    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(DomainException):
    """A resource is already taken for the requested window."""

    code = "conflict"
    status_code = status.HTTP_409_CONFLICT


class TransactionFailure(ConflictError):
    """The store aborted the transaction (lock timeout, serialization failure).

    Nothing was committed, so the whole operation is safe to retry.
    """

    code = "transaction_failure"


class ValidationError(DomainException):
    """Malformed input that reached the core."""

    code = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST


class ForbiddenError(DomainException):
    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
