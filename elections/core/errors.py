"""Error taxonomy shared by services and the HTTP boundary."""
from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ElectionError(Exception):
    """Base exception for every expected failure in the election workflows.

    Each subclass binds the HTTP status it maps to, so the boundary handler
    never inspects error shapes.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        *,
        details: list[Any] | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.details = details
        self.extra = extra or {}
        super().__init__(self.message)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        payload.update(self.extra)
        return payload


class ValidationError(ElectionError):
    """Malformed or out-of-range input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class ConflictError(ElectionError):
    """Duplicate submission or already-processed record."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Duplicate submission"


class AuthError(ElectionError):
    """Missing, invalid or expired session or OTP."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class EligibilityError(ElectionError):
    """Window closed, email not on the eligibility list, or role not allowed."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not eligible"


class NotFoundError(ElectionError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class AccountLockedError(ElectionError):
    status_code = status.HTTP_423_LOCKED
    default_message = "Account is locked"


class LockoutError(ElectionError):
    """Verification attempts exhausted for an OTP record."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many attempts. Please request a new OTP."


class RateLimitError(ElectionError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many requests from this IP, please try again later."


class UpstreamError(ElectionError):
    """Storage or delivery failure that must not leak internals to clients."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


async def _election_error_handler(request: Request, exc: ElectionError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request failed: %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    issues = [
        {
            "path": [str(part) for part in error.get("loc", ()) if part != "body"],
            "message": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid input", "details": issues},
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error: %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


def register_exception_handlers(application: FastAPI) -> None:
    """Map the error taxonomy onto the ``{error, details?}`` envelope."""
    application.add_exception_handler(ElectionError, _election_error_handler)
    application.add_exception_handler(RequestValidationError, _request_validation_handler)
    application.add_exception_handler(Exception, _unhandled_error_handler)


__all__ = [
    "AccountLockedError",
    "AuthError",
    "ConflictError",
    "ElectionError",
    "EligibilityError",
    "LockoutError",
    "NotFoundError",
    "RateLimitError",
    "UpstreamError",
    "ValidationError",
    "register_exception_handlers",
]
