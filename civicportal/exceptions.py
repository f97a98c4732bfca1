"""
Exception hierarchy for the Civic Portal client.

The API client raises these; ``AuthService`` converts every one of them
into a failed ``AuthResult`` so the UI never sees a raw exception.
"""

from __future__ import annotations

from typing import Any, Optional

from civicportal.models.auth_models import FieldError


class PortalError(Exception):
    """Base exception for all portal client errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class RequestError(PortalError):
    """The server answered with a non-2xx status.

    ``message`` is the server's ``message`` field when present and
    ``errors`` carries its field-level validation errors.
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        errors: Optional[list[FieldError]] = None,
    ) -> None:
        super().__init__(message, details={"status_code": status_code})
        self.status_code = status_code
        self.errors: list[FieldError] = errors or []


class NetworkError(PortalError):
    """The request never reached the server."""


class MalformedResponseError(PortalError):
    """A successful response whose body does not match the expected schema."""


class AuthenticationError(PortalError):
    """A guarded callable was invoked without an authenticated session."""


class AuthorizationError(PortalError):
    """A guarded callable was invoked by a user lacking the required role."""


class RedirectLoopError(PortalError):
    """Route guards kept redirecting without settling on a route."""
