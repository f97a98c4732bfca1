"""
Authentication Pipeline Models.

Pydantic models for the auth request/response contracts between
``AuthService``, the portal REST API and the UI layer.

Every ``AuthService`` operation returns an ``AuthResult`` rather than
raising, and every successful API body is parsed through one of the
response schemas below before it can reach the Auth Store.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from civicportal.models.enums import Barangay
from civicportal.models.user import User


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------

class AuthErrorCode(StrEnum):
    """Exhaustive enumeration of authentication error categories."""

    VALIDATION_ERROR = "validation_error"
    REQUEST_ERROR = "request_error"
    NETWORK_ERROR = "network_error"
    MALFORMED_RESPONSE = "malformed_response"
    SESSION_EXPIRED = "session_expired"
    STALE_REQUEST = "stale_request"


class FieldError(BaseModel):
    """A single field-level validation error, client or server side."""

    field: str
    message: str
    value: Optional[Any] = None

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Validation result
# ---------------------------------------------------------------------------

class ValidationResult(BaseModel):
    """Result of a single client-side field validation check.

    Attributes
    ----------
    is_valid:
        ``True`` when the value passes the validation rule.
    error_message:
        Human-readable description of the failure, or ``None`` on success.
    """

    is_valid: bool
    error_message: Optional[str] = None

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Unified auth response
# ---------------------------------------------------------------------------

class AuthResult(BaseModel):
    """Unified response for every ``AuthService`` operation.

    Attributes
    ----------
    success:
        ``True`` when the operation completed without error.
    data:
        Operation payload on success (a ``User``, a masked number, ...).
    error:
        Human-readable error description (``None`` on success).
    error_code:
        Structured error category (``None`` on success).
    validation_errors:
        Field-level errors from client validation or the server.
    message:
        Informational server message on success, if any.
    """

    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    error_code: Optional[AuthErrorCode] = None
    validation_errors: list[FieldError] = Field(default_factory=list)
    message: Optional[str] = None

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# API response schemas
# ---------------------------------------------------------------------------

class _WireModel(BaseModel):
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "ignore",
    }


class TokenResponse(_WireModel):
    """Body of a successful login, register or OTP verification."""

    user: User
    token: str = Field(min_length=1)
    refresh_token: Optional[str] = None
    message: Optional[str] = None


class MaskedNumber(_WireModel):
    masked_number: str


class OTPDispatchResponse(_WireModel):
    """Body of send-otp, resend-otp and forgot-password."""

    data: MaskedNumber
    message: Optional[str] = None


class UserEnvelope(_WireModel):
    """Body of ``GET /auth/me`` and ``PUT /auth/profile``."""

    data: User
    message: Optional[str] = None


class RefreshResponse(_WireModel):
    """Body of ``POST /auth/refresh-token``."""

    token: str = Field(min_length=1)
    user: Optional[User] = None
    message: Optional[str] = None


class MessageResponse(_WireModel):
    message: Optional[str] = None


class ErrorBody(_WireModel):
    """Error envelope the server returns on non-2xx responses.

    ``errors`` arrives either as field objects or, from schema validation
    failures, as plain strings.  Strings become field-less ``FieldError``
    entries and anything else is dropped.
    """

    message: Optional[str] = None
    errors: list[FieldError] = Field(default_factory=list)

    @field_validator("errors", mode="before")
    @classmethod
    def _coerce_errors(cls, value: Any) -> list[dict[str, Any]]:
        if not isinstance(value, list):
            return []
        coerced: list[dict[str, Any]] = []
        for entry in value:
            if isinstance(entry, str):
                coerced.append({"field": "", "message": entry})
            elif isinstance(entry, dict) and isinstance(entry.get("message"), str):
                coerced.append({**entry, "field": str(entry.get("field") or "")})
        return coerced


# ---------------------------------------------------------------------------
# Registration flow
# ---------------------------------------------------------------------------

class RegistrationDraft(BaseModel):
    """Form values captured before the OTP step.

    ``contact_number`` holds whatever the user typed; normalisation
    happens when the draft is promoted to a ``PendingRegistration``.
    """

    first_name: str = ""
    last_name: str = ""
    contact_number: str = ""
    barangay: str = ""
    password: str = ""
    confirm_password: str = ""

    model_config = {"from_attributes": True}


class PendingRegistration(BaseModel):
    """A registration awaiting OTP verification."""

    first_name: str
    last_name: str
    contact_number: str
    barangay: Barangay
    password: str
    masked_number: Optional[str] = None

    def to_wire(self) -> dict[str, Any]:
        """Body for ``POST /auth/send-otp`` and ``POST /auth/register``."""
        return {
            "firstName": self.first_name,
            "lastName": self.last_name,
            "contactNumber": self.contact_number,
            "barangay": str(self.barangay),
            "password": self.password,
        }
