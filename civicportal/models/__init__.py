"""
Data Models Package.

Re-exports the Pydantic models and enumerations for short imports:
    from civicportal.models import User, UserRole, Barangay
    from civicportal.models import AuthResult, AuthErrorCode, RegistrationDraft
"""

from __future__ import annotations

from civicportal.models.enums import (
    AuthActionType,
    AuthErrorSource,
    Barangay,
    BootstrapOutcome,
    GuardOutcome,
    OTPPhase,
    UserRole,
)
from civicportal.models.user import User, UserProfile
from civicportal.models.auth_models import (
    AuthErrorCode,
    AuthResult,
    FieldError,
    PendingRegistration,
    RegistrationDraft,
    ValidationResult,
)

__all__ = [
    "AuthActionType",
    "AuthErrorCode",
    "AuthErrorSource",
    "AuthResult",
    "Barangay",
    "BootstrapOutcome",
    "FieldError",
    "GuardOutcome",
    "OTPPhase",
    "PendingRegistration",
    "RegistrationDraft",
    "User",
    "UserProfile",
    "UserRole",
    "ValidationResult",
]
