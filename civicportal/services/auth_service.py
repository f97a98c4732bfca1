"""
Authentication Service.

Every auth operation of the portal client: login, OTP-gated
registration (plus the legacy direct registration), logout, profile and
password maintenance, token refresh and password recovery.

Operations call the REST API through ``ApiClient`` and report their
outcome to the ``AuthStore`` as actions.  None of them raises: each
returns an ``AuthResult`` that the UI inspects.

Session-changing operations take a request generation from the store
before their first dispatch and hand it back with every later dispatch,
so a completion that was overtaken (e.g. by a logout) is discarded and
reported as ``AuthErrorCode.STALE_REQUEST``.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from civicportal.auth import AuthAction, AuthStore
from civicportal.exceptions import (
    MalformedResponseError,
    NetworkError,
    PortalError,
    RequestError,
)
from civicportal.logger import StructuredLogger
from civicportal.models.auth_models import (
    AuthErrorCode,
    AuthResult,
    FieldError,
    MessageResponse,
    OTPDispatchResponse,
    PendingRegistration,
    RefreshResponse,
    RegistrationDraft,
    TokenResponse,
    UserEnvelope,
    ValidationResult,
)
from civicportal.models.enums import AuthActionType, Barangay
from civicportal.services.api_client import ApiClient
from civicportal.services.token_store import TokenStore
from civicportal.utils.contact_numbers import normalize_contact_number, submission_contact_number

NETWORK_ERROR_MESSAGE: str = "Network error, please try again."
MALFORMED_RESPONSE_MESSAGE: str = "Unexpected response from the server."
STALE_REQUEST_MESSAGE: str = "This request was superseded by a newer one."
VALIDATION_SUMMARY: str = "Please correct the highlighted fields."

_NAME_RE: re.Pattern[str] = re.compile(r"^[a-zA-Z\s]+$")
_SPECIAL_CHAR_RE: re.Pattern[str] = re.compile(r"[@$!%*?&]")
_PROFILE_FIELDS: frozenset[str] = frozenset({"firstName", "lastName", "barangay", "profile"})
_BIO_MAX: int = 500
_ADDRESS_MAX: int = 200

TeardownListener = Callable[[str], None]
_Schema = TypeVar("_Schema", bound=BaseModel)


class AuthService:
    """Client-side authentication operations.

    Parameters
    ----------
    api:
        HTTP client for the portal API.
    store:
        The session state container every operation reports to.
    token_store:
        Read access to the persisted tokens (writes go through ``store``).
    logger:
        Structured JSON logger for audit-grade logging.
    login_path:
        Route shown after logout.
    otp_length:
        Number of digits in a verification code.
    """

    def __init__(
        self,
        api: ApiClient,
        store: AuthStore,
        token_store: TokenStore,
        logger: StructuredLogger,
        login_path: str = "/login",
        otp_length: int = 6,
    ) -> None:
        self._api: ApiClient = api
        self._store: AuthStore = store
        self._token_store: TokenStore = token_store
        self._logger: StructuredLogger = logger
        self._login_path: str = login_path
        self._otp_length: int = otp_length
        self._teardown_listeners: list[TeardownListener] = []

    @property
    def store(self) -> AuthStore:
        return self._store

    def add_teardown_listener(self, listener: TeardownListener) -> None:
        """Register *listener* to be called with the login path after logout."""
        self._teardown_listeners.append(listener)

    # ==================================================================
    # Validation helpers
    # ==================================================================

    @staticmethod
    def validate_contact_number(contact_number: str) -> ValidationResult:
        if not (contact_number or "").strip():
            return ValidationResult(is_valid=False, error_message="Contact number is required.")
        if normalize_contact_number(contact_number) is None:
            return ValidationResult(
                is_valid=False,
                error_message="Please enter a valid Philippine mobile number.",
            )
        return ValidationResult(is_valid=True)

    @staticmethod
    def validate_password(password: str) -> ValidationResult:
        """Enforce the password policy.

        Policy: minimum 8 characters, at least 1 uppercase letter,
        1 lowercase letter, 1 digit, and 1 special character from
        ``@$!%*?&``.
        """
        if len(password) < 8:
            return ValidationResult(
                is_valid=False,
                error_message="Password must be at least 8 characters long.",
            )
        if not re.search(r"[A-Z]", password):
            return ValidationResult(
                is_valid=False,
                error_message="Password must contain at least one uppercase letter.",
            )
        if not re.search(r"[a-z]", password):
            return ValidationResult(
                is_valid=False,
                error_message="Password must contain at least one lowercase letter.",
            )
        if not re.search(r"\d", password):
            return ValidationResult(
                is_valid=False,
                error_message="Password must contain at least one number.",
            )
        if not _SPECIAL_CHAR_RE.search(password):
            return ValidationResult(
                is_valid=False,
                error_message="Password must contain at least one special character (@$!%*?&).",
            )
        return ValidationResult(is_valid=True)

    @staticmethod
    def validate_name(name: str, field_label: str) -> ValidationResult:
        """Validate a first or last name: 2-50 letters and spaces."""
        stripped = (name or "").strip()
        if not stripped:
            return ValidationResult(is_valid=False, error_message=f"{field_label} is required.")
        if not 2 <= len(stripped) <= 50:
            return ValidationResult(
                is_valid=False,
                error_message=f"{field_label} must be between 2 and 50 characters.",
            )
        if not _NAME_RE.match(stripped):
            return ValidationResult(
                is_valid=False,
                error_message=f"{field_label} can only contain letters and spaces.",
            )
        return ValidationResult(is_valid=True)

    @staticmethod
    def validate_barangay(barangay: str) -> ValidationResult:
        if not (barangay or "").strip():
            return ValidationResult(is_valid=False, error_message="Barangay is required.")
        try:
            Barangay(barangay)
        except ValueError:
            return ValidationResult(is_valid=False, error_message="Please select a valid barangay.")
        return ValidationResult(is_valid=True)

    @staticmethod
    def validate_otp(code: str, length: int = 6) -> ValidationResult:
        if not re.fullmatch(rf"[0-9]{{{length}}}", code or ""):
            return ValidationResult(
                is_valid=False,
                error_message=f"Please enter the complete {length}-digit code.",
            )
        return ValidationResult(is_valid=True)

    @classmethod
    def validate_registration(cls, draft: RegistrationDraft) -> list[FieldError]:
        """Return every field-level problem with *draft* (empty when valid)."""
        checks: list[tuple[str, Optional[str], ValidationResult]] = [
            ("firstName", draft.first_name, cls.validate_name(draft.first_name, "First name")),
            ("lastName", draft.last_name, cls.validate_name(draft.last_name, "Last name")),
            ("contactNumber", draft.contact_number, cls.validate_contact_number(draft.contact_number)),
            ("barangay", draft.barangay, cls.validate_barangay(draft.barangay)),
            ("password", None, cls.validate_password(draft.password)),
        ]
        errors = [
            FieldError(field=field, message=result.error_message or "", value=value)
            for field, value, result in checks
            if not result.is_valid
        ]
        if draft.password != draft.confirm_password:
            errors.append(FieldError(field="confirmPassword", message="Passwords do not match."))
        return errors

    @classmethod
    def pending_from_draft(
        cls, draft: RegistrationDraft, masked_number: Optional[str] = None,
    ) -> PendingRegistration:
        """Promote a validated *draft* to the payload the API expects.

        Raises
        ------
        ValueError
            If the draft has not passed :meth:`validate_registration`.
        """
        return PendingRegistration(
            first_name=draft.first_name.strip(),
            last_name=draft.last_name.strip(),
            contact_number=submission_contact_number(draft.contact_number),
            barangay=Barangay(draft.barangay),
            password=draft.password,
            masked_number=masked_number,
        )

    # ==================================================================
    # Login & registration
    # ==================================================================

    def login(self, contact_number: str, password: str) -> AuthResult:
        """Authenticate with contact number and password.

        Returns
        -------
        AuthResult
            ``data`` is the authenticated ``User`` on success.
        """
        errors: list[FieldError] = []
        contact_check = self.validate_contact_number(contact_number)
        if not contact_check.is_valid:
            errors.append(FieldError(field="contactNumber", message=contact_check.error_message or ""))
        if not password:
            errors.append(FieldError(field="password", message="Password is required."))
        if errors:
            return self._validation_failure(errors)

        body = {
            "contactNumber": submission_contact_number(contact_number),
            "password": password,
        }
        return self._session_request(
            path="/auth/login",
            body=body,
            start=AuthActionType.LOGIN_START,
            success=AuthActionType.LOGIN_SUCCESS,
            failure=AuthActionType.LOGIN_FAILURE,
            default_error="Login failed",
            event="LOGIN",
        )

    def register(self, draft: RegistrationDraft) -> AuthResult:
        """Register directly, without the OTP step.

        Kept for servers that do not run the OTP flow.  Server-side
        field errors come back in ``validation_errors``.
        """
        errors = self.validate_registration(draft)
        if errors:
            return self._validation_failure(errors)

        body = self.pending_from_draft(draft).to_wire()
        body["confirmPassword"] = draft.confirm_password
        return self._session_request(
            path="/auth/register",
            body=body,
            start=AuthActionType.REGISTER_START,
            success=AuthActionType.REGISTER_SUCCESS,
            failure=AuthActionType.REGISTER_FAILURE,
            default_error="Registration failed",
            event="REGISTER",
        )

    # ==================================================================
    # OTP registration
    # ==================================================================

    def send_otp(self, draft: RegistrationDraft) -> AuthResult:
        """Ask the server to text a verification code for *draft*.

        Never authenticates.  ``data`` is the masked contact number the
        server reports (e.g. ``091*****567``).
        """
        errors = self.validate_registration(draft)
        if errors:
            return self._validation_failure(errors)

        pending = self.pending_from_draft(draft)
        ticket = self._store.begin_request()
        self._store.dispatch(AuthAction(type=AuthActionType.OTP_START), ticket)
        try:
            body = self._api.post(
                "/auth/send-otp", json=pending.to_wire(), default_error="Failed to send OTP",
            )
            parsed = self._parse(OTPDispatchResponse, body)
        except PortalError as exc:
            result = self._failure_from(exc, "Failed to send OTP")
            if not self._store.dispatch(
                AuthAction(type=AuthActionType.OTP_SEND_FAILURE, payload=result.error), ticket,
            ):
                return self._stale()
            return result

        if not self._store.dispatch(
            AuthAction(type=AuthActionType.SET_LOADING, payload=False), ticket,
        ):
            return self._stale()

        self._logger.info(
            "Verification code requested.",
            extra={"event": "OTP_SENT", "masked_number": parsed.data.masked_number},
        )
        return AuthResult(success=True, data=parsed.data.masked_number, message=parsed.message)

    def verify_otp(self, contact_number: str, otp: str) -> AuthResult:
        """Submit the code; success authenticates exactly like a login."""
        otp_check = self.validate_otp(otp, self._otp_length)
        if not otp_check.is_valid:
            return self._validation_failure(
                [FieldError(field="otp", message=otp_check.error_message or "")],
            )
        contact_check = self.validate_contact_number(contact_number)
        if not contact_check.is_valid:
            return self._validation_failure(
                [FieldError(field="contactNumber", message=contact_check.error_message or "")],
            )

        body = {"contactNumber": submission_contact_number(contact_number), "otp": otp}
        return self._session_request(
            path="/auth/verify-otp",
            body=body,
            start=AuthActionType.OTP_START,
            success=AuthActionType.OTP_SUCCESS,
            failure=AuthActionType.OTP_VERIFY_FAILURE,
            default_error="OTP verification failed",
            event="OTP_VERIFIED",
        )

    def resend_otp(self, contact_number: str) -> AuthResult:
        """Request a fresh code.  Leaves the auth state untouched."""
        return self._dispatch_free_code_request(
            "/auth/resend-otp", contact_number, "Failed to resend OTP", "OTP_RESENT",
        )

    # ==================================================================
    # Logout & refresh
    # ==================================================================

    def logout(self) -> AuthResult:
        """End the session.  Always succeeds from the client's side.

        The server is told on a best-effort basis; whatever happens
        there, local state and stored tokens are cleared and teardown
        listeners are sent to the login route.
        """
        state = self._store.state
        user_id = state.user.id if state.user is not None else "unknown"
        token = state.token or self._token_store.get_token()

        if token:
            try:
                self._api.post("/auth/logout", token=token)
            except PortalError as exc:
                self._logger.warning("Server-side logout failed for %s: %s", user_id, exc.message)
        else:
            self._logger.debug("No token held; skipping server-side logout.")

        self._store.dispatch(AuthAction(type=AuthActionType.LOGOUT))
        self._logger.info(
            "User logged out: %s", user_id,
            extra={"event": "LOGOUT", "user_id": user_id},
        )

        for listener in list(self._teardown_listeners):
            try:
                listener(self._login_path)
            except Exception:
                self._logger.error(
                    "Teardown listener %r raised.", listener, exc_info=True,
                )
        return AuthResult(success=True)

    def refresh_auth_token(self) -> AuthResult:
        """Trade the stored refresh token for a new access token.

        The refresh token itself is kept.  Any failure, including a
        missing refresh token, logs the session out locally.
        """
        ticket = self._store.begin_request()
        refresh_token = self._token_store.get_refresh_token()
        if not refresh_token:
            self._store.dispatch(AuthAction(type=AuthActionType.LOGOUT))
            return AuthResult(
                success=False,
                error="No refresh token available.",
                error_code=AuthErrorCode.SESSION_EXPIRED,
            )

        try:
            body = self._api.post(
                "/auth/refresh-token",
                json={"refreshToken": refresh_token},
                default_error="Token refresh failed",
            )
            parsed = self._parse(RefreshResponse, body)
            user = parsed.user or self._store.state.user
            if user is None:
                raise MalformedResponseError("Refresh response did not include a user")
        except PortalError as exc:
            if not self._store.is_current(ticket):
                return self._stale()
            self._logger.warning(
                "Token refresh failed: %s", exc.message,
                extra={"event": "TOKEN_REFRESH_FAILED"},
            )
            self._store.dispatch(AuthAction(type=AuthActionType.LOGOUT))
            result = self._failure_from(exc, "Token refresh failed")
            return result.model_copy(update={"error_code": AuthErrorCode.SESSION_EXPIRED})

        committed = self._store.dispatch(
            AuthAction(
                type=AuthActionType.LOGIN_SUCCESS,
                payload={"user": user, "token": parsed.token, "refresh_token": refresh_token},
            ),
            ticket,
        )
        if not committed:
            return self._stale()

        self._logger.info("Session token refreshed.", extra={"event": "TOKEN_REFRESHED"})
        return AuthResult(success=True, data=user, message=parsed.message)

    def fetch_current_user(self) -> AuthResult:
        """``GET /auth/me`` with the stored token.  Dispatches nothing."""
        try:
            body = self._api.get("/auth/me", authenticated=True, default_error="Failed to load user")
            parsed = self._parse(UserEnvelope, body)
        except PortalError as exc:
            return self._failure_from(exc, "Failed to load user", authenticated=True)
        return AuthResult(success=True, data=parsed.data)

    # ==================================================================
    # Profile & password
    # ==================================================================

    def update_profile(self, profile_data: dict[str, Any]) -> AuthResult:
        """Update the signed-in user's profile.

        Parameters
        ----------
        profile_data:
            Any of ``firstName``, ``lastName``, ``barangay`` and
            ``profile`` (``{"bio": ..., "address": ...}``).
        """
        errors = self._validate_profile_update(profile_data)
        if errors:
            return self._validation_failure(errors)
        if not self._store.state.is_authenticated:
            return AuthResult(
                success=False,
                error="You need to sign in again.",
                error_code=AuthErrorCode.SESSION_EXPIRED,
            )

        generation = self._store.generation
        try:
            body = self._api.put(
                "/auth/profile",
                json=profile_data,
                authenticated=True,
                default_error="Profile update failed",
            )
            parsed = self._parse(UserEnvelope, body)
        except PortalError as exc:
            return self._failure_from(exc, "Profile update failed", authenticated=True)

        if not self._store.dispatch(
            AuthAction(type=AuthActionType.UPDATE_USER, payload=parsed.data.to_wire()),
            generation,
        ):
            return self._stale()

        self._logger.info(
            "Profile updated for %s.", parsed.data.id,
            extra={"event": "PROFILE_UPDATED", "user_id": parsed.data.id},
        )
        return AuthResult(success=True, data=self._store.state.user, message=parsed.message)

    def change_password(
        self, current_password: str, new_password: str, confirm_new_password: str,
    ) -> AuthResult:
        """Change the signed-in user's password.  Auth state is unchanged."""
        errors: list[FieldError] = []
        if not current_password:
            errors.append(FieldError(field="currentPassword", message="Current password is required."))
        policy = self.validate_password(new_password)
        if not policy.is_valid:
            errors.append(FieldError(field="newPassword", message=policy.error_message or ""))
        if new_password != confirm_new_password:
            errors.append(FieldError(field="confirmNewPassword", message="Passwords do not match."))
        if current_password and current_password == new_password:
            errors.append(FieldError(
                field="newPassword",
                message="New password must be different from current password.",
            ))
        if errors:
            return self._validation_failure(errors)

        try:
            body = self._api.put(
                "/auth/change-password",
                json={
                    "currentPassword": current_password,
                    "newPassword": new_password,
                    "confirmNewPassword": confirm_new_password,
                },
                authenticated=True,
                default_error="Password change failed",
            )
            parsed = self._parse(MessageResponse, body)
        except PortalError as exc:
            return self._failure_from(exc, "Password change failed", authenticated=True)

        self._logger.info("Password changed.", extra={"event": "PASSWORD_CHANGED"})
        return AuthResult(success=True, message=parsed.message)

    # ==================================================================
    # Password recovery
    # ==================================================================

    def forgot_password(self, contact_number: str) -> AuthResult:
        """Text a reset code to *contact_number*; ``data`` is the masked number."""
        return self._dispatch_free_code_request(
            "/auth/forgot-password", contact_number, "Failed to send reset code", "RESET_CODE_SENT",
        )

    def resend_forgot_password_otp(self, contact_number: str) -> AuthResult:
        return self._dispatch_free_code_request(
            "/auth/resend-forgot-password-otp",
            contact_number,
            "Failed to resend reset code",
            "RESET_CODE_SENT",
        )

    def reset_password(
        self,
        contact_number: str,
        otp: str,
        new_password: str,
        confirm_new_password: str,
    ) -> AuthResult:
        """Set a new password using a reset code.  Does not sign in."""
        errors: list[FieldError] = []
        for field, result in (
            ("contactNumber", self.validate_contact_number(contact_number)),
            ("otp", self.validate_otp(otp, self._otp_length)),
            ("newPassword", self.validate_password(new_password)),
        ):
            if not result.is_valid:
                errors.append(FieldError(field=field, message=result.error_message or ""))
        if new_password != confirm_new_password:
            errors.append(FieldError(field="confirmNewPassword", message="Passwords do not match."))
        if errors:
            return self._validation_failure(errors)

        try:
            body = self._api.post(
                "/auth/reset-password",
                json={
                    "contactNumber": submission_contact_number(contact_number),
                    "otp": otp,
                    "newPassword": new_password,
                    "confirmNewPassword": confirm_new_password,
                },
                default_error="Password reset failed",
            )
            parsed = self._parse(MessageResponse, body)
        except PortalError as exc:
            return self._failure_from(exc, "Password reset failed")

        self._logger.info("Password reset completed.", extra={"event": "PASSWORD_RESET"})
        return AuthResult(success=True, message=parsed.message)

    def clear_error(self) -> None:
        self._store.dispatch(AuthAction(type=AuthActionType.CLEAR_ERROR))

    # ==================================================================
    # Private helpers
    # ==================================================================

    def _session_request(
        self,
        path: str,
        body: dict[str, Any],
        start: AuthActionType,
        success: AuthActionType,
        failure: AuthActionType,
        default_error: str,
        event: str,
    ) -> AuthResult:
        """Run a request whose success establishes a new session."""
        ticket = self._store.begin_request()
        self._store.dispatch(AuthAction(type=start), ticket)
        try:
            parsed = self._parse(
                TokenResponse, self._api.post(path, json=body, default_error=default_error),
            )
        except PortalError as exc:
            result = self._failure_from(exc, default_error)
            self._logger.warning(
                "%s failed: %s", path, result.error,
                extra={"event": f"{event}_FAILED", "error_code": str(result.error_code)},
            )
            if not self._store.dispatch(AuthAction(type=failure, payload=result.error), ticket):
                return self._stale()
            return result

        committed = self._store.dispatch(
            AuthAction(
                type=success,
                payload={
                    "user": parsed.user,
                    "token": parsed.token,
                    "refresh_token": parsed.refresh_token,
                },
            ),
            ticket,
        )
        if not committed:
            return self._stale()

        self._logger.info(
            "User authenticated: %s (role: %s)", parsed.user.full_name, parsed.user.role,
            extra={"event": event, "user_id": parsed.user.id},
        )
        return AuthResult(success=True, data=parsed.user, message=parsed.message)

    def _dispatch_free_code_request(
        self, path: str, contact_number: str, default_error: str, event: str,
    ) -> AuthResult:
        """POST ``{contactNumber}`` to a code-sending endpoint."""
        check = self.validate_contact_number(contact_number)
        if not check.is_valid:
            return self._validation_failure(
                [FieldError(field="contactNumber", message=check.error_message or "")],
            )
        try:
            body = self._api.post(
                path,
                json={"contactNumber": submission_contact_number(contact_number)},
                default_error=default_error,
            )
            parsed = self._parse(OTPDispatchResponse, body)
        except PortalError as exc:
            return self._failure_from(exc, default_error)

        self._logger.info(
            "Verification code sent via %s.", path,
            extra={"event": event, "masked_number": parsed.data.masked_number},
        )
        return AuthResult(success=True, data=parsed.data.masked_number, message=parsed.message)

    def _validate_profile_update(self, data: dict[str, Any]) -> list[FieldError]:
        if not data or not any(key in _PROFILE_FIELDS for key in data):
            return [FieldError(field="profile", message="Nothing to update.")]

        errors: list[FieldError] = []
        for field, label in (("firstName", "First name"), ("lastName", "Last name")):
            if field in data:
                result = self.validate_name(str(data[field] or ""), label)
                if not result.is_valid:
                    errors.append(FieldError(field=field, message=result.error_message or "", value=data[field]))
        if "barangay" in data:
            result = self.validate_barangay(str(data["barangay"] or ""))
            if not result.is_valid:
                errors.append(FieldError(field="barangay", message=result.error_message or "", value=data["barangay"]))

        profile = data.get("profile") or {}
        if not isinstance(profile, dict):
            errors.append(FieldError(field="profile", message="Profile must be an object."))
            return errors
        if len(profile.get("bio") or "") > _BIO_MAX:
            errors.append(FieldError(field="bio", message=f"Bio cannot exceed {_BIO_MAX} characters."))
        if len(profile.get("address") or "") > _ADDRESS_MAX:
            errors.append(FieldError(
                field="address", message=f"Address cannot exceed {_ADDRESS_MAX} characters.",
            ))
        return errors

    @staticmethod
    def _parse(schema: type[_Schema], body: dict[str, Any]) -> _Schema:
        try:
            return schema.model_validate(body)
        except ValidationError as exc:
            raise MalformedResponseError(
                f"Response did not match {schema.__name__}",
                details={"errors": exc.error_count()},
            ) from exc

    @staticmethod
    def _validation_failure(errors: list[FieldError]) -> AuthResult:
        return AuthResult(
            success=False,
            error=errors[0].message if len(errors) == 1 else VALIDATION_SUMMARY,
            error_code=AuthErrorCode.VALIDATION_ERROR,
            validation_errors=errors,
        )

    def _failure_from(
        self, exc: PortalError, default_error: str, authenticated: bool = False,
    ) -> AuthResult:
        if isinstance(exc, RequestError):
            code = AuthErrorCode.REQUEST_ERROR
            if authenticated and exc.status_code == 401:
                code = AuthErrorCode.SESSION_EXPIRED
            return AuthResult(
                success=False,
                error=exc.message or default_error,
                error_code=code,
                validation_errors=exc.errors,
            )
        if isinstance(exc, NetworkError):
            return AuthResult(
                success=False,
                error=NETWORK_ERROR_MESSAGE,
                error_code=AuthErrorCode.NETWORK_ERROR,
            )
        if isinstance(exc, MalformedResponseError):
            self._logger.error("Malformed API response: %s", exc.message)
            return AuthResult(
                success=False,
                error=MALFORMED_RESPONSE_MESSAGE,
                error_code=AuthErrorCode.MALFORMED_RESPONSE,
            )
        return AuthResult(success=False, error=default_error, error_code=AuthErrorCode.REQUEST_ERROR)

    @staticmethod
    def _stale() -> AuthResult:
        return AuthResult(
            success=False,
            error=STALE_REQUEST_MESSAGE,
            error_code=AuthErrorCode.STALE_REQUEST,
        )
