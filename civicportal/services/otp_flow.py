"""
OTP Verification Flow.

UI-independent model of the verification-code popup that gates
registration: six single-digit cells, a five-minute advisory countdown,
resend after expiry, and verification with clear-and-retry on failure.

States::

    IDLE --open()--> AWAITING_CODE --submit()--> VERIFYING
    VERIFYING --success--> AUTHENTICATED
    VERIFYING --failure--> AWAITING_CODE (cells cleared, error set)

The countdown only drives the UI; the server decides whether a code is
still valid.

:class:`OTPRegistration` owns the transient ``PendingRegistration`` and
wires a flow to ``AuthService``.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Optional

from civicportal.logger import StructuredLogger
from civicportal.models.auth_models import AuthResult, PendingRegistration, RegistrationDraft
from civicportal.models.enums import OTPPhase
from civicportal.routing import ADMIN_PATH, PROFILE_PATH, landing_path_for
from civicportal.services.auth_service import AuthService

VerifyCallback = Callable[[str], AuthResult]
ResendCallback = Callable[[], AuthResult]
SubmitHook = Callable[[str], None]

_DIGITS_ONLY = re.compile(r"[0-9]*")


def format_time_left(seconds: int) -> str:
    """``m:ss`` rendering of a countdown."""
    minutes, secs = divmod(max(seconds, 0), 60)
    return f"{minutes}:{secs:02d}"


class OTPVerificationFlow:
    """State of one code-entry session.

    Parameters
    ----------
    verify:
        Called with the complete code; returns the verification result.
    resend:
        Requests a new code.
    length:
        Number of digit cells.
    ttl_seconds:
        Countdown start value.
    submit_hook:
        When set, :meth:`submit` hands the code to this hook instead of
        calling *verify* inline; the hook must later report back through
        :meth:`complete_submit`.  The desktop UI uses it to verify off
        the UI thread.
    """

    def __init__(
        self,
        verify: VerifyCallback,
        resend: ResendCallback,
        length: int = 6,
        ttl_seconds: int = 300,
        submit_hook: Optional[SubmitHook] = None,
    ) -> None:
        self._verify = verify
        self._resend = resend
        self._length = length
        self._ttl = ttl_seconds
        self.submit_hook: Optional[SubmitHook] = submit_hook

        self._phase: OTPPhase = OTPPhase.IDLE
        self._cells: list[str] = [""] * length
        self._focus: int = 0
        self._time_left: int = 0
        self._error: Optional[str] = None
        self._masked_number: Optional[str] = None

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def phase(self) -> OTPPhase:
        return self._phase

    @property
    def cells(self) -> list[str]:
        return list(self._cells)

    @property
    def code(self) -> str:
        return "".join(self._cells)

    @property
    def focus_index(self) -> int:
        return self._focus

    @property
    def time_left(self) -> int:
        return self._time_left

    @property
    def time_display(self) -> str:
        return format_time_left(self._time_left)

    @property
    def masked_number(self) -> Optional[str]:
        return self._masked_number

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def is_open(self) -> bool:
        return self._phase != OTPPhase.IDLE

    @property
    def is_verifying(self) -> bool:
        return self._phase == OTPPhase.VERIFYING

    @property
    def is_expired(self) -> bool:
        return self.is_open and self._time_left == 0

    @property
    def can_resend(self) -> bool:
        return self._phase == OTPPhase.AWAITING_CODE and self._time_left == 0

    @property
    def can_verify(self) -> bool:
        return self._phase == OTPPhase.AWAITING_CODE and all(self._cells)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self, masked_number: Optional[str]) -> None:
        self._phase = OTPPhase.AWAITING_CODE
        self._masked_number = masked_number
        self._error = None
        self._time_left = self._ttl
        self._clear_cells()

    def close(self) -> None:
        """Dismiss the popup, discarding the entered code."""
        self._phase = OTPPhase.IDLE
        self._error = None
        self._time_left = 0
        self._clear_cells()

    def tick(self) -> int:
        """Advance the countdown by one second; returns the time left."""
        if self.is_open and self._phase != OTPPhase.AUTHENTICATED and self._time_left > 0:
            self._time_left -= 1
        return self._time_left

    # ------------------------------------------------------------------
    # Code entry
    # ------------------------------------------------------------------

    def input_digit(self, index: int, value: str) -> bool:
        """Handle a cell edit; returns ``True`` when it triggered verification.

        Non-digit input is ignored and only the last typed digit is kept.
        Focus moves to the next cell, and a full code submits itself.
        """
        if self._phase != OTPPhase.AWAITING_CODE or not 0 <= index < self._length:
            return False
        if not _DIGITS_ONLY.fullmatch(value):
            return False

        self._cells[index] = value[-1:]
        if value and index < self._length - 1:
            self._focus = index + 1
        else:
            self._focus = index

        if all(self._cells):
            return self.submit()
        return False

    def backspace(self, index: int) -> None:
        """Clear a filled cell, or step back from an empty one."""
        if self._phase != OTPPhase.AWAITING_CODE or not 0 <= index < self._length:
            return
        if self._cells[index]:
            self._cells[index] = ""
            self._focus = index
        elif index > 0:
            self._focus = index - 1

    def paste(self, text: str) -> bool:
        """Fill every cell from *text* if it is exactly a full code, then submit."""
        if self._phase != OTPPhase.AWAITING_CODE:
            return False
        if not re.fullmatch(rf"[0-9]{{{self._length}}}", text or ""):
            return False
        self._cells = list(text)
        self._focus = self._length - 1
        return self.submit()

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def submit(self) -> bool:
        """Verify the entered code; returns ``True`` if a verify call started."""
        code = self.begin_submit()
        if code is None:
            return False
        if self.submit_hook is not None:
            self.submit_hook(code)
        else:
            self.complete_submit(self._verify(code))
        return True

    def begin_submit(self) -> Optional[str]:
        """Enter ``VERIFYING`` and return the code, or ``None`` if not ready."""
        if not self.can_verify:
            return None
        self._phase = OTPPhase.VERIFYING
        return self.code

    def complete_submit(self, result: AuthResult) -> AuthResult:
        """Apply a verification *result*.  Ignored unless verifying."""
        if self._phase != OTPPhase.VERIFYING:
            return result
        if result.success:
            self._phase = OTPPhase.AUTHENTICATED
            self._error = None
            return result
        self._phase = OTPPhase.AWAITING_CODE
        self._error = result.error or "Verification failed"
        self._clear_cells()
        return result

    # ------------------------------------------------------------------
    # Resend
    # ------------------------------------------------------------------

    def resend(self) -> Optional[AuthResult]:
        """Request a new code.  Only allowed once the countdown has expired."""
        if not self.can_resend:
            return None
        return self.complete_resend(self._resend())

    def complete_resend(self, result: AuthResult) -> AuthResult:
        """Apply a resend *result*.

        The countdown restarts and the cells clear whatever the outcome.
        An existing error is left in place; a failure replaces it.
        """
        if not self.is_open:
            return result
        self._time_left = self._ttl
        self._clear_cells()
        if result.success:
            if isinstance(result.data, str):
                self._masked_number = result.data
        else:
            self._error = result.error or "Failed to resend OTP"
        return result

    def _clear_cells(self) -> None:
        self._cells = [""] * self._length
        self._focus = 0


class OTPRegistration:
    """Coordinates registration through the OTP step.

    Holds the form draft (it survives closing the popup), the pending
    registration (only while a code is outstanding) and the flow.

    Parameters
    ----------
    auth_service:
        Performs ``send-otp``, ``verify-otp`` and ``resend-otp``.
    logger:
        A ``StructuredLogger`` instance for structured JSON log output.
    """

    def __init__(
        self,
        auth_service: AuthService,
        logger: StructuredLogger,
        otp_length: int = 6,
        ttl_seconds: int = 300,
        profile_path: str = PROFILE_PATH,
        admin_path: str = ADMIN_PATH,
    ) -> None:
        self._auth_service = auth_service
        self._logger = logger
        self._otp_length = otp_length
        self._ttl_seconds = ttl_seconds
        self._profile_path = profile_path
        self._admin_path = admin_path

        self.draft: RegistrationDraft = RegistrationDraft()
        self._pending: Optional[PendingRegistration] = None
        self._flow: Optional[OTPVerificationFlow] = None
        self._landing_path: Optional[str] = None

    @property
    def pending(self) -> Optional[PendingRegistration]:
        return self._pending

    @property
    def flow(self) -> Optional[OTPVerificationFlow]:
        return self._flow

    @property
    def landing_path(self) -> Optional[str]:
        """Route to show once verification succeeded, else ``None``."""
        return self._landing_path

    def request_code(self, draft: RegistrationDraft) -> AuthResult:
        """Send the code for *draft* and open the verification flow."""
        self.draft = draft
        self._landing_path = None
        result = self._auth_service.send_otp(draft)
        if not result.success:
            return result

        self._pending = AuthService.pending_from_draft(draft, masked_number=result.data)
        self._flow = OTPVerificationFlow(
            verify=self.verify,
            resend=self.resend,
            length=self._otp_length,
            ttl_seconds=self._ttl_seconds,
        )
        self._flow.open(result.data)
        return result

    def verify(self, code: str) -> AuthResult:
        """Verify *code* for the pending registration."""
        pending = self._pending
        if pending is None:
            return AuthResult(success=False, error="No registration is awaiting verification.")
        result = self._auth_service.verify_otp(pending.contact_number, code)
        if result.success:
            self._landing_path = landing_path_for(
                result.data, profile_path=self._profile_path, admin_path=self._admin_path,
            )
            self._pending = None
            self._logger.info(
                "Registration completed; landing on %s.", self._landing_path,
                extra={"event": "REGISTRATION_COMPLETED"},
            )
        return result

    def resend(self) -> AuthResult:
        pending = self._pending
        if pending is None:
            return AuthResult(success=False, error="No registration is awaiting verification.")
        result = self._auth_service.resend_otp(pending.contact_number)
        if result.success and isinstance(result.data, str):
            pending.masked_number = result.data
        return result

    def close(self) -> None:
        """Abandon the pending registration.  The draft is kept."""
        if self._flow is not None:
            self._flow.close()
        self._pending = None
