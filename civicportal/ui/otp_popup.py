"""OTP Popup: verification-code entry for registration.

A modal ``CTkToplevel`` rendering an ``OTPVerificationFlow``: one entry
per digit, the countdown, the resend and verify buttons and the error
line.  **Thin UI Rule**: cell editing, auto-submit and countdown rules
all live in the flow; this window only forwards key events to it and
re-renders.

Network calls (verify, resend) run on background threads and report
back via ``self.after(0, ...)``.
"""

from __future__ import annotations

import threading
import tkinter as tk
from typing import Callable, Optional

import customtkinter as ctk

from civicportal.logger import StructuredLogger
from civicportal.models.auth_models import AuthResult
from civicportal.models.enums import OTPPhase
from civicportal.services.otp_flow import OTPRegistration, OTPVerificationFlow
from civicportal.ui.theme import (
    ACCENT_HOVER,
    ACCENT_PRIMARY,
    CONTENT_CARD_BG,
    CORNER_RADIUS,
    ERROR_TEXT,
    FONT_BODY,
    FONT_BUTTON,
    FONT_HEADING,
    FONT_OTP_CELL,
    FONT_SMALL,
    INPUT_BG,
    INPUT_BORDER,
    PADDING_LG,
    PADDING_MD,
    PADDING_SM,
    TEXT_LIGHT,
    TEXT_PRIMARY,
    TEXT_SECONDARY,
)

_CELL_SIZE: int = 48
_TICK_MS: int = 1000


class OTPPopup(ctk.CTkToplevel):
    """Modal code-entry window.

    Parameters
    ----------
    parent:
        Owning window.
    registration:
        Coordinator holding the pending registration and its flow.
    on_verified:
        Called on the UI thread with the landing path once the code
        was accepted.
    on_closed:
        Called when the user dismisses the popup without verifying.
    logger:
        Structured logger instance.
    """

    def __init__(
        self,
        parent: ctk.CTkBaseClass,
        registration: OTPRegistration,
        on_verified: Callable[[str], None],
        on_closed: Callable[[], None],
        logger: StructuredLogger,
    ) -> None:
        super().__init__(parent)

        flow = registration.flow
        if flow is None:
            raise ValueError("OTPPopup needs an open verification flow")

        self._registration: OTPRegistration = registration
        self._flow: OTPVerificationFlow = flow
        self._on_verified = on_verified
        self._on_closed = on_closed
        self._logger = logger

        self._cells: list[ctk.CTkEntry] = []
        self._tick_job: Optional[str] = None
        self._resending: bool = False

        self._flow.submit_hook = self._verify_in_background

        self.title("Verify your number")
        self.resizable(False, False)
        self.configure(fg_color=CONTENT_CARD_BG)
        self.protocol("WM_DELETE_WINDOW", self._handle_close)
        self.transient(parent.winfo_toplevel())

        self._build_ui()
        self._render()
        self._schedule_tick()
        self.after(50, self._grab_and_focus)

    # ------------------------------------------------------------------
    # UI Construction
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        inner = ctk.CTkFrame(self, fg_color="transparent")
        inner.pack(fill="both", expand=True, padx=PADDING_LG, pady=PADDING_LG)

        ctk.CTkLabel(
            inner, text="Enter verification code", font=FONT_HEADING, text_color=TEXT_PRIMARY,
        ).pack(pady=(0, 4))

        self._subtitle_label = ctk.CTkLabel(
            inner, text="", font=FONT_BODY, text_color=TEXT_SECONDARY,
        )
        self._subtitle_label.pack(pady=(0, PADDING_MD))

        cell_row = ctk.CTkFrame(inner, fg_color="transparent")
        cell_row.pack(pady=(0, PADDING_MD))
        for index in range(len(self._flow.cells)):
            cell = ctk.CTkEntry(
                cell_row,
                width=_CELL_SIZE,
                height=_CELL_SIZE,
                justify="center",
                font=FONT_OTP_CELL,
                fg_color=INPUT_BG,
                border_color=INPUT_BORDER,
                text_color=TEXT_PRIMARY,
                corner_radius=CORNER_RADIUS,
            )
            cell.grid(row=0, column=index, padx=4)
            cell.bind("<KeyRelease>", lambda event, i=index: self._on_key(i, event))
            cell.bind("<BackSpace>", lambda event, i=index: self._on_backspace(i))
            cell.bind("<<Paste>>", lambda event: self._on_paste())
            self._cells.append(cell)

        self._timer_label = ctk.CTkLabel(
            inner, text="", font=FONT_SMALL, text_color=TEXT_SECONDARY,
        )
        self._timer_label.pack(pady=(0, PADDING_SM))

        self._error_label = ctk.CTkLabel(
            inner, text="", font=FONT_SMALL, text_color=ERROR_TEXT, wraplength=340,
        )
        self._error_label.pack(fill="x", pady=(0, PADDING_SM))

        self._verify_button = ctk.CTkButton(
            inner,
            text="Verify",
            font=FONT_BUTTON,
            fg_color=ACCENT_PRIMARY,
            hover_color=ACCENT_HOVER,
            text_color=TEXT_LIGHT,
            height=44,
            corner_radius=CORNER_RADIUS,
            command=self._handle_verify,
        )
        self._verify_button.pack(fill="x", pady=(0, PADDING_SM))

        self._resend_button = ctk.CTkButton(
            inner,
            text="Resend code",
            font=FONT_SMALL,
            fg_color="transparent",
            hover_color="#eef2ef",
            text_color=ACCENT_PRIMARY,
            height=28,
            corner_radius=CORNER_RADIUS,
            command=self._handle_resend,
        )
        self._resend_button.pack()

    def _grab_and_focus(self) -> None:
        try:
            self.grab_set()
        except tk.TclError:
            # Window not yet viewable; modality is best-effort.
            pass
        self._focus_cell(self._flow.focus_index)

    # ------------------------------------------------------------------
    # Key handling
    # ------------------------------------------------------------------

    def _on_key(self, index: int, event: tk.Event[tk.Misc]) -> None:
        if len(event.char) != 1 or not event.char.isprintable():
            return
        self._flow.input_digit(index, self._cells[index].get().strip())
        self._render()

    def _on_backspace(self, index: int) -> str:
        self._flow.backspace(index)
        self._render()
        return "break"

    def _on_paste(self) -> str:
        try:
            text = self.clipboard_get().strip()
        except tk.TclError:
            return "break"
        self._flow.paste(text)
        self._render()
        return "break"

    # ------------------------------------------------------------------
    # Verify / resend
    # ------------------------------------------------------------------

    def _handle_verify(self) -> None:
        self._flow.submit()
        self._render()

    def _verify_in_background(self, code: str) -> None:
        """``submit_hook`` for the flow: verify off the UI thread."""

        def do_verify() -> None:
            result = self._registration.verify(code)
            self.after(0, self._handle_verify_result, result)

        threading.Thread(target=do_verify, name="otp-verify", daemon=True).start()

    def _handle_verify_result(self, result: AuthResult) -> None:
        self._flow.complete_submit(result)
        if self._flow.phase == OTPPhase.AUTHENTICATED:
            landing = self._registration.landing_path or "/profile"
            self._teardown()
            self._on_verified(landing)
            return
        self._render()

    def _handle_resend(self) -> None:
        if not self._flow.can_resend or self._resending:
            return
        self._resending = True
        self._resend_button.configure(text="Sending...", state="disabled")

        def do_resend() -> None:
            result = self._registration.resend()
            self.after(0, self._handle_resend_result, result)

        threading.Thread(target=do_resend, name="otp-resend", daemon=True).start()

    def _handle_resend_result(self, result: AuthResult) -> None:
        self._resending = False
        self._flow.complete_resend(result)
        self._resend_button.configure(text="Resend code")
        self._render()
        self._schedule_tick()
        self._focus_cell(self._flow.focus_index)

    # ------------------------------------------------------------------
    # Countdown
    # ------------------------------------------------------------------

    def _schedule_tick(self) -> None:
        if self._tick_job is not None:
            self.after_cancel(self._tick_job)
        self._tick_job = self.after(_TICK_MS, self._tick)

    def _tick(self) -> None:
        self._tick_job = None
        remaining = self._flow.tick()
        self._render_timer()
        if remaining > 0 and self._flow.is_open:
            self._tick_job = self.after(_TICK_MS, self._tick)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _render(self) -> None:
        masked = self._flow.masked_number or "your mobile number"
        self._subtitle_label.configure(text=f"We sent a code to {masked}.")

        verifying = self._flow.is_verifying
        for cell, value in zip(self._cells, self._flow.cells):
            cell.configure(state="normal")
            cell.delete(0, "end")
            if value:
                cell.insert(0, value)
            cell.configure(state="disabled" if verifying else "normal")

        self._error_label.configure(text=self._flow.error or "")
        self._verify_button.configure(
            text="Verifying..." if verifying else "Verify",
            state="normal" if self._flow.can_verify else "disabled",
        )
        self._render_timer()
        if not verifying:
            self._focus_cell(self._flow.focus_index)

    def _render_timer(self) -> None:
        if self._flow.is_expired:
            self._timer_label.configure(text="Code expired. Request a new one.")
        else:
            self._timer_label.configure(text=f"Code expires in {self._flow.time_display}")
        can_resend = self._flow.can_resend and not self._resending
        self._resend_button.configure(state="normal" if can_resend else "disabled")

    def _focus_cell(self, index: int) -> None:
        if 0 <= index < len(self._cells):
            self._cells[index].focus_set()

    # ------------------------------------------------------------------
    # Close
    # ------------------------------------------------------------------

    def _handle_close(self) -> None:
        if self._flow.is_verifying:
            return
        self._registration.close()
        self._teardown()
        self._on_closed()

    def _teardown(self) -> None:
        if self._tick_job is not None:
            self.after_cancel(self._tick_job)
            self._tick_job = None
        self._flow.submit_hook = None
        try:
            self.grab_release()
        except tk.TclError:
            pass
        self.destroy()
