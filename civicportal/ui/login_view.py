"""Login View: Authentication Screen.

Presents the portal's sign-in card with Sign In / Register tabs.
Signing in and registering are delegated to ``AuthService``; the
registration tab sends a verification code and hands over to the
``OTPPopup``.  A "Forgot password?" form sends a reset code and sets a
new password.

**Thin UI Rule**: This module contains ZERO business logic.  It
gathers inputs, delegates to the services, and displays results.
"""

from __future__ import annotations

import threading
import tkinter as tk
from typing import Callable, Optional

import customtkinter as ctk

from civicportal.logger import StructuredLogger
from civicportal.models.auth_models import AuthResult, RegistrationDraft
from civicportal.models.enums import Barangay
from civicportal.routing import landing_path_for
from civicportal.services.auth_service import AuthService
from civicportal.services.otp_flow import OTPRegistration
from civicportal.ui.otp_popup import OTPPopup
from civicportal.ui.theme import (
    ACCENT_HOVER,
    ACCENT_PRIMARY,
    CARD_BORDER,
    CONTENT_BG,
    CONTENT_CARD_BG,
    CORNER_RADIUS,
    ERROR_TEXT,
    FONT_BODY,
    FONT_BRAND,
    FONT_BUTTON,
    FONT_CAPTION,
    FONT_SMALL,
    FONT_SUBTITLE,
    INPUT_BG,
    INPUT_BORDER,
    PADDING_LG,
    PADDING_MD,
    PADDING_SM,
    SUCCESS_TEXT,
    TAB_HOVER,
    TEXT_LIGHT,
    TEXT_PRIMARY,
    TEXT_SECONDARY,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
_CARD_WIDTH: int = 440
_TAB_HEIGHT: int = 42
_INPUT_HEIGHT: int = 40
_BUTTON_HEIGHT: int = 46
_LABEL_FONT: tuple[str, int, str] = ("Segoe UI", 11, "bold")
_BRAND_ICON_SIZE: int = 56
_BARANGAY_PLACEHOLDER: str = "Select barangay"


def _describe_failure(result: AuthResult, fallback: str) -> str:
    """Error text for a failed result, listing field errors when there are several."""
    if len(result.validation_errors) > 1:
        return "\n".join(f"• {error.message}" for error in result.validation_errors)
    return result.error or fallback


class LoginView(ctk.CTkFrame):
    """Full-screen sign-in frame with Sign In / Register tabs.

    Parameters
    ----------
    parent:
        The container this frame belongs to.
    auth_service:
        Authentication operations.
    otp_registration:
        Holds the registration draft and the OTP flow.
    on_authenticated:
        Called on the main thread with the landing path after a
        successful sign-in or verified registration.
    logger:
        Structured JSON logger for audit trail.
    """

    def __init__(
        self,
        parent: ctk.CTkBaseClass,
        auth_service: AuthService,
        otp_registration: OTPRegistration,
        on_authenticated: Callable[[str], None],
        logger: StructuredLogger,
    ) -> None:
        super().__init__(parent, fg_color=CONTENT_BG)

        self._auth_service: AuthService = auth_service
        self._otp_registration: OTPRegistration = otp_registration
        self._on_authenticated: Callable[[str], None] = on_authenticated
        self._logger: StructuredLogger = logger

        self._active_tab: str = "sign_in"
        self._otp_popup: Optional[OTPPopup] = None

        self._build_ui()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def show_message(self, message: str) -> None:
        """Display an informational message under the Sign In form."""
        self._switch_tab("sign_in")
        self._show_error(message)

    # ------------------------------------------------------------------
    # UI Construction
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        self.grid_rowconfigure(0, weight=1)
        self.grid_rowconfigure(1, weight=0)
        self.grid_rowconfigure(2, weight=0)
        self.grid_rowconfigure(3, weight=1)
        self.grid_columnconfigure(0, weight=1)

        self._card = ctk.CTkFrame(
            self,
            width=_CARD_WIDTH,
            fg_color=CONTENT_CARD_BG,
            corner_radius=16,
            border_width=1,
            border_color=CARD_BORDER,
        )
        self._card.grid(row=1, column=0, pady=(0, PADDING_SM))

        inner = ctk.CTkFrame(self._card, fg_color="transparent")
        inner.pack(fill="both", expand=True, padx=36, pady=28)

        icon_frame = ctk.CTkFrame(
            inner,
            width=_BRAND_ICON_SIZE,
            height=_BRAND_ICON_SIZE,
            corner_radius=14,
            fg_color=ACCENT_PRIMARY,
        )
        icon_frame.pack(pady=(0, 12))
        icon_frame.pack_propagate(False)
        ctk.CTkLabel(
            icon_frame, text="⌂", font=("Segoe UI", 24, "bold"), text_color=TEXT_LIGHT,
        ).place(relx=0.5, rely=0.5, anchor="center")

        ctk.CTkLabel(
            inner, text="Civic Portal", font=FONT_BRAND, text_color=TEXT_PRIMARY,
        ).pack(pady=(0, 2))
        ctk.CTkLabel(
            inner,
            text="Municipal services for every barangay",
            font=FONT_SUBTITLE,
            text_color=TEXT_SECONDARY,
        ).pack(pady=(0, PADDING_LG))

        tab_bar = ctk.CTkFrame(inner, fg_color="transparent", height=_TAB_HEIGHT)
        tab_bar.pack(fill="x", pady=(0, PADDING_MD))
        tab_bar.pack_propagate(False)
        tab_bar.grid_columnconfigure(0, weight=1)
        tab_bar.grid_columnconfigure(1, weight=1)

        self._sign_in_tab = self._tab_button(tab_bar, "Sign In", "sign_in")
        self._sign_in_tab.grid(row=0, column=0, sticky="nsew")
        self._register_tab = self._tab_button(tab_bar, "Register", "register")
        self._register_tab.grid(row=0, column=1, sticky="nsew")

        self._sign_in_frame = ctk.CTkFrame(inner, fg_color="transparent")
        self._build_sign_in_tab(self._sign_in_frame)

        self._register_frame = ctk.CTkFrame(inner, fg_color="transparent")
        self._build_register_tab(self._register_frame)

        self._sign_in_frame.pack(fill="both", expand=True)
        self._style_tabs()

        ctk.CTkLabel(
            self,
            text="© Municipal Government. All rights reserved.",
            font=FONT_CAPTION,
            text_color=TEXT_SECONDARY,
        ).grid(row=2, column=0, pady=(PADDING_SM, 0))

    def _tab_button(self, parent: ctk.CTkFrame, text: str, tab: str) -> ctk.CTkButton:
        return ctk.CTkButton(
            parent,
            text=text,
            font=("Segoe UI", 13),
            fg_color="transparent",
            hover_color=TAB_HOVER,
            text_color=TEXT_SECONDARY,
            height=_TAB_HEIGHT,
            corner_radius=0,
            border_width=1,
            border_color=INPUT_BORDER,
            command=lambda: self._switch_tab(tab),
        )

    def _labelled_entry(
        self,
        parent: ctk.CTkFrame,
        label: str,
        placeholder: str = "",
        secret: bool = False,
    ) -> ctk.CTkEntry:
        ctk.CTkLabel(
            parent, text=label, font=_LABEL_FONT, text_color=TEXT_PRIMARY, anchor="w",
        ).pack(fill="x", pady=(0, 4))
        entry = ctk.CTkEntry(
            parent,
            placeholder_text=placeholder,
            font=FONT_BODY,
            fg_color=INPUT_BG,
            border_color=INPUT_BORDER,
            text_color=TEXT_PRIMARY,
            show="*" if secret else "",
            height=_INPUT_HEIGHT,
            corner_radius=CORNER_RADIUS,
        )
        entry.pack(fill="x", pady=(0, PADDING_SM))
        return entry

    def _primary_button(
        self, parent: ctk.CTkFrame, text: str, command: Callable[[], None],
        height: int = _BUTTON_HEIGHT,
    ) -> ctk.CTkButton:
        button = ctk.CTkButton(
            parent,
            text=text,
            font=FONT_BUTTON,
            fg_color=ACCENT_PRIMARY,
            hover_color=ACCENT_HOVER,
            text_color=TEXT_LIGHT,
            height=height,
            corner_radius=CORNER_RADIUS,
            command=command,
        )
        button.pack(fill="x", pady=(PADDING_SM, PADDING_SM))
        return button

    def _message_label(self, parent: ctk.CTkFrame) -> ctk.CTkLabel:
        label = ctk.CTkLabel(
            parent,
            text="",
            font=FONT_SMALL,
            text_color=ERROR_TEXT,
            wraplength=_CARD_WIDTH - 100,
            justify="left",
        )
        label.pack(fill="x")
        label.pack_forget()
        return label

    def _build_sign_in_tab(self, parent: ctk.CTkFrame) -> None:
        """Build the Sign In form fields inside the given parent frame."""
        self._contact_entry = self._labelled_entry(parent, "MOBILE NUMBER", "09XX XXX XXXX")
        self._password_entry = self._labelled_entry(
            parent, "PASSWORD", "•" * 8, secret=True,
        )
        self._login_button = self._primary_button(parent, "Sign In  →", self._handle_login)
        self._error_label = self._message_label(parent)

        ctk.CTkButton(
            parent,
            text="Forgot password?",
            font=FONT_SMALL,
            fg_color="transparent",
            hover_color=TAB_HOVER,
            text_color=ACCENT_PRIMARY,
            height=28,
            corner_radius=CORNER_RADIUS,
            command=self._toggle_forgot_password,
        ).pack(pady=(PADDING_SM, 0))

        # Hidden until "Forgot password?" is clicked
        self._forgot_frame = ctk.CTkFrame(parent, fg_color="transparent")
        ctk.CTkLabel(
            self._forgot_frame,
            text="We will text a reset code to your mobile number.",
            font=FONT_SMALL,
            text_color=TEXT_SECONDARY,
        ).pack(fill="x", pady=(0, 4))
        self._forgot_contact_entry = self._labelled_entry(
            self._forgot_frame, "MOBILE NUMBER", "09XX XXX XXXX",
        )
        self._forgot_button = self._primary_button(
            self._forgot_frame, "Send Reset Code", self._handle_forgot_password, height=36,
        )

        # Second step, shown once a code was sent
        self._reset_frame = ctk.CTkFrame(self._forgot_frame, fg_color="transparent")
        self._reset_code_entry = self._labelled_entry(self._reset_frame, "RESET CODE", "000000")
        self._reset_password_entry = self._labelled_entry(
            self._reset_frame, "NEW PASSWORD", secret=True,
        )
        self._reset_confirm_entry = self._labelled_entry(
            self._reset_frame, "CONFIRM NEW PASSWORD", secret=True,
        )
        self._reset_button = self._primary_button(
            self._reset_frame, "Set New Password", self._handle_reset_password, height=36,
        )
        ctk.CTkButton(
            self._reset_frame,
            text="Resend code",
            font=FONT_SMALL,
            fg_color="transparent",
            hover_color=TAB_HOVER,
            text_color=ACCENT_PRIMARY,
            height=24,
            command=self._handle_resend_reset_code,
        ).pack()

        self._forgot_message_label = ctk.CTkLabel(
            self._forgot_frame,
            text="",
            font=FONT_SMALL,
            text_color=TEXT_SECONDARY,
            wraplength=_CARD_WIDTH - 100,
            justify="left",
        )
        self._forgot_message_label.pack(fill="x", side="bottom")

        self._contact_entry.bind("<Return>", self._on_enter_key)
        self._password_entry.bind("<Return>", self._on_enter_key)

    def _build_register_tab(self, parent: ctk.CTkFrame) -> None:
        """Build the registration form, pre-filled from the kept draft."""
        draft = self._otp_registration.draft

        name_row = ctk.CTkFrame(parent, fg_color="transparent")
        name_row.pack(fill="x")
        name_row.grid_columnconfigure(0, weight=1)
        name_row.grid_columnconfigure(1, weight=1)

        first_col = ctk.CTkFrame(name_row, fg_color="transparent")
        first_col.grid(row=0, column=0, sticky="ew")
        last_col = ctk.CTkFrame(name_row, fg_color="transparent")
        last_col.grid(row=0, column=1, sticky="ew", padx=(PADDING_SM, 0))

        self._first_name_entry = self._labelled_entry(first_col, "FIRST NAME", "e.g. Juan")
        self._last_name_entry = self._labelled_entry(last_col, "LAST NAME", "e.g. Dela Cruz")
        self._reg_contact_entry = self._labelled_entry(parent, "MOBILE NUMBER", "09XX XXX XXXX")

        ctk.CTkLabel(
            parent, text="BARANGAY", font=_LABEL_FONT, text_color=TEXT_PRIMARY, anchor="w",
        ).pack(fill="x", pady=(0, 4))
        self._barangay_menu = ctk.CTkOptionMenu(
            parent,
            values=[barangay.value for barangay in Barangay],
            font=FONT_BODY,
            fg_color=INPUT_BG,
            button_color=ACCENT_PRIMARY,
            button_hover_color=ACCENT_HOVER,
            text_color=TEXT_PRIMARY,
            height=_INPUT_HEIGHT,
            corner_radius=CORNER_RADIUS,
        )
        self._barangay_menu.set(draft.barangay or _BARANGAY_PLACEHOLDER)
        self._barangay_menu.pack(fill="x", pady=(0, PADDING_SM))

        self._reg_password_entry = self._labelled_entry(parent, "PASSWORD", secret=True)
        self._reg_confirm_entry = self._labelled_entry(parent, "CONFIRM PASSWORD", secret=True)

        for entry, value in (
            (self._first_name_entry, draft.first_name),
            (self._last_name_entry, draft.last_name),
            (self._reg_contact_entry, draft.contact_number),
        ):
            if value:
                entry.insert(0, value)

        self._register_button = self._primary_button(
            parent, "Send Verification Code  →", self._handle_register,
        )
        self._reg_error_label = self._message_label(parent)

        ctk.CTkLabel(
            parent,
            text="A 6-digit code will be sent to your mobile number.",
            font=FONT_CAPTION,
            text_color=TEXT_SECONDARY,
        ).pack(pady=(PADDING_SM, 0))

    # ------------------------------------------------------------------
    # Tab switching
    # ------------------------------------------------------------------

    def _switch_tab(self, tab: str) -> None:
        if tab == self._active_tab:
            return
        self._active_tab = tab
        self._clear_error()
        self._clear_reg_error()
        self._auth_service.clear_error()

        if tab == "sign_in":
            self._register_frame.pack_forget()
            self._sign_in_frame.pack(fill="both", expand=True)
        else:
            self._sign_in_frame.pack_forget()
            self._register_frame.pack(fill="both", expand=True)
        self._style_tabs()

    def _style_tabs(self) -> None:
        for button, tab in ((self._sign_in_tab, "sign_in"), (self._register_tab, "register")):
            if tab == self._active_tab:
                button.configure(
                    text_color=ACCENT_PRIMARY,
                    border_color=ACCENT_PRIMARY,
                    border_width=2,
                    font=("Segoe UI", 13, "bold"),
                )
            else:
                button.configure(
                    text_color=TEXT_SECONDARY,
                    border_color=INPUT_BORDER,
                    border_width=1,
                    font=("Segoe UI", 13),
                )

    # ------------------------------------------------------------------
    # Event Handlers: Sign In
    # ------------------------------------------------------------------

    def _on_enter_key(self, event: tk.Event[tk.Misc]) -> None:
        self._handle_login()

    def _handle_login(self) -> None:
        contact_number = self._contact_entry.get().strip()
        password = self._password_entry.get()

        self._set_loading(True)
        self._clear_error()
        threading.Thread(
            target=self._authenticate,
            args=(contact_number, password),
            name="login",
            daemon=True,
        ).start()

    def _authenticate(self, contact_number: str, password: str) -> None:
        """Background thread: delegate to AuthService.login().

        All UI mutations are dispatched back via ``self.after(0, ...)``.
        """
        result = self._auth_service.login(contact_number, password)
        self.after(0, self._handle_login_result, result)

    def _handle_login_result(self, result: AuthResult) -> None:
        self._set_loading(False)
        if result.success:
            self._password_entry.delete(0, "end")
            self._on_authenticated(landing_path_for(result.data))
            return
        self._show_error(_describe_failure(result, "Login failed"))

    # ------------------------------------------------------------------
    # Event Handlers: Registration
    # ------------------------------------------------------------------

    def _read_draft(self) -> RegistrationDraft:
        barangay = self._barangay_menu.get()
        return RegistrationDraft(
            first_name=self._first_name_entry.get(),
            last_name=self._last_name_entry.get(),
            contact_number=self._reg_contact_entry.get().strip(),
            barangay="" if barangay == _BARANGAY_PLACEHOLDER else barangay,
            password=self._reg_password_entry.get(),
            confirm_password=self._reg_confirm_entry.get(),
        )

    def _handle_register(self) -> None:
        draft = self._read_draft()
        self._clear_reg_error()
        self._set_register_loading(True)

        def do_request() -> None:
            result = self._otp_registration.request_code(draft)
            self.after(0, self._handle_code_requested, result)

        threading.Thread(target=do_request, name="send-otp", daemon=True).start()

    def _handle_code_requested(self, result: AuthResult) -> None:
        self._set_register_loading(False)
        if not result.success:
            self._show_reg_error(_describe_failure(result, "Failed to send OTP"))
            return
        self._otp_popup = OTPPopup(
            parent=self,
            registration=self._otp_registration,
            on_verified=self._handle_registration_verified,
            on_closed=self._handle_popup_closed,
            logger=self._logger,
        )

    def _handle_registration_verified(self, landing_path: str) -> None:
        self._otp_popup = None
        for entry in (self._reg_password_entry, self._reg_confirm_entry):
            entry.delete(0, "end")
        self._on_authenticated(landing_path)

    def _handle_popup_closed(self) -> None:
        self._otp_popup = None
        self._logger.info("Verification popup dismissed; registration draft kept.")

    # ------------------------------------------------------------------
    # Event Handlers: Forgot Password
    # ------------------------------------------------------------------

    def _toggle_forgot_password(self) -> None:
        if self._forgot_frame.winfo_manager():
            self._forgot_frame.pack_forget()
        else:
            self._forgot_frame.pack(fill="x", pady=(PADDING_SM, 0))
            self._forgot_message_label.configure(text="")

    def _show_forgot_message(self, result: AuthResult, success_text: str, fallback: str) -> None:
        if result.success:
            self._forgot_message_label.configure(
                text=result.message or success_text, text_color=SUCCESS_TEXT,
            )
        else:
            self._forgot_message_label.configure(
                text=_describe_failure(result, fallback), text_color=ERROR_TEXT,
            )

    def _handle_forgot_password(self) -> None:
        contact_number = self._forgot_contact_entry.get().strip()
        self._forgot_button.configure(text="Sending...", state="disabled")

        def do_send() -> None:
            result = self._auth_service.forgot_password(contact_number)

            def show_result() -> None:
                self._forgot_button.configure(text="Send Reset Code", state="normal")
                self._show_forgot_message(
                    result, f"Reset code sent to {result.data}.", "Failed to send reset code",
                )
                if result.success:
                    self._reset_frame.pack(fill="x", pady=(PADDING_SM, 0))

            self.after(0, show_result)

        threading.Thread(target=do_send, name="forgot-password", daemon=True).start()

    def _handle_resend_reset_code(self) -> None:
        contact_number = self._forgot_contact_entry.get().strip()

        def do_resend() -> None:
            result = self._auth_service.resend_forgot_password_otp(contact_number)
            self.after(
                0,
                lambda: self._show_forgot_message(
                    result, "A new reset code was sent.", "Failed to resend reset code",
                ),
            )

        threading.Thread(target=do_resend, name="resend-reset-code", daemon=True).start()

    def _handle_reset_password(self) -> None:
        contact_number = self._forgot_contact_entry.get().strip()
        code = self._reset_code_entry.get().strip()
        new_password = self._reset_password_entry.get()
        confirm = self._reset_confirm_entry.get()
        self._reset_button.configure(text="Saving...", state="disabled")

        def do_reset() -> None:
            result = self._auth_service.reset_password(contact_number, code, new_password, confirm)

            def show_result() -> None:
                self._reset_button.configure(text="Set New Password", state="normal")
                self._show_forgot_message(
                    result, "Password updated. You can now sign in.", "Password reset failed",
                )
                if result.success:
                    for entry in (
                        self._reset_code_entry, self._reset_password_entry, self._reset_confirm_entry,
                    ):
                        entry.delete(0, "end")
                    self._reset_frame.pack_forget()

            self.after(0, show_result)

        threading.Thread(target=do_reset, name="reset-password", daemon=True).start()

    # ------------------------------------------------------------------
    # UI Helper Methods
    # ------------------------------------------------------------------

    def _show_error(self, message: str) -> None:
        self._error_label.configure(text=message)
        self._error_label.pack(fill="x")

    def _clear_error(self) -> None:
        self._error_label.configure(text="")
        self._error_label.pack_forget()

    def _show_reg_error(self, message: str) -> None:
        self._reg_error_label.configure(text=message)
        self._reg_error_label.pack(fill="x")

    def _clear_reg_error(self) -> None:
        self._reg_error_label.configure(text="")
        self._reg_error_label.pack_forget()

    def _set_loading(self, loading: bool) -> None:
        if loading:
            self._login_button.configure(text="Signing in...", state="disabled")
        else:
            self._login_button.configure(text="Sign In  →", state="normal")

    def _set_register_loading(self, loading: bool) -> None:
        if loading:
            self._register_button.configure(text="Sending code...", state="disabled")
        else:
            self._register_button.configure(
                text="Send Verification Code  →", state="normal",
            )
