"""Profile View.

Shows the signed-in resident's details and hosts the two self-service
forms: edit profile and change password.  Both delegate to
``AuthService`` on background threads.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional

import customtkinter as ctk

from civicportal.auth import AuthStore
from civicportal.logger import StructuredLogger
from civicportal.models.auth_models import AuthErrorCode, AuthResult
from civicportal.models.enums import Barangay
from civicportal.models.user import User
from civicportal.services.auth_service import AuthService
from civicportal.ui.theme import (
    ACCENT_HOVER,
    ACCENT_PRIMARY,
    CARD_BORDER,
    CONTENT_BG,
    CONTENT_CARD_BG,
    CORNER_RADIUS,
    ERROR_TEXT,
    FONT_BODY,
    FONT_BUTTON,
    FONT_HEADING,
    FONT_LABEL,
    FONT_SMALL,
    INPUT_BG,
    INPUT_BORDER,
    PADDING_LG,
    PADDING_MD,
    PADDING_SM,
    SUCCESS_TEXT,
    TEXT_LIGHT,
    TEXT_PRIMARY,
    TEXT_SECONDARY,
)

_FORM_WIDTH: int = 520


class ProfileView(ctk.CTkScrollableFrame):
    """Resident profile page.

    Parameters
    ----------
    parent:
        Content container of the shell.
    store:
        Read-only source of the signed-in user.
    auth_service:
        Performs ``update_profile`` and ``change_password``.
    logger:
        Structured logger instance.
    on_session_expired:
        Called when the server rejects the session mid-edit.
    """

    def __init__(
        self,
        parent: ctk.CTkBaseClass,
        store: AuthStore,
        auth_service: AuthService,
        logger: StructuredLogger,
        on_session_expired: Optional[Callable[[], None]] = None,
    ) -> None:
        super().__init__(parent, fg_color=CONTENT_BG)

        self._store = store
        self._auth_service = auth_service
        self._logger = logger
        self._on_session_expired = on_session_expired

        self._detail_labels: dict[str, ctk.CTkLabel] = {}

        self._build_ui()
        self.refresh()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def refresh(self) -> None:
        """Re-read the user from the store and update every field."""
        user = self._store.state.user
        if user is None:
            return
        self._heading.configure(text=user.full_name)
        details = {
            "Mobile number": user.display_contact_number or "—",
            "Barangay": user.barangay.value if user.barangay else "—",
            "Account type": "Administrator" if user.is_admin else "Resident",
            "Verified": "Yes" if user.is_verified else "No",
            "Bio": (user.profile.bio if user.profile else None) or "—",
            "Address": (user.profile.address if user.profile else None) or "—",
        }
        for key, value in details.items():
            self._detail_labels[key].configure(text=value)
        self._fill_edit_form(user)

    # ------------------------------------------------------------------
    # UI Construction
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        self._heading = ctk.CTkLabel(
            self, text="", font=FONT_HEADING, text_color=TEXT_PRIMARY, anchor="w",
        )
        self._heading.pack(fill="x", padx=PADDING_LG, pady=(PADDING_LG, PADDING_MD))

        details_card = self._card("My details")
        grid = ctk.CTkFrame(details_card, fg_color="transparent")
        grid.pack(fill="x")
        grid.grid_columnconfigure(1, weight=1)
        for row, key in enumerate(
            ("Mobile number", "Barangay", "Account type", "Verified", "Bio", "Address"),
        ):
            ctk.CTkLabel(
                grid, text=key, font=FONT_LABEL, text_color=TEXT_SECONDARY, anchor="w",
            ).grid(row=row, column=0, sticky="w", padx=(0, PADDING_MD), pady=2)
            value_label = ctk.CTkLabel(
                grid, text="", font=FONT_BODY, text_color=TEXT_PRIMARY, anchor="w",
                wraplength=_FORM_WIDTH - 160, justify="left",
            )
            value_label.grid(row=row, column=1, sticky="w", pady=2)
            self._detail_labels[key] = value_label

        edit_card = self._card("Edit profile")
        self._first_name_entry = self._entry(edit_card, "FIRST NAME")
        self._last_name_entry = self._entry(edit_card, "LAST NAME")
        ctk.CTkLabel(
            edit_card, text="BARANGAY", font=FONT_LABEL, text_color=TEXT_PRIMARY, anchor="w",
        ).pack(fill="x", pady=(0, 4))
        self._barangay_menu = ctk.CTkOptionMenu(
            edit_card,
            values=[barangay.value for barangay in Barangay],
            font=FONT_BODY,
            fg_color=INPUT_BG,
            button_color=ACCENT_PRIMARY,
            button_hover_color=ACCENT_HOVER,
            text_color=TEXT_PRIMARY,
            corner_radius=CORNER_RADIUS,
        )
        self._barangay_menu.pack(fill="x", pady=(0, PADDING_SM))
        self._bio_entry = self._entry(edit_card, "BIO")
        self._address_entry = self._entry(edit_card, "ADDRESS")
        self._save_button = self._button(edit_card, "Save changes", self._handle_save)
        self._profile_message = self._message(edit_card)

        password_card = self._card("Change password")
        self._current_password_entry = self._entry(password_card, "CURRENT PASSWORD", secret=True)
        self._new_password_entry = self._entry(password_card, "NEW PASSWORD", secret=True)
        self._confirm_password_entry = self._entry(
            password_card, "CONFIRM NEW PASSWORD", secret=True,
        )
        self._password_button = self._button(
            password_card, "Update password", self._handle_change_password,
        )
        self._password_message = self._message(password_card)

    def _card(self, title: str) -> ctk.CTkFrame:
        card = ctk.CTkFrame(
            self,
            width=_FORM_WIDTH,
            fg_color=CONTENT_CARD_BG,
            corner_radius=12,
            border_width=1,
            border_color=CARD_BORDER,
        )
        card.pack(anchor="w", padx=PADDING_LG, pady=(0, PADDING_MD))
        inner = ctk.CTkFrame(card, fg_color="transparent", width=_FORM_WIDTH)
        inner.pack(fill="both", expand=True, padx=PADDING_LG, pady=PADDING_MD)
        ctk.CTkLabel(
            inner, text=title, font=FONT_BUTTON, text_color=TEXT_PRIMARY, anchor="w",
        ).pack(fill="x", pady=(0, PADDING_SM))
        return inner

    @staticmethod
    def _entry(parent: ctk.CTkFrame, label: str, secret: bool = False) -> ctk.CTkEntry:
        ctk.CTkLabel(
            parent, text=label, font=FONT_LABEL, text_color=TEXT_PRIMARY, anchor="w",
        ).pack(fill="x", pady=(0, 4))
        entry = ctk.CTkEntry(
            parent,
            width=_FORM_WIDTH - 2 * PADDING_LG,
            font=FONT_BODY,
            fg_color=INPUT_BG,
            border_color=INPUT_BORDER,
            text_color=TEXT_PRIMARY,
            show="*" if secret else "",
            corner_radius=CORNER_RADIUS,
        )
        entry.pack(fill="x", pady=(0, PADDING_SM))
        return entry

    @staticmethod
    def _button(parent: ctk.CTkFrame, text: str, command: Callable[[], None]) -> ctk.CTkButton:
        button = ctk.CTkButton(
            parent,
            text=text,
            font=FONT_BUTTON,
            fg_color=ACCENT_PRIMARY,
            hover_color=ACCENT_HOVER,
            text_color=TEXT_LIGHT,
            corner_radius=CORNER_RADIUS,
            command=command,
        )
        button.pack(anchor="w", pady=(PADDING_SM, PADDING_SM))
        return button

    @staticmethod
    def _message(parent: ctk.CTkFrame) -> ctk.CTkLabel:
        label = ctk.CTkLabel(
            parent, text="", font=FONT_SMALL, text_color=TEXT_SECONDARY,
            anchor="w", justify="left", wraplength=_FORM_WIDTH - 2 * PADDING_LG,
        )
        label.pack(fill="x")
        return label

    def _fill_edit_form(self, user: User) -> None:
        profile = user.profile
        for entry, value in (
            (self._first_name_entry, user.first_name),
            (self._last_name_entry, user.last_name),
            (self._bio_entry, profile.bio if profile else None),
            (self._address_entry, profile.address if profile else None),
        ):
            entry.delete(0, "end")
            if value:
                entry.insert(0, value)
        if user.barangay is not None:
            self._barangay_menu.set(user.barangay.value)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _handle_save(self) -> None:
        payload: dict[str, Any] = {
            "firstName": self._first_name_entry.get().strip(),
            "lastName": self._last_name_entry.get().strip(),
            "barangay": self._barangay_menu.get(),
            "profile": {
                "bio": self._bio_entry.get().strip(),
                "address": self._address_entry.get().strip(),
            },
        }
        self._save_button.configure(text="Saving...", state="disabled")

        def do_save() -> None:
            result = self._auth_service.update_profile(payload)
            self.after(0, self._handle_save_result, result)

        threading.Thread(target=do_save, name="update-profile", daemon=True).start()

    def _handle_save_result(self, result: AuthResult) -> None:
        self._save_button.configure(text="Save changes", state="normal")
        self._show_result(self._profile_message, result, "Profile updated.", "Profile update failed")
        if result.success:
            self.refresh()

    def _handle_change_password(self) -> None:
        current = self._current_password_entry.get()
        new = self._new_password_entry.get()
        confirm = self._confirm_password_entry.get()
        self._password_button.configure(text="Updating...", state="disabled")

        def do_change() -> None:
            result = self._auth_service.change_password(current, new, confirm)
            self.after(0, self._handle_password_result, result)

        threading.Thread(target=do_change, name="change-password", daemon=True).start()

    def _handle_password_result(self, result: AuthResult) -> None:
        self._password_button.configure(text="Update password", state="normal")
        self._show_result(
            self._password_message, result, "Password changed.", "Password change failed",
        )
        if result.success:
            for entry in (
                self._current_password_entry,
                self._new_password_entry,
                self._confirm_password_entry,
            ):
                entry.delete(0, "end")

    def _show_result(
        self, label: ctk.CTkLabel, result: AuthResult, success_text: str, fallback: str,
    ) -> None:
        if result.success:
            label.configure(text=result.message or success_text, text_color=SUCCESS_TEXT)
            return
        if len(result.validation_errors) > 1:
            text = "\n".join(f"• {error.message}" for error in result.validation_errors)
        else:
            text = result.error or fallback
        label.configure(text=text, text_color=ERROR_TEXT)
        expired = result.error_code == AuthErrorCode.SESSION_EXPIRED
        if expired and self._on_session_expired is not None:
            self._on_session_expired()
