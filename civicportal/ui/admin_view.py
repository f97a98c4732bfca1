"""Admin landing page.

The back-office entry point administrators land on after signing in.
The route itself is guarded; the summary builder is additionally
wrapped with ``require_auth`` so it refuses to run for anyone else.
"""

from __future__ import annotations

import customtkinter as ctk

from civicportal.auth import AuthStore
from civicportal.guards import require_auth
from civicportal.logger import StructuredLogger
from civicportal.models.enums import UserRole
from civicportal.ui.theme import (
    CARD_BORDER,
    CONTENT_BG,
    CONTENT_CARD_BG,
    FONT_BODY,
    FONT_BUTTON,
    FONT_HEADING,
    FONT_LABEL,
    PADDING_LG,
    PADDING_MD,
    PADDING_SM,
    TEXT_PRIMARY,
    TEXT_SECONDARY,
)


class AdminView(ctk.CTkFrame):
    """Administrator landing page.

    Parameters
    ----------
    parent:
        Content container of the shell.
    store:
        Source of the signed-in administrator.
    logger:
        Structured logger instance.
    """

    def __init__(
        self,
        parent: ctk.CTkBaseClass,
        store: AuthStore,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(parent, fg_color=CONTENT_BG)

        self._store = store
        self._logger = logger
        self._summary = require_auth(store, roles=(UserRole.ADMIN,))(self._session_summary)

        self._build_ui()

    def _session_summary(self) -> dict[str, str]:
        user = self._store.state.user
        if user is None:
            return {}
        return {
            "Administrator": user.full_name,
            "Mobile number": user.display_contact_number or "—",
            "Barangay": user.barangay.value if user.barangay else "—",
        }

    def _build_ui(self) -> None:
        ctk.CTkLabel(
            self, text="Administration", font=FONT_HEADING, text_color=TEXT_PRIMARY, anchor="w",
        ).pack(fill="x", padx=PADDING_LG, pady=(PADDING_LG, 4))
        ctk.CTkLabel(
            self,
            text="Manage residents, requests and announcements for the municipality.",
            font=FONT_BODY,
            text_color=TEXT_SECONDARY,
            anchor="w",
        ).pack(fill="x", padx=PADDING_LG, pady=(0, PADDING_MD))

        card = ctk.CTkFrame(
            self,
            fg_color=CONTENT_CARD_BG,
            corner_radius=12,
            border_width=1,
            border_color=CARD_BORDER,
        )
        card.pack(anchor="w", padx=PADDING_LG)
        inner = ctk.CTkFrame(card, fg_color="transparent")
        inner.pack(padx=PADDING_LG, pady=PADDING_MD)

        ctk.CTkLabel(
            inner, text="Signed in as", font=FONT_BUTTON, text_color=TEXT_PRIMARY, anchor="w",
        ).grid(row=0, column=0, columnspan=2, sticky="w", pady=(0, PADDING_SM))

        for row, (key, value) in enumerate(self._summary().items(), start=1):
            ctk.CTkLabel(
                inner, text=key, font=FONT_LABEL, text_color=TEXT_SECONDARY, anchor="w",
            ).grid(row=row, column=0, sticky="w", padx=(0, PADDING_MD), pady=2)
            ctk.CTkLabel(
                inner, text=value, font=FONT_BODY, text_color=TEXT_PRIMARY, anchor="w",
            ).grid(row=row, column=1, sticky="w", pady=2)

        self._logger.debug("Admin landing rendered.")
