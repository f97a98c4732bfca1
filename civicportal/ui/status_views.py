"""Status screens: session loading, access denied and unknown route.

Each is a plain centred message.  The access-denied and not-found
screens offer a single button whose action is injected by the shell.
"""

from __future__ import annotations

from typing import Callable, Optional

import customtkinter as ctk

from civicportal.ui.theme import (
    ACCENT_HOVER,
    ACCENT_PRIMARY,
    CONTENT_BG,
    CORNER_RADIUS,
    FONT_BODY,
    FONT_BUTTON,
    FONT_HEADING,
    PADDING_LG,
    PADDING_SM,
    TEXT_LIGHT,
    TEXT_PRIMARY,
    TEXT_SECONDARY,
)


class _MessageView(ctk.CTkFrame):
    def __init__(
        self,
        parent: ctk.CTkBaseClass,
        title: str,
        message: str,
        action_label: Optional[str] = None,
        on_action: Optional[Callable[[], None]] = None,
    ) -> None:
        super().__init__(parent, fg_color=CONTENT_BG)

        body = ctk.CTkFrame(self, fg_color="transparent")
        body.place(relx=0.5, rely=0.45, anchor="center")

        ctk.CTkLabel(
            body, text=title, font=FONT_HEADING, text_color=TEXT_PRIMARY,
        ).pack(pady=(0, PADDING_SM))
        ctk.CTkLabel(
            body, text=message, font=FONT_BODY, text_color=TEXT_SECONDARY,
            wraplength=420, justify="center",
        ).pack(pady=(0, PADDING_LG))

        if action_label and on_action is not None:
            ctk.CTkButton(
                body,
                text=action_label,
                font=FONT_BUTTON,
                fg_color=ACCENT_PRIMARY,
                hover_color=ACCENT_HOVER,
                text_color=TEXT_LIGHT,
                corner_radius=CORNER_RADIUS,
                command=on_action,
            ).pack()


class LoadingView(_MessageView):
    """Shown while the previous session is being restored."""

    def __init__(self, parent: ctk.CTkBaseClass) -> None:
        super().__init__(parent, "Loading…", "Restoring your session, please wait.")


class UnauthorizedView(_MessageView):
    def __init__(self, parent: ctk.CTkBaseClass, on_home: Callable[[], None]) -> None:
        super().__init__(
            parent,
            "Access denied",
            "Your account does not have permission to open this page.",
            action_label="Back to my profile",
            on_action=on_home,
        )


class NotFoundView(_MessageView):
    def __init__(self, parent: ctk.CTkBaseClass, on_home: Callable[[], None]) -> None:
        super().__init__(
            parent,
            "Page not found",
            "The page you were looking for does not exist.",
            action_label="Go home",
            on_action=on_home,
        )
