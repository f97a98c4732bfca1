"""Sidebar Navigation Component.

Displays the routes the signed-in user may open, the user's identity,
and a logout button.  Follows the **Thin UI** rule: zero business
logic.  Every action is delegated via injected callbacks.
"""

from __future__ import annotations

from typing import Callable, Optional

import customtkinter as ctk

from civicportal.logger import StructuredLogger
from civicportal.models.user import User
from civicportal.routing import Route
from civicportal.ui.theme import (
    ACCENT_PRIMARY,
    FONT_BODY,
    FONT_CAPTION,
    FONT_SIDEBAR,
    FONT_SIDEBAR_ACTIVE,
    FONT_SMALL,
    LOGOUT_HOVER,
    LOGOUT_PRIMARY,
    PADDING_MD,
    PADDING_SM,
    SIDEBAR_ACTIVE,
    SIDEBAR_BG,
    SIDEBAR_HOVER,
    SIDEBAR_TEXT,
    SIDEBAR_WIDTH,
    TEXT_LIGHT,
)

_AVATAR_SIZE: int = 40


class _RouteButton(ctk.CTkButton):
    """Internal clickable sidebar entry for a single route."""

    def __init__(
        self,
        parent: ctk.CTkFrame,
        path: str,
        label: str,
        on_click: Callable[[str], None],
    ) -> None:
        self._path = path
        super().__init__(
            parent,
            text=f"  {label}",
            anchor="w",
            font=FONT_SIDEBAR,
            text_color=SIDEBAR_TEXT,
            fg_color="transparent",
            hover_color=SIDEBAR_HOVER,
            height=40,
            corner_radius=6,
            command=lambda: on_click(self._path),
        )

    @property
    def path(self) -> str:
        return self._path

    def set_active(self, active: bool) -> None:
        if active:
            self.configure(fg_color=SIDEBAR_ACTIVE, font=FONT_SIDEBAR_ACTIVE)
        else:
            self.configure(fg_color="transparent", font=FONT_SIDEBAR)


class SidebarNav(ctk.CTkFrame):
    """Navigation rail for the signed-in shell.

    Parameters
    ----------
    parent:
        The parent widget (the AppShell root).
    user:
        The signed-in user; only read for display.
    routes:
        Routes to list, already filtered by the guards.
    on_navigate:
        Called with a route path when the user clicks an entry.
    on_logout:
        Called when the user clicks the Logout button.
    logger:
        Structured logger instance.
    version:
        Application version shown in the footer.
    """

    def __init__(
        self,
        parent: ctk.CTk,
        user: User,
        routes: list[Route],
        on_navigate: Callable[[str], None],
        on_logout: Callable[[], None],
        logger: StructuredLogger,
        version: str = "",
    ) -> None:
        super().__init__(parent, width=SIDEBAR_WIDTH, fg_color=SIDEBAR_BG, corner_radius=0)
        self.pack_propagate(False)

        self._user = user
        self._on_navigate = on_navigate
        self._on_logout = on_logout
        self._logger = logger
        self._version = version

        self._buttons: dict[str, _RouteButton] = {}
        self._active_path: Optional[str] = None

        self._build_ui(routes)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def user_id(self) -> str:
        return self._user.id

    def set_active(self, path: str) -> None:
        """Highlight *path* and un-highlight the previous entry."""
        if self._active_path and self._active_path in self._buttons:
            self._buttons[self._active_path].set_active(False)
        if path in self._buttons:
            self._buttons[path].set_active(True)
        self._active_path = path

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _build_ui(self, routes: list[Route]) -> None:
        user_frame = ctk.CTkFrame(self, fg_color="transparent")
        user_frame.pack(fill="x", padx=PADDING_MD, pady=(PADDING_MD, PADDING_SM))

        row = ctk.CTkFrame(user_frame, fg_color="transparent")
        row.pack(fill="x")

        avatar = ctk.CTkFrame(
            row,
            width=_AVATAR_SIZE,
            height=_AVATAR_SIZE,
            corner_radius=_AVATAR_SIZE // 2,
            fg_color=ACCENT_PRIMARY,
        )
        avatar.pack(side="left", padx=(0, 10))
        avatar.pack_propagate(False)

        ctk.CTkLabel(
            avatar,
            text=self._get_initials(self._user.full_name),
            font=("Segoe UI", 14, "bold"),
            text_color=TEXT_LIGHT,
        ).place(relx=0.5, rely=0.5, anchor="center")

        text_frame = ctk.CTkFrame(row, fg_color="transparent")
        text_frame.pack(side="left", fill="x", expand=True)

        ctk.CTkLabel(
            text_frame,
            text=self._user.full_name,
            font=FONT_SIDEBAR_ACTIVE,
            text_color=TEXT_LIGHT,
            anchor="w",
        ).pack(fill="x")
        ctk.CTkLabel(
            text_frame,
            text="Administrator" if self._user.is_admin else "Resident",
            font=FONT_SMALL,
            text_color=SIDEBAR_TEXT,
            anchor="w",
        ).pack(fill="x")

        ctk.CTkFrame(self, height=1, fg_color=SIDEBAR_HOVER).pack(
            fill="x", padx=PADDING_MD, pady=PADDING_SM,
        )

        routes_frame = ctk.CTkFrame(self, fg_color="transparent")
        routes_frame.pack(fill="both", expand=True, pady=PADDING_SM)

        for route in routes:
            button = _RouteButton(
                parent=routes_frame,
                path=route.path,
                label=route.nav_label or route.title,
                on_click=self._on_navigate,
            )
            button.pack(fill="x", padx=PADDING_SM, pady=2)
            self._buttons[route.path] = button

        if self._version:
            ctk.CTkLabel(
                self,
                text=f"v{self._version}",
                font=FONT_CAPTION,
                text_color=SIDEBAR_TEXT,
            ).pack(side="bottom", pady=(0, PADDING_SM))

        ctk.CTkFrame(self, height=1, fg_color=SIDEBAR_HOVER).pack(
            fill="x", padx=PADDING_MD, side="bottom",
        )

        bottom_frame = ctk.CTkFrame(self, fg_color="transparent")
        bottom_frame.pack(fill="x", padx=PADDING_SM, pady=PADDING_SM, side="bottom")

        ctk.CTkButton(
            bottom_frame,
            text="  ⏻   Log Out",
            font=FONT_BODY,
            fg_color="transparent",
            hover_color=LOGOUT_HOVER,
            text_color=LOGOUT_PRIMARY,
            anchor="w",
            height=36,
            corner_radius=6,
            command=self._on_logout,
        ).pack(fill="x")

    @staticmethod
    def _get_initials(full_name: str) -> str:
        """Extract up to two uppercase initials from a full name."""
        parts = full_name.strip().split()
        if len(parts) >= 2:
            return (parts[0][0] + parts[-1][0]).upper()
        if parts:
            return parts[0][0].upper()
        return "?"
