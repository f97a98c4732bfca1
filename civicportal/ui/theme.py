"""UI Theme Constants for the Civic Portal client.

Centralises all colour, font, and sizing constants for the
CustomTkinter interface.  Dark navigation rail + light content area,
in the municipal green of the portal.

This file contains **zero logic**: only ``Final`` constants.
"""

from __future__ import annotations

from typing import Final

# ---------------------------------------------------------------------------
# Colour palette
# ---------------------------------------------------------------------------

SIDEBAR_BG: Final[str] = "#123524"
SIDEBAR_HOVER: Final[str] = "#1b4d34"
SIDEBAR_ACTIVE: Final[str] = "#23694a"
SIDEBAR_TEXT: Final[str] = "#e3efe8"

CONTENT_BG: Final[str] = "#f2f5f3"
CONTENT_CARD_BG: Final[str] = "#ffffff"
CARD_BORDER: Final[str] = "#dde3df"

ACCENT_PRIMARY: Final[str] = "#1f7a4d"
ACCENT_HOVER: Final[str] = "#18613d"
TEXT_PRIMARY: Final[str] = "#14231b"
TEXT_SECONDARY: Final[str] = "#64706a"
TEXT_LIGHT: Final[str] = "#ffffff"

# Input / form
INPUT_BG: Final[str] = "#ffffff"
INPUT_BORDER: Final[str] = "#c9d2cc"
ERROR_TEXT: Final[str] = "#c62828"
SUCCESS_TEXT: Final[str] = "#2e7d32"

# Tab / interactive
TAB_HOVER: Final[str] = "#eef2ef"
LOGOUT_PRIMARY: Final[str] = "#e57373"
LOGOUT_HOVER: Final[str] = "#3a1a1a"

# ---------------------------------------------------------------------------
# Fonts (Segoe UI: Windows default, fallback to system)
# ---------------------------------------------------------------------------

FONT_FAMILY: Final[str] = "Segoe UI"
FONT_BRAND: Final[tuple[str, int, str]] = (FONT_FAMILY, 22, "bold")
FONT_ICON_LG: Final[tuple[str, int, str]] = (FONT_FAMILY, 24, "bold")
FONT_HEADING: Final[tuple[str, int, str]] = (FONT_FAMILY, 20, "bold")
FONT_SUBTITLE: Final[tuple[str, int]] = (FONT_FAMILY, 12)
FONT_BODY: Final[tuple[str, int]] = (FONT_FAMILY, 13)
FONT_SIDEBAR: Final[tuple[str, int]] = (FONT_FAMILY, 14)
FONT_SIDEBAR_ACTIVE: Final[tuple[str, int, str]] = (FONT_FAMILY, 14, "bold")
FONT_LABEL: Final[tuple[str, int, str]] = (FONT_FAMILY, 11, "bold")
FONT_SMALL: Final[tuple[str, int]] = (FONT_FAMILY, 11)
FONT_CAPTION: Final[tuple[str, int]] = (FONT_FAMILY, 10)
FONT_BUTTON: Final[tuple[str, int, str]] = (FONT_FAMILY, 13, "bold")
FONT_OTP_CELL: Final[tuple[str, int, str]] = (FONT_FAMILY, 22, "bold")

# ---------------------------------------------------------------------------
# Dimensions
# ---------------------------------------------------------------------------

SIDEBAR_WIDTH: Final[int] = 240
LOGIN_WINDOW_WIDTH: Final[int] = 480
LOGIN_WINDOW_HEIGHT: Final[int] = 820
MAIN_WINDOW_WIDTH: Final[int] = 1100
MAIN_WINDOW_HEIGHT: Final[int] = 760
CORNER_RADIUS: Final[int] = 8
PADDING_SM: Final[int] = 8
PADDING_MD: Final[int] = 16
PADDING_LG: Final[int] = 24
