"""
Contact Number Helpers.

Single source of truth for Philippine mobile number formats.

The canonical stored form is the 10-digit national significant number
without the leading ``0`` (``9171234567``).  The API accepts the
11-digit local form (``09171234567``) and the UI displays the
international form (``+639171234567``).
"""

from __future__ import annotations

import re
from typing import Optional

__all__ = [
    "display_contact_number",
    "normalize_contact_number",
    "submission_contact_number",
]

_RE_NON_DIGIT = re.compile(r"\D", re.ASCII)
_RE_CANONICAL = re.compile(r"^9\d{9}$", re.ASCII)

COUNTRY_CODE: str = "63"


def normalize_contact_number(raw: str) -> Optional[str]:
    """Return the canonical 10-digit form of *raw*, or ``None`` if invalid.

    Accepted inputs (separators such as spaces and dashes are ignored)::

        9171234567      -> 9171234567
        09171234567     -> 9171234567
        +639171234567   -> 9171234567
        639171234567    -> 9171234567
    """
    digits = _RE_NON_DIGIT.sub("", raw or "")
    if len(digits) == 12 and digits.startswith(COUNTRY_CODE):
        digits = digits[2:]
    elif len(digits) == 11 and digits.startswith("0"):
        digits = digits[1:]
    if not _RE_CANONICAL.match(digits):
        return None
    return digits


def submission_contact_number(raw: str) -> str:
    """Return the ``0``-prefixed form sent to the API.

    Raises:
        ValueError: If *raw* is not a valid mobile number.
    """
    canonical = normalize_contact_number(raw)
    if canonical is None:
        raise ValueError(f"Not a valid mobile number: {raw!r}")
    return f"0{canonical}"


def display_contact_number(raw: str) -> str:
    """Return the ``+63`` form for display; unparseable input is returned as-is."""
    canonical = normalize_contact_number(raw)
    if canonical is None:
        return raw
    return f"+{COUNTRY_CODE}{canonical}"
