"""Shared utility functions for the Civic Portal client.

Re-exports so consumers can import directly from ``civicportal.utils``
while full absolute imports remain supported.
"""

from civicportal.utils.contact_numbers import (
    display_contact_number,
    normalize_contact_number,
    submission_contact_number,
)

__all__ = [
    "display_contact_number",
    "normalize_contact_number",
    "submission_contact_number",
]
