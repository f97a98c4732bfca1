"""
User Model.

Pydantic model for a registered constituent or admin as returned by the
portal API.  The wire format is camelCase (``firstName``); attributes
are snake_case and either spelling is accepted on input.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from civicportal.models.enums import Barangay, UserRole
from civicportal.utils.contact_numbers import (
    display_contact_number,
    normalize_contact_number,
    submission_contact_number,
)


class UserProfile(BaseModel):
    """Free-form profile fields editable by the user."""

    bio: Optional[str] = None
    address: Optional[str] = None

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class User(BaseModel):
    """Represents a portal account.

    ``contact_number`` is stored in canonical 10-digit form when the
    server value can be parsed; otherwise the raw value is kept so a
    single odd record cannot break a login.
    """

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    first_name: str
    last_name: str
    contact_number: str
    barangay: Optional[Barangay] = None
    role: UserRole = UserRole.USER
    profile: UserProfile = Field(default_factory=UserProfile)
    is_verified: bool = False
    created_at: Optional[datetime] = None

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        # Document stores hand out ObjectIds; treat any scalar as text.
        if isinstance(value, (int, bytes)):
            return str(value)
        return value

    @field_validator("barangay", mode="before")
    @classmethod
    def _coerce_barangay(cls, value: Any) -> Any:
        if isinstance(value, str):
            return Barangay(value) if value.strip() else None
        return value

    @field_validator("role", mode="before")
    @classmethod
    def _coerce_role(cls, value: Any) -> Any:
        return UserRole(value) if isinstance(value, str) else value

    @field_validator("contact_number")
    @classmethod
    def _canonical_contact_number(cls, value: str) -> str:
        return normalize_contact_number(value) or value

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def display_contact_number(self) -> str:
        """``+63``-prefixed number for display."""
        return display_contact_number(self.contact_number)

    @property
    def submission_contact_number(self) -> str:
        """``0``-prefixed number as the API expects it."""
        return submission_contact_number(self.contact_number)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def to_wire(self) -> dict[str, Any]:
        """Serialise using the API's camelCase keys."""
        return self.model_dump(by_alias=True, mode="json")

    def merged(self, patch: dict[str, Any]) -> "User":
        """Return a copy with *patch* shallow-merged over this user.

        *patch* may use either camelCase or snake_case keys.  Nested
        objects such as ``profile`` are replaced wholesale.
        """
        data = self.to_wire()
        for key, value in patch.items():
            field = type(self).model_fields.get(key)
            wire_key = field.alias if field is not None and field.alias else key
            data[wire_key] = value
        return type(self).model_validate(data)
