import pytest
from pydantic import ValidationError

from civicportal.models.auth_models import (
    ErrorBody,
    OTPDispatchResponse,
    PendingRegistration,
    RefreshResponse,
    TokenResponse,
)
from civicportal.models.enums import Barangay, UserRole
from civicportal.models.user import User
from conftest import make_user_payload, otp_body, session_body


class TestUser:
    def test_parses_api_payload(self):
        """Mongo-style ids, camelCase keys and server spellings are accepted."""
        user = User.model_validate(make_user_payload())
        assert user.id == "64f0c0ffee0000000000a001"
        assert user.first_name == "Juan"
        assert user.contact_number == "9171234567"
        assert user.barangay == Barangay.BACOLOD
        assert user.role == UserRole.USER
        assert user.is_verified is True
        assert user.is_admin is False

    def test_plain_id_and_snake_case(self):
        user = User(
            id="abc", first_name="Ana", last_name="Reyes", contact_number="09181112222", role="admin",
        )
        assert user.is_admin is True
        assert user.full_name == "Ana Reyes"

    def test_contact_number_forms(self, user):
        assert user.display_contact_number == "+639171234567"
        assert user.submission_contact_number == "09171234567"

    def test_odd_contact_number_is_kept(self):
        user = User.model_validate(make_user_payload(contactNumber="landline"))
        assert user.contact_number == "landline"

    def test_unknown_barangay_is_rejected(self):
        with pytest.raises(ValidationError):
            User.model_validate(make_user_payload(barangay="Atlantis"))

    def test_blank_barangay_is_none(self):
        assert User.model_validate(make_user_payload(barangay="")).barangay is None

    def test_unknown_role_is_rejected(self):
        with pytest.raises(ValidationError):
            User.model_validate(make_user_payload(role="superuser"))

    def test_to_wire_uses_camel_case(self, user):
        wire = user.to_wire()
        assert wire["firstName"] == "Juan"
        assert wire["contactNumber"] == "9171234567"
        assert wire["barangay"] == "Bacolod"

    def test_merged_replaces_nested_profile(self, user):
        updated = user.merged({"profile": {"bio": "Hi"}})
        assert updated.profile.bio == "Hi"
        assert updated.profile.address is None
        assert user.profile.bio is None


class TestResponseSchemas:
    def test_token_response(self):
        parsed = TokenResponse.model_validate(session_body())
        assert parsed.token == "access-1"
        assert parsed.refresh_token == "refresh-1"
        assert parsed.message == "Login successful"

    def test_token_response_requires_token(self):
        with pytest.raises(ValidationError):
            TokenResponse.model_validate(session_body(token=""))

    def test_otp_dispatch(self):
        assert OTPDispatchResponse.model_validate(otp_body()).data.masked_number == "091*****567"

    def test_refresh_user_optional(self):
        assert RefreshResponse.model_validate({"token": "t"}).user is None

    def test_error_body_tolerates_extra_fields(self):
        body = ErrorBody.model_validate({"success": False, "message": "Nope", "stack": "..."})
        assert body.message == "Nope"
        assert body.errors == []


class TestPendingRegistration:
    def test_wire_body(self):
        pending = PendingRegistration(
            first_name="Juan",
            last_name="Dela Cruz",
            contact_number="09171234567",
            barangay="bacolod",
            password="Secret123!",
        )
        assert pending.to_wire() == {
            "firstName": "Juan",
            "lastName": "Dela Cruz",
            "contactNumber": "09171234567",
            "barangay": "Bacolod",
            "password": "Secret123!",
        }
