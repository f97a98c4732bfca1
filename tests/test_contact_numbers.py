import pytest

from civicportal.utils.contact_numbers import (
    display_contact_number,
    normalize_contact_number,
    submission_contact_number,
)


class TestNormalizeContactNumber:
    @pytest.mark.parametrize(
        "raw",
        ["9171234567", "09171234567", "+639171234567", "639171234567", "0917-123-4567", " 0917 123 4567 "],
    )
    def test_accepted_forms(self, raw):
        assert normalize_contact_number(raw) == "9171234567"

    @pytest.mark.parametrize(
        "raw",
        ["", "12345", "8171234567", "091712345678", "+1 917 123 4567", "０９１７１２３４５６７"],
    )
    def test_rejected_forms(self, raw):
        assert normalize_contact_number(raw) is None

    def test_none_is_rejected(self):
        assert normalize_contact_number(None) is None


class TestSubmissionContactNumber:
    def test_prefixes_zero(self):
        """The API expects the 11-digit local form."""
        assert submission_contact_number("9171234567") == "09171234567"
        assert submission_contact_number("+639171234567") == "09171234567"

    def test_invalid_raises(self):
        with pytest.raises(ValueError):
            submission_contact_number("12345")


class TestDisplayContactNumber:
    def test_international_form(self):
        assert display_contact_number("09171234567") == "+639171234567"

    def test_unparseable_is_returned_as_is(self):
        assert display_contact_number("n/a") == "n/a"
