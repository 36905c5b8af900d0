"""
test_validators.py
------------------
Unit tests for fogfern.core.validators module.

Tests the DataValidator class used by the dataset loader for record
normalization and by the repositories for fail-fast input checks.
"""
import pytest

from fogfern.core.exceptions import ValidationError
from fogfern.core.validators import DataValidator


class TestMissingFields:
    """Test missing_fields method."""

    def test_none_and_blank_are_missing(self):
        """None and whitespace-only strings count as missing."""
        data = {"display_name": "   ", "email": None, "city": "sf"}
        assert DataValidator.missing_fields(data, ["display_name", "email", "city"]) == [
            "display_name",
            "email",
        ]

    def test_absent_key_is_missing(self):
        assert DataValidator.missing_fields({}, ["display_name"]) == ["display_name"]

    def test_nothing_missing(self):
        assert DataValidator.missing_fields({"display_name": "Ana"}, ["display_name"]) == []


class TestNormalizeString:
    """Test normalize_string method."""

    def test_strips_whitespace(self):
        """Test leading/trailing whitespace is removed."""
        assert DataValidator.normalize_string("  hello  ") == "hello"
        assert DataValidator.normalize_string("\thello\n") == "hello"

    def test_collapses_internal_whitespace(self):
        assert DataValidator.normalize_string("Golden   Gate\tPark") == "Golden Gate Park"

    def test_empty_string_returns_none(self):
        """Test empty string returns None."""
        assert DataValidator.normalize_string("") is None
        assert DataValidator.normalize_string("   ") is None

    def test_none_returns_none(self):
        assert DataValidator.normalize_string(None) is None

    def test_converts_non_string_to_string(self):
        assert DataValidator.normalize_string(123) == "123"

    def test_unicode_strings(self):
        assert DataValidator.normalize_string("  café  ") == "café"


class TestNormalizeMachineName:
    """Test normalize_machine_name method."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("San Francisco", "san_francisco"),
            ("St. Paul", "st_paul"),
            ("São Paulo", "sao_paulo"),
            ("  new-york  ", "new_york"),
        ],
    )
    def test_examples(self, value, expected):
        assert DataValidator.normalize_machine_name(value) == expected


class TestValidateEmail:
    """Test validate_email method."""

    def test_none_is_allowed(self):
        assert DataValidator.validate_email(None) is None

    def test_valid_email_stripped(self):
        assert DataValidator.validate_email(" ana@example.com ") == "ana@example.com"

    @pytest.mark.parametrize("email", ["", "not-an-email", "ana@", "@example.com", "a b@example.com"])
    def test_invalid(self, email):
        with pytest.raises(ValidationError):
            DataValidator.validate_email(email)


class TestNormalizeFloat:
    """Test normalize_float method."""

    def test_numbers_and_strings(self):
        assert DataValidator.normalize_float(3.14) == 3.14
        assert DataValidator.normalize_float(42) == 42.0
        assert DataValidator.normalize_float("-2.5") == -2.5

    def test_missing_uses_default(self):
        """None and empty strings fall back to the default."""
        assert DataValidator.normalize_float(None) == 0.0
        assert DataValidator.normalize_float("", default=1.5) == 1.5

    def test_invalid_raises(self):
        with pytest.raises(ValidationError):
            DataValidator.normalize_float("not a number")


class TestNormalizeBool:
    """Test normalize_bool method."""

    @pytest.mark.parametrize("value", [True, 1, "true", "YES", "on"])
    def test_truthy(self, value):
        assert DataValidator.normalize_bool(value) is True

    @pytest.mark.parametrize("value", [False, 0, "false", "No", "off"])
    def test_falsy(self, value):
        assert DataValidator.normalize_bool(value) is False

    def test_none(self):
        assert DataValidator.normalize_bool(None) is None

    @pytest.mark.parametrize("value", ["maybe", 2])
    def test_invalid(self, value):
        with pytest.raises(ValidationError):
            DataValidator.normalize_bool(value)
