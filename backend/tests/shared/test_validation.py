"""Tests for shared/validation.py."""

import pytest

from shared.validation import (
    is_valid_email,
    is_valid_full_name,
    is_valid_password,
    is_valid_uuid,
    normalize_email,
    password_violation,
    sanitize_error,
)


class TestUuid:
    def test_valid(self):
        assert is_valid_uuid("11111111-1111-4111-8111-111111111111") is True
        assert is_valid_uuid("ABCDEFAB-1111-4111-8111-111111111111") is True

    @pytest.mark.parametrize("value", ["", "not-a-uuid", None, 42, "11111111-1111-4111-8111-111111111111\n"])
    def test_invalid(self, value):
        assert is_valid_uuid(value) is False


class TestEmail:
    def test_normalize(self):
        assert normalize_email("  A@B.Com ") == "a@b.com"
        assert normalize_email(None) == ""

    @pytest.mark.parametrize("value", ["a@b.com", "first.last+tag@sub.example.org"])
    def test_valid(self, value):
        assert is_valid_email(value) is True

    @pytest.mark.parametrize(
        "value", ["", "plain", "a@", "@b.com", "a@-b.com", "a b@c.com", "Ana <a@b.com>", None]
    )
    def test_invalid(self, value):
        assert is_valid_email(value) is False

    def test_length_cap(self):
        assert is_valid_email("a" * 250 + "@b.com") is False

    def test_longest_accepted_address(self):
        # 64-char local part, 189-char domain of labels up to 63 chars
        email = "a" * 64 + "@" + "b" * 63 + "." + "c" * 63 + "." + "d" * 57 + ".com"
        assert len(email) == 254
        assert is_valid_email(email) is True
        assert is_valid_email("e" + email) is False


class TestPassword:
    @pytest.mark.parametrize(
        "password,message",
        [
            ("", "Password is required"),
            ("Ab1!", "Password must be at least 8 characters"),
            ("Ab1!" * 19, "Password must be at most 72 characters"),
            ("abcd123!", "Password must contain at least one uppercase letter"),
            ("ABCD123!", "Password must contain at least one lowercase letter"),
            ("Abcdefg!", "Password must contain at least one number"),
            ("Abcd1234", "Password must contain at least one special character"),
        ],
    )
    def test_first_violation(self, password, message):
        assert password_violation(password) == message
        assert is_valid_password(password) is False

    @pytest.mark.parametrize("password", ["Abcd123!", "Xy9#longerpassword", "Q1w2e3r4[]"])
    def test_valid(self, password):
        assert password_violation(password) is None
        assert is_valid_password(password) is True


class TestFullName:
    def test_bounds(self):
        assert is_valid_full_name("Al") is True
        assert is_valid_full_name("A") is False
        assert is_valid_full_name("x" * 100) is True
        assert is_valid_full_name("x" * 101) is False
        assert is_valid_full_name(None) is False


class TestSanitizeError:
    def test_messages(self):
        assert sanitize_error(None) == "An error occurred"
        assert sanitize_error("Short message") == "Short message"
        assert sanitize_error("x" * 101) == "An error occurred"
        assert sanitize_error(RuntimeError("permission denied for table profiles")) == (
            "You do not have permission to perform this action"
        )
        assert sanitize_error(RuntimeError("Network timeout")) == "Network error; please try again"
        assert sanitize_error(RuntimeError("relation does not exist")) == "An error occurred"
