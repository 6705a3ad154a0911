# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

import pytest

from gbdc.services.utilities import ValidationError
from gbdc.services.utilities.validation import (
    collapse_whitespace,
    is_valid_email,
    sanitize_input,
    validate_email,
    validate_phone,
    validate_required,
)


class TestValidateRequired:
    def test_passes_when_present(self):
        validate_required({"name": "Ada", "email": "a@b.co"}, ["name", "email"])

    def test_lists_missing_fields(self):
        """Missing and empty fields are both reported, in order."""
        with pytest.raises(ValidationError) as exc_info:
            validate_required({"name": "", "phone": "1"}, ["name", "email", "phone"])

        assert exc_info.value.message == "Missing required fields: name, email"
        assert exc_info.value.details == {"missing": ["name", "email"]}


class TestEmailAndPhone:
    @pytest.mark.parametrize("email", ["parent@example.com", "a.b+c@sub.domain.org"])
    def test_valid_emails(self, email):
        assert is_valid_email(email)
        validate_email(email)

    @pytest.mark.parametrize("email", ["", "no-at-sign", "a@b", "a b@c.com"])
    def test_invalid_emails(self, email):
        assert not is_valid_email(email)
        with pytest.raises(ValidationError, match="Invalid email format"):
            validate_email(email)

    @pytest.mark.parametrize("phone", ["(630) 894-3440", "630-894-3440", "+1 630 894 3440"])
    def test_valid_phones(self, phone):
        validate_phone(phone)

    @pytest.mark.parametrize("phone", ["", "894-3440", "630.894.3440", "call me"])
    def test_invalid_phones(self, phone):
        with pytest.raises(ValidationError, match="Invalid phone number format"):
            validate_phone(phone)


class TestSanitize:
    def test_strips_scripts_and_tags(self):
        """Script blocks are removed with their content; other tags lose markup only."""
        value = "  <b>Hello</b><script>alert('x')</script> world  "
        assert sanitize_input(value) == "Hello world"

    def test_none_and_empty(self):
        assert sanitize_input(None) == ""
        assert sanitize_input("") == ""

    def test_collapse_whitespace(self):
        assert collapse_whitespace("  a \n\t b  ") == "a b"
        assert collapse_whitespace("abcdef", max_length=3) == "abc"
