# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Input checks that raise ValidationError for request handlers."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

from .errors import ValidationError

__all__ = (
    "collapse_whitespace",
    "is_valid_email",
    "sanitize_input",
    "validate_email",
    "validate_phone",
    "validate_required",
)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\+?[\d\s\-()]+$")
SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
TAG_RE = re.compile(r"<[^>]+>")


def validate_required(data: Mapping[str, Any], fields: Iterable[str]) -> None:
    """Raise ValidationError listing every field that is missing or falsy."""
    missing = [f for f in fields if not data.get(f)]
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            details={"missing": missing},
        )


def is_valid_email(email: str) -> bool:
    return bool(email) and EMAIL_RE.match(email) is not None


def validate_email(email: str) -> None:
    if not is_valid_email(email):
        raise ValidationError("Invalid email format")


def validate_phone(phone: str) -> None:
    """Accept digits, spaces, dashes, parentheses, optional leading +; at least 10 digits."""
    digits = re.sub(r"\D", "", phone or "")
    if not PHONE_RE.match(phone or "") or len(digits) < 10:
        raise ValidationError("Invalid phone number format")


def sanitize_input(value: str | None) -> str:
    """Trim and strip script blocks and HTML tags."""
    if not value:
        return ""
    value = SCRIPT_RE.sub("", value.strip())
    return TAG_RE.sub("", value)


def collapse_whitespace(value: str, max_length: int | None = None) -> str:
    value = " ".join(value.split())
    return value[:max_length] if max_length is not None else value
