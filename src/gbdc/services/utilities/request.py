# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Helpers that read client information from request headers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any

__all__ = (
    "DEFAULT_CLIENT_ID",
    "RequestMetadata",
    "client_identifier",
    "forwarded_ip",
    "request_metadata",
)

DEFAULT_CLIENT_ID = "127.0.0.1"


def _lower(headers: Mapping[str, str] | None) -> dict[str, str]:
    if not headers:
        return {}
    return {str(k).lower(): v for k, v in headers.items()}


def forwarded_ip(headers: Mapping[str, str] | None) -> str | None:
    """Return the client IP from proxy headers, or None when absent.

    Order: first ``x-forwarded-for`` entry, ``x-real-ip``, ``cf-connecting-ip``.
    """
    h = _lower(headers)

    forwarded_for = h.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    for name in ("x-real-ip", "cf-connecting-ip"):
        value = (h.get(name) or "").strip()
        if value:
            return value
    return None


def client_identifier(headers: Mapping[str, str] | None) -> str:
    """Rate limit key for a request, falling back to loopback."""
    return forwarded_ip(headers) or DEFAULT_CLIENT_ID


@dataclass(slots=True, frozen=True)
class RequestMetadata:
    user_agent: str | None
    referer: str | None
    ip: str | None
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def request_metadata(headers: Mapping[str, str] | None) -> RequestMetadata:
    """Snapshot of the request for logging context."""
    h = _lower(headers)
    return RequestMetadata(
        user_agent=h.get("user-agent"),
        referer=h.get("referer"),
        ip=forwarded_ip(h),
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
