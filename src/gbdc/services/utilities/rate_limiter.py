# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import functools
import logging
import threading
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, TypeVar

from lionherd_core.libs.concurrency import sleep

from .errors import RateLimitError

__all__ = (
    "API",
    "PRESETS",
    "RELAXED",
    "STANDARD",
    "STRICT",
    "WEATHER",
    "RateLimitPolicy",
    "RateLimitResult",
    "RateLimitStore",
    "RateWindow",
    "with_rate_limit",
)

T = TypeVar("T")
logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class RateLimitPolicy:
    """Fixed-window rate limiting policy.

    Policies with different names keep independent counters for the same client.
    """

    name: str
    window: float  # Window length in seconds
    max_requests: int  # Requests allowed per window

    def __post_init__(self):
        if self.window <= 0:
            raise ValueError("window must be > 0")
        if self.max_requests <= 0:
            raise ValueError("max_requests must be > 0")


STRICT = RateLimitPolicy("strict", window=60.0, max_requests=10)
STANDARD = RateLimitPolicy("standard", window=60.0, max_requests=30)
RELAXED = RateLimitPolicy("relaxed", window=60.0, max_requests=60)
API = RateLimitPolicy("api", window=15 * 60.0, max_requests=100)
WEATHER = RateLimitPolicy("weather", window=5 * 60.0, max_requests=20)

PRESETS: dict[str, RateLimitPolicy] = {
    p.name: p for p in (STRICT, STANDARD, RELAXED, API, WEATHER)
}


@dataclass(slots=True)
class RateWindow:
    count: int
    reset_at: float


@dataclass(slots=True, frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float

    @property
    def reset_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.reset_at, tz=timezone.utc)

    def headers(self) -> dict[str, str]:
        """Rate limit headers for an HTTP response."""
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": self.reset_datetime.isoformat(),
        }

    def to_response(self) -> tuple[int, dict[str, str], dict[str, str]]:
        """Build ``(status, body, headers)`` for an HTTP layer.

        Denied requests get 429 and an explanatory body; allowed requests get
        200 with an empty body so the caller can continue.
        """
        if self.allowed:
            return 200, {}, self.headers()
        return (
            429,
            {
                "error": "Too Many Requests",
                "message": (
                    "Rate limit exceeded. Please try again after "
                    f"{self.reset_datetime.isoformat()}"
                ),
            },
            self.headers(),
        )


class RateLimitStore:
    """In-memory fixed-window request counter keyed by policy and client.

    Thread-safe. State lives only as long as the instance; construct one per
    process and pass it to the handlers that need it.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        """Initialize an empty store.

        Args:
            clock: Returns the current POSIX time in seconds
        """
        self._clock = clock
        self._windows: dict[tuple[str, str], RateWindow] = {}
        self._lock = threading.Lock()
        self._closed = False

    def check(self, client_id: str, policy: RateLimitPolicy) -> RateLimitResult:
        """Count one request from ``client_id`` against ``policy``.

        Requests over the limit are still counted, so a client hammering the
        endpoint keeps its window until ``reset_at`` passes.
        """
        key = (policy.name, client_id)

        with self._lock:
            now = self._clock()
            window = self._windows.get(key)

            if window is None or now > window.reset_at:
                window = RateWindow(count=1, reset_at=now + policy.window)
                self._windows[key] = window
            else:
                window.count += 1

            count, reset_at = window.count, window.reset_at

        allowed = count <= policy.max_requests
        if not allowed:
            logger.warning(
                f"Rate limit '{policy.name}' exceeded for {client_id!r}: "
                f"{count}/{policy.max_requests}"
            )

        return RateLimitResult(
            allowed=allowed,
            limit=policy.max_requests,
            remaining=max(0, policy.max_requests - count),
            reset_at=reset_at,
        )

    def cleanup(self) -> int:
        """Drop windows that have expired. Returns the number removed."""
        with self._lock:
            now = self._clock()
            expired = [k for k, w in self._windows.items() if w.reset_at < now]
            for k in expired:
                del self._windows[k]

        if expired:
            logger.debug(f"Purged {len(expired)} expired rate limit windows")
        return len(expired)

    async def run_cleanup(self, interval: float = 60.0) -> None:
        """Sweep expired windows every ``interval`` seconds until closed.

        Meant to run as a background task for the life of the process.
        """
        logger.info(f"Rate limit cleanup started (interval={interval}s)")
        while not self._closed:
            await sleep(interval)
            if self._closed:
                break
            self.cleanup()
        logger.info("Rate limit cleanup stopped")

    def close(self) -> None:
        """Stop the cleanup loop and discard all windows."""
        self._closed = True
        with self._lock:
            self._windows.clear()

    def __len__(self) -> int:
        return len(self._windows)

    def __repr__(self) -> str:
        return f"RateLimitStore(windows={len(self)})"


def with_rate_limit(
    func: Callable[..., Awaitable[T]],
    store: RateLimitStore,
    policy: RateLimitPolicy = STANDARD,
) -> Callable[..., Awaitable[T]]:
    """Wrap an async callable so every call is counted against ``policy``.

    The wrapper takes a keyword-only ``client_id`` and raises
    ``RateLimitError`` instead of calling ``func`` once the quota is spent.

    Usage:
        limited = with_rate_limit(send_message, store, STRICT)
        await limited(payload, client_id=client_identifier(headers))
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, client_id: str, **kwargs: Any) -> T:
        result = store.check(client_id, policy)
        if not result.allowed:
            raise RateLimitError(result.reset_at)
        return await func(*args, **kwargs)

    return wrapper
