# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from lionherd_core.libs.concurrency import sleep

__all__ = (
    "RetryCallback",
    "RetryConfig",
    "retry_with_backoff",
)

T = TypeVar("T")
RetryCallback = Callable[[BaseException, int], Any]
logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """Retry configuration with exponential backoff.

    Attributes:
        max_attempts: Total number of attempts, including the first call
        initial_delay: Delay in seconds after the first failed attempt
        max_delay: Cap in seconds applied to every delay
        exponential_base: Multiplier applied to the delay after each failure
        jitter: Scale each delay by a random factor in [0.5, 1.0]
        retry_on: Exception types that trigger a retry. Defaults to every
            ``Exception``: validation failures are retried exactly like
            network timeouts. Narrow it to skip attempts that cannot succeed.
        on_retry: Called as ``on_retry(error, attempt)`` before each wait
    """

    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0
    jitter: bool = False
    retry_on: tuple[type[BaseException], ...] = field(default_factory=lambda: (Exception,))
    on_retry: RetryCallback | None = None

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.initial_delay < 0:
            raise ValueError("initial_delay must be >= 0")

    def calculate_delay(self, attempt: int) -> float:
        """Calculate the wait after a failed attempt.

        Args:
            attempt: Number of the attempt that just failed (1-indexed)

        Returns:
            Delay in seconds before the next attempt
        """
        delay = min(self.initial_delay * (self.exponential_base ** (attempt - 1)), self.max_delay)
        if self.jitter:
            delay = delay * (0.5 + random.random() * 0.5)
        return delay

    def to_dict(self) -> dict[str, Any]:
        """Serialize config to dict."""
        return {
            "max_attempts": self.max_attempts,
            "initial_delay": self.initial_delay,
            "max_delay": self.max_delay,
            "exponential_base": self.exponential_base,
            "jitter": self.jitter,
            "retry_on": self.retry_on,
        }

    def as_kwargs(self) -> dict[str, Any]:
        """Convert config to kwargs for retry_with_backoff."""
        return {**self.to_dict(), "on_retry": self.on_retry}


async def retry_with_backoff(
    func: Callable[..., Awaitable[T]],
    *args,
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = False,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    on_retry: RetryCallback | None = None,
    **kwargs,
) -> T:
    """Call an async function, retrying failures with exponential backoff.

    The wait after attempt ``n`` is ``initial_delay * exponential_base ** (n - 1)``,
    capped at ``max_delay``. Waiting suspends only the calling task.

    Args:
        func: Async function to call
        *args: Positional arguments for func
        max_attempts: Total attempts before giving up (default: 3)
        initial_delay: First delay in seconds (default: 1.0)
        max_delay: Delay cap in seconds (default: 60.0)
        exponential_base: Delay multiplier per failure (default: 2.0)
        jitter: Randomise delays into [0.5, 1.0] of their value (default: False)
        retry_on: Exception types that trigger retries (default: all exceptions)
        on_retry: Called as ``on_retry(error, attempt)`` after each failed
            attempt that will be retried; never after the final one
        **kwargs: Keyword arguments for func

    Returns:
        Result from the first successful call

    Raises:
        The exception from the final attempt, unchanged
    """
    config = RetryConfig(
        max_attempts=max_attempts,
        initial_delay=initial_delay,
        max_delay=max_delay,
        exponential_base=exponential_base,
        jitter=jitter,
        retry_on=retry_on,
        on_retry=on_retry,
    )
    name = getattr(func, "__name__", repr(func))

    for attempt in range(1, config.max_attempts + 1):
        try:
            return await func(*args, **kwargs)
        except config.retry_on as e:
            if attempt >= config.max_attempts:
                logger.error(f"All {config.max_attempts} attempts exhausted for {name}: {e}")
                raise

            if config.on_retry is not None:
                try:
                    config.on_retry(e, attempt)
                except Exception:
                    logger.exception(f"on_retry callback failed for {name}")

            delay = config.calculate_delay(attempt)
            logger.debug(
                f"Retry attempt {attempt}/{config.max_attempts} for {name} "
                f"after {delay:.2f}s: {e}"
            )
            await sleep(delay)

    raise RuntimeError("Unexpected retry loop exit")
