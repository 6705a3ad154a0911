# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Services layer - error handling, email backends, resilience patterns."""

from .error_handling import ErrorClassifier
from .types import (
    ActionResult,
    ClassifiedError,
    EmailEndpoint,
    EmailEndpointConfig,
    EmailMessage,
    EmailReceipt,
    ErrorLogger,
    ErrorRecord,
    FileErrorLogger,
    LoggingErrorLogger,
)
from .utilities import (
    ErrorKind,
    RateLimitPolicy,
    RateLimitResult,
    RateLimitStore,
    RetryConfig,
    retry_with_backoff,
    with_rate_limit,
)

__all__ = (
    # Types
    "ActionResult",
    "ClassifiedError",
    "EmailEndpoint",
    "EmailEndpointConfig",
    "EmailMessage",
    "EmailReceipt",
    "ErrorClassifier",
    "ErrorLogger",
    "ErrorRecord",
    "FileErrorLogger",
    "LoggingErrorLogger",
    # Utilities
    "ErrorKind",
    "RateLimitPolicy",
    "RateLimitResult",
    "RateLimitStore",
    "RetryConfig",
    "retry_with_backoff",
    "with_rate_limit",
)
