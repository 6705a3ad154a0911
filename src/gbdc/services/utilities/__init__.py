# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Utilities for request resilience: rate limiting, retries, error taxonomy."""

from .errors import (
    ActionError,
    AuthenticationError,
    AuthorizationError,
    ErrorKind,
    ExternalServiceError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from .rate_limiter import (
    API,
    PRESETS,
    RELAXED,
    STANDARD,
    STRICT,
    WEATHER,
    RateLimitPolicy,
    RateLimitResult,
    RateLimitStore,
    RateWindow,
    with_rate_limit,
)
from .request import RequestMetadata, client_identifier, request_metadata
from .resilience import RetryConfig, retry_with_backoff
from .validation import sanitize_input, validate_email, validate_phone, validate_required

__all__ = (
    "API",
    "PRESETS",
    "RELAXED",
    "STANDARD",
    "STRICT",
    "WEATHER",
    "ActionError",
    "AuthenticationError",
    "AuthorizationError",
    "ErrorKind",
    "ExternalServiceError",
    "NotFoundError",
    "RateLimitError",
    "RateLimitPolicy",
    "RateLimitResult",
    "RateLimitStore",
    "RateWindow",
    "RequestMetadata",
    "RetryConfig",
    "ValidationError",
    "client_identifier",
    "request_metadata",
    "retry_with_backoff",
    "sanitize_input",
    "validate_email",
    "validate_phone",
    "validate_required",
    "with_rate_limit",
)
