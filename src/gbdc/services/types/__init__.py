# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Service types: handler results, error logging, email endpoints."""

from .endpoint import EmailEndpoint, EmailEndpointConfig, EmailMessage, EmailReceipt
from .log import ErrorLogger, ErrorRecord, FileErrorLogger, LoggingErrorLogger
from .result import ActionResult, ClassifiedError

__all__ = (
    "ActionResult",
    "ClassifiedError",
    "EmailEndpoint",
    "EmailEndpointConfig",
    "EmailMessage",
    "EmailReceipt",
    "ErrorLogger",
    "ErrorRecord",
    "FileErrorLogger",
    "LoggingErrorLogger",
)
