# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Provider-specific email endpoint implementations."""

from .resend import ResendEmailEndpoint, create_resend_config

__all__ = (
    "ResendEmailEndpoint",
    "create_resend_config",
)
