# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from pydantic import SecretStr

from ..types.endpoint import EmailEndpoint, EmailEndpointConfig, EmailReceipt
from ..utilities.resilience import RetryConfig

__all__ = (
    "ResendEmailEndpoint",
    "create_resend_config",
)


def create_resend_config(
    api_key: str | SecretStr | None = None,
    base_url: str = "https://api.resend.com",
    endpoint: str = "emails",
    **kwargs,
) -> EmailEndpointConfig:
    """Factory for Resend email API config.

    Args:
        api_key: API key or env var name (default: "RESEND_API_KEY")
        base_url: Base API URL
        endpoint: Endpoint path
        **kwargs: Additional config parameters

    Returns:
        EmailEndpointConfig instance
    """
    return EmailEndpointConfig(
        provider="resend",
        name="resend-emails",
        base_url=base_url,
        endpoint=endpoint,
        api_key=api_key or "RESEND_API_KEY",
        **kwargs,
    )


class ResendEmailEndpoint(EmailEndpoint):
    """Resend ``POST /emails`` endpoint.

    Usage:
        endpoint = ResendEmailEndpoint(retry_config=RetryConfig())
        receipt = await endpoint.send({
            "from": "noreply@example.com",
            "to": ["parent@example.com"],
            "subject": "Hello",
            "text": "...",
        })
    """

    def __init__(
        self,
        config: dict | EmailEndpointConfig | None = None,
        retry_config: RetryConfig | None = None,
        **kwargs,
    ):
        if config is None:
            config = create_resend_config(**kwargs)
            kwargs = {}
        super().__init__(config=config, retry_config=retry_config, **kwargs)

    def normalize_response(self, raw_response: dict) -> EmailReceipt:
        return EmailReceipt(
            id=raw_response.get("id"),
            provider=self.provider,
            raw_response=raw_response,
        )
