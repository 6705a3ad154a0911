# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
import os
from typing import Any

import httpx
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    SecretStr,
    field_validator,
    model_validator,
)

from ..utilities.errors import ExternalServiceError
from ..utilities.resilience import RetryConfig, retry_with_backoff

__all__ = (
    "EmailEndpoint",
    "EmailEndpointConfig",
    "EmailMessage",
    "EmailReceipt",
)

logger = logging.getLogger(__name__)


class EmailMessage(BaseModel):
    """Outgoing transactional email."""

    model_config = ConfigDict(populate_by_name=True)

    sender: str = Field(..., alias="from")
    to: list[str] = Field(..., min_length=1)
    subject: str = Field(..., min_length=1)
    html: str | None = None
    text: str | None = None
    reply_to: str | None = None

    @field_validator("to", mode="before")
    def _coerce_to(cls, v):  # noqa: N805
        return [v] if isinstance(v, str) else v

    @model_validator(mode="after")
    def _require_body(self):
        if not self.html and not self.text:
            raise ValueError("Email needs an html or text body")
        return self

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class EmailReceipt(BaseModel):
    """Normalized response from an email provider."""

    id: str | None = Field(None, description="Provider message id")
    provider: str
    raw_response: dict = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class EmailEndpointConfig(BaseModel):
    provider: str
    name: str = "email"
    base_url: str
    endpoint: str
    method: str = "POST"
    api_key: str | SecretStr | None = Field(None, exclude=True)
    timeout: float = 30.0
    default_headers: dict[str, str] = Field(default_factory=dict)
    client_kwargs: dict[str, Any] = Field(default_factory=dict)
    _api_key: str | None = PrivateAttr(None)

    @model_validator(mode="after")
    def _validate_api_key(self):
        if self.api_key is not None:
            if isinstance(self.api_key, SecretStr):
                self._api_key = self.api_key.get_secret_value()
            elif isinstance(self.api_key, str):
                # Environment variable name first, then the literal value
                self._api_key = os.getenv(self.api_key, self.api_key)
        return self

    @field_validator("provider", mode="before")
    def _validate_provider(cls, v: str):  # noqa: N805
        if not v:
            raise ValueError("Provider must be specified")
        return v.strip().lower()

    @property
    def full_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.endpoint.lstrip('/')}"


class EmailEndpoint:
    """HTTP email API endpoint with optional retry.

    Every failure surfaces as ExternalServiceError so request handlers can
    classify it uniformly; the httpx exception is chained as the cause.
    """

    def __init__(
        self,
        config: dict | EmailEndpointConfig,
        retry_config: RetryConfig | None = None,
        **kwargs,
    ):
        if isinstance(config, dict):
            config = EmailEndpointConfig(**config, **kwargs)
        elif isinstance(config, EmailEndpointConfig):
            config = config.model_copy(update=kwargs, deep=True) if kwargs else config
        else:
            raise ValueError("Config must be a dict or EmailEndpointConfig instance")

        self.config = config
        self.retry_config = retry_config

        logger.debug(
            f"Initialized EmailEndpoint with provider={self.config.provider}, "
            f"url={self.config.full_url}, retry_config={retry_config is not None}"
        )

    @property
    def provider(self) -> str:
        return self.config.provider

    @property
    def full_url(self) -> str:
        return self.config.full_url

    def _create_http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.config.timeout, **self.config.client_kwargs)

    def create_headers(self, extra_headers: dict[str, str] | None = None) -> dict[str, str]:
        headers = {"Content-Type": "application/json", **self.config.default_headers}
        if self.config._api_key:
            headers["Authorization"] = f"Bearer {self.config._api_key}"
        if extra_headers:
            headers.update(extra_headers)
        return headers

    def normalize_response(self, raw_response: dict) -> EmailReceipt:
        """Normalize the provider response. Override in provider endpoints."""
        return EmailReceipt(provider=self.provider, raw_response=raw_response)

    async def send(
        self,
        message: EmailMessage | dict,
        extra_headers: dict[str, str] | None = None,
    ) -> EmailReceipt:
        """Send one email, retrying per ``retry_config`` when set."""
        if isinstance(message, dict):
            message = EmailMessage.model_validate(message)
        payload = message.to_payload()
        headers = self.create_headers(extra_headers)

        if self.retry_config:
            raw_response = await retry_with_backoff(
                self._call_http, payload, headers, **self.retry_config.as_kwargs()
            )
        else:
            raw_response = await self._call_http(payload, headers)

        return self.normalize_response(raw_response)

    async def _call_http(self, payload: dict, headers: dict) -> dict:
        try:
            async with self._create_http_client() as client:
                response = await client.request(
                    method=self.config.method,
                    url=self.config.full_url,
                    headers=headers,
                    json=payload,
                )
        except httpx.HTTPError as e:
            raise ExternalServiceError(self.provider, e) from e

        if not response.is_success:
            try:
                body = response.json()
            except ValueError:
                body = response.text
            error = httpx.HTTPStatusError(
                f"Request failed with status {response.status_code}",
                request=response.request,
                response=response,
            )
            raise ExternalServiceError(
                self.provider, error, details={"status": response.status_code, "body": body}
            ) from error

        try:
            return response.json()
        except ValueError:
            return {}
