# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field, SecretStr

__all__ = ("BusinessInfo", "SiteConfig")


class BusinessInfo(BaseModel):
    name: str = "Great Beginnings Day Care Center"
    phone: str = "(630) 894-3440"
    address: str = "757 E Nerge Rd, Roselle, IL 60172"
    email: str = "info@greatbeginningsdaycare.com"
    website: str = "https://greatbeginningsdaycare.com"


class SiteConfig(BaseModel):
    """Process-wide settings, built once at startup and passed to components."""

    production: bool = False
    business: BusinessInfo = Field(default_factory=BusinessInfo)
    from_email: str = "noreply@greatbeginningsdaycare.com"
    staff_email: str | None = None
    resend_api_key: str | SecretStr | None = Field("RESEND_API_KEY", exclude=True)
    cleanup_interval: float = 60.0

    @property
    def sender(self) -> str:
        return f"{self.business.name} <{self.from_email}>"

    @property
    def staff_inbox(self) -> str:
        return self.staff_email or self.business.email

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> SiteConfig:
        """Build config from environment variables, keeping defaults for unset ones.

        Reads GBDC_ENV ("production" turns on error redaction), RESEND_API_KEY,
        RESEND_FROM_EMAIL, GBDC_STAFF_EMAIL and GBDC_BUSINESS_{NAME,PHONE,
        ADDRESS,EMAIL,WEBSITE}.
        """
        env = os.environ if environ is None else environ

        business = {
            field: env[f"GBDC_BUSINESS_{field.upper()}"]
            for field in BusinessInfo.model_fields
            if env.get(f"GBDC_BUSINESS_{field.upper()}")
        }
        data = {
            "production": env.get("GBDC_ENV", "").strip().lower() == "production",
            "business": BusinessInfo(**business),
        }
        if env.get("RESEND_FROM_EMAIL"):
            data["from_email"] = env["RESEND_FROM_EMAIL"]
        if env.get("GBDC_STAFF_EMAIL"):
            data["staff_email"] = env["GBDC_STAFF_EMAIL"]
        if env.get("RESEND_API_KEY"):
            data["resend_api_key"] = SecretStr(env["RESEND_API_KEY"])
        return cls(**data)
