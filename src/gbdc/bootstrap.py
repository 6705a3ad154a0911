# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Process-level wiring: one rate-limit store, classifier and email backend per process."""

from __future__ import annotations

import logging

from .actions.emails import EmailService
from .actions.forms import FormActions
from .actions.store import InMemorySubmissionStore, SubmissionStore
from .config import SiteConfig
from .services.error_handling import ErrorClassifier
from .services.providers.resend import ResendEmailEndpoint, create_resend_config
from .services.types.endpoint import EmailEndpoint
from .services.types.log import ErrorLogger
from .services.utilities.rate_limiter import RateLimitStore
from .services.utilities.resilience import RetryConfig

__all__ = ("create_form_actions",)

logger = logging.getLogger(__name__)


def _log_email_retry(error: BaseException, attempt: int) -> None:
    logger.warning(f"Email send attempt {attempt} failed: {error}")


def create_form_actions(
    config: SiteConfig | None = None,
    *,
    store: SubmissionStore | None = None,
    endpoint: EmailEndpoint | None = None,
    rate_limits: RateLimitStore | None = None,
    error_logger: ErrorLogger | None = None,
    retry_config: RetryConfig | None = None,
) -> FormActions:
    """Build FormActions and its collaborators from ``config``.

    Anything passed explicitly is used as-is; the rest is created with
    defaults (Resend email endpoint, in-memory store, fresh rate-limit store).
    The caller owns ``rate_limits`` and should run its ``run_cleanup`` loop
    as a background task.
    """
    config = config or SiteConfig.from_env()

    if endpoint is None:
        endpoint = ResendEmailEndpoint(
            create_resend_config(api_key=config.resend_api_key),
            retry_config=RetryConfig(on_retry=_log_email_retry),
        )

    actions = FormActions(
        store=store if store is not None else InMemorySubmissionStore(),
        emails=EmailService(endpoint, config),
        rate_limits=rate_limits if rate_limits is not None else RateLimitStore(),
        classifier=ErrorClassifier(production=config.production, error_logger=error_logger),
        retry_config=retry_config,
    )
    logger.info(
        f"Form actions ready (production={config.production}, "
        f"email provider={endpoint.provider})"
    )
    return actions
