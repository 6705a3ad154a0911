# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Callable
from typing import Any

import httpx
import pydantic
from lionherd_core.errors import ConnectionError as ServiceConnectionError

from .types.log import ErrorLogger, LoggingErrorLogger
from .types.result import ActionResult, ClassifiedError
from .utilities.errors import ActionError, ErrorKind

__all__ = ("GENERIC_MESSAGE", "ErrorClassifier")

GENERIC_MESSAGE = "An unexpected error occurred. Please try again."
UNKNOWN_MESSAGE = "An unexpected error occurred"

logger = logging.getLogger(__name__)


def _field_errors(error: pydantic.ValidationError) -> dict[str, list[str]]:
    fields: dict[str, list[str]] = {}
    for item in error.errors():
        path = ".".join(str(p) for p in item.get("loc", ())) or "__root__"
        fields.setdefault(path, []).append(item.get("msg", "Invalid value"))
    return fields


class ErrorClassifier:
    """Turns any raised value into a client-safe ClassifiedError.

    Every error is handed to the ``error_logger`` in full before it is
    reduced. In production mode the message of an unclassified error is
    replaced by a generic one; otherwise the original message passes through.

    Usage:
        classifier = ErrorClassifier(production=config.production)
        submit = classifier.wrap(submit_contact, context={"action": "contact"})
        result = await submit(form)  # ActionResult, never raises
    """

    def __init__(
        self,
        production: bool = False,
        error_logger: ErrorLogger | None = None,
        generic_message: str = GENERIC_MESSAGE,
    ):
        self.production = production
        self.error_logger = error_logger or LoggingErrorLogger()
        self.generic_message = generic_message

    def classify(self, error: object, context: dict[str, Any] | None = None) -> ClassifiedError:
        """Log ``error`` and reduce it to a ClassifiedError. Never raises."""
        self._log(error, context)
        try:
            return self._classify(error)
        except Exception:
            logger.exception("Error classification failed")
            return self._internal(self.generic_message)

    def handle(self, error: object, context: dict[str, Any] | None = None) -> ActionResult:
        """Classify ``error`` and return the failed ActionResult."""
        return self.classify(error, context).to_result()

    def wrap(
        self,
        action: Callable[..., Any],
        context: dict[str, Any] | None = None,
        *,
        capture_args: bool = False,
    ) -> Callable[..., Any]:
        """Wrap a handler so it always returns an ActionResult.

        Works with sync and async handlers; the wrapper is always async.
        The error context holds ``context`` plus the action name; call
        arguments are added only with ``capture_args=True``.
        """
        name = getattr(action, "__name__", repr(action))

        @functools.wraps(action)
        async def wrapper(*args: Any, **kwargs: Any) -> ActionResult:
            try:
                result = action(*args, **kwargs)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as e:
                error_context = {**(context or {}), "action": name}
                if capture_args:
                    error_context.update(args=args, kwargs=kwargs)
                return self.handle(e, error_context)
            if isinstance(result, ActionResult):
                return result
            return ActionResult.ok(result)

        return wrapper

    def _log(self, error: object, context: dict[str, Any] | None) -> None:
        if not isinstance(error, BaseException):
            error = RuntimeError(f"Non-exception value raised: {error!r}")
        try:
            self.error_logger.log(error, context)
        except Exception as e:
            logger.warning(f"Error logger {type(self.error_logger).__name__} failed: {e}")

    def _internal(self, message: str) -> ClassifiedError:
        kind = ErrorKind.INTERNAL
        return ClassifiedError(
            kind=kind, message=message, status_code=kind.status_code, code=kind.code
        )

    def _classify(self, error: object) -> ClassifiedError:
        match error:
            case ActionError():
                return ClassifiedError(
                    kind=error.kind,
                    message=error.message,
                    status_code=error.status_code,
                    code=error.code,
                    details=error.details,
                )

            case pydantic.ValidationError():
                kind = ErrorKind.VALIDATION
                return ClassifiedError(
                    kind=kind,
                    message="Please correct the form errors",
                    status_code=kind.status_code,
                    code=kind.code,
                    details={"fields": _field_errors(error)},
                )

            case ServiceConnectionError() | httpx.HTTPError() | TimeoutError():
                kind = ErrorKind.EXTERNAL_SERVICE
                message = "External service error"
                if not self.production:
                    message = f"{message}: {error}"
                return ClassifiedError(
                    kind=kind, message=message, status_code=kind.status_code, code=kind.code
                )

            case BaseException():
                if self.production:
                    return self._internal(self.generic_message)
                return self._internal(str(error) or type(error).__name__)

            case str() if error and not self.production:
                return self._internal(error)

            case _:
                return self._internal(self.generic_message if self.production else UNKNOWN_MESSAGE)
