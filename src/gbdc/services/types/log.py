# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import atexit
import json
import logging
import traceback
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from lionherd_core import Element, Pile
from pydantic import Field

from ...adapters.log_adapters import FilePersistenceAdapter, PersistenceAdapter
from ..utilities.errors import ActionError, ErrorKind

__all__ = (
    "ErrorLogger",
    "ErrorRecord",
    "FileErrorLogger",
    "LoggingErrorLogger",
)


@runtime_checkable
class ErrorLogger(Protocol):
    """Collaborator that receives every error the classifier sees."""

    def log(self, error: BaseException, context: dict[str, Any] | None = None) -> None: ...


def _jsonable(value: Any) -> Any:
    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return repr(value)


class ErrorRecord(Element):
    """Snapshot of a handled error, ready for persistence."""

    error_type: str
    message: str
    kind: str | None = None
    context: dict[str, Any] = Field(default_factory=dict)
    stack: str | None = None

    @classmethod
    def create(cls, error: BaseException, context: dict[str, Any] | None = None) -> ErrorRecord:
        kind = error.kind.value if isinstance(error, ActionError) else None
        stack = None
        if error.__traceback__ is not None:
            stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        return cls(
            error_type=type(error).__name__,
            message=str(error),
            kind=kind,
            context={str(k): _jsonable(v) for k, v in (context or {}).items()},
            stack=stack,
        )


class LoggingErrorLogger:
    """Default ErrorLogger: one ERROR line per error through ``logging``."""

    def __init__(self, name: str = "gbdc.errors"):
        self._logger = logging.getLogger(name)

    def log(self, error: BaseException, context: dict[str, Any] | None = None) -> None:
        self._logger.error(
            f"{type(error).__name__}: {error}",
            exc_info=(type(error), error, error.__traceback__),
            extra={"error_context": context or {}},
        )


class FileErrorLogger:
    """ErrorLogger that buffers ErrorRecords and writes them via a PersistenceAdapter.

    Flush triggers:
        - Immediate: internal errors, external-service errors, and any
          exception outside the ActionError taxonomy
        - Capacity: buffer size >= capacity
        - Exit: atexit handler (if enabled)
    """

    def __init__(
        self,
        adapter: PersistenceAdapter | None = None,
        persist_dir: str | Path = "./data/logs/errors",
        partition_by_kind: bool = False,
        capacity: int = 50,
        auto_save_on_exit: bool = True,
    ):
        """Initialize with a persistence adapter.

        Args:
            adapter: Storage backend (creates a JSONL FilePersistenceAdapter if None)
            persist_dir: Directory for the default adapter
            partition_by_kind: Split the default adapter's day files by error kind
            capacity: Max buffered records before an automatic flush
            auto_save_on_exit: Register atexit handler to flush leftovers
        """
        if adapter is None:
            adapter = FilePersistenceAdapter(
                persist_dir=persist_dir, partition_by_kind=partition_by_kind
            )
        self.adapter = adapter
        self.capacity = capacity
        self.buffer: Pile[ErrorRecord] = Pile(item_type=ErrorRecord, strict_type=True)

        if auto_save_on_exit:
            atexit.register(self.flush)

    def log(self, error: BaseException, context: dict[str, Any] | None = None) -> None:
        record = ErrorRecord.create(error, context)
        self.buffer.include(record)

        urgent = not isinstance(error, ActionError) or error.kind in (
            ErrorKind.INTERNAL,
            ErrorKind.EXTERNAL_SERVICE,
        )
        if urgent or len(self.buffer) >= self.capacity:
            self.flush()

    def flush(self) -> None:
        """Write buffered records and clear the buffer."""
        if len(self.buffer) == 0:
            return
        self.adapter.batch_write(list(self.buffer))
        self.buffer.clear()
