# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Error record persistence adapters."""

from __future__ import annotations

import json
import sys
from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from gbdc.services.types.log import ErrorRecord


class PersistenceAdapter(ABC):
    """Abstract adapter for error record persistence backends.

    Adapters are called from inside error handling, so they must report
    their own failures instead of raising.
    """

    adapter_key: ClassVar[str] = "base"

    @abstractmethod
    def write(self, record: ErrorRecord) -> None:
        """Write single record."""

    @abstractmethod
    def batch_write(self, records: Iterable[ErrorRecord]) -> None:
        """Write multiple records."""

    def _handle_error(self, exc: Exception, category: str) -> None:
        print(f"[PersistenceAdapter] {category} error: {exc}", file=sys.stderr)


class FilePersistenceAdapter(PersistenceAdapter):
    """Daily JSONL files of error records.

    Each record lands in the file for the UTC day it was created, e.g.
    ``errors-2026-06-01.jsonl``. With ``partition_by_kind`` the error kind
    is part of the name (``errors-validation-2026-06-01.jsonl``) and
    errors outside the taxonomy go to ``unclassified``.
    """

    adapter_key: ClassVar[str] = "file"

    def __init__(
        self,
        persist_dir: str | Path = "./data/logs/errors",
        file_prefix: str = "errors",
        partition_by_kind: bool = False,
    ):
        self.persist_dir = Path(persist_dir)
        self.file_prefix = file_prefix
        self.partition_by_kind = partition_by_kind

        self.persist_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, record: ErrorRecord) -> Path:
        day = record.created_at.strftime("%Y-%m-%d")
        parts = [self.file_prefix]
        if self.partition_by_kind:
            parts.append(record.kind or "unclassified")
        parts.append(day)
        return self.persist_dir / f"{'-'.join(parts)}.jsonl"

    def write(self, record: ErrorRecord) -> None:
        """Append one record to its day file."""
        try:
            self._append(self.path_for(record), [record])
        except Exception as exc:
            self._handle_error(exc, "write")

    def batch_write(self, records: Iterable[ErrorRecord]) -> None:
        """Append records, one open per target file."""
        groups: dict[Path, list[ErrorRecord]] = {}
        for record in records:
            groups.setdefault(self.path_for(record), []).append(record)

        for path, group in groups.items():
            try:
                self._append(path, group)
            except Exception as exc:
                self._handle_error(exc, "batch_write")

    @staticmethod
    def _append(path: Path, records: list[ErrorRecord]) -> None:
        with open(path, "a") as f:
            for record in records:
                json.dump(record.to_dict(mode="json"), f)
                f.write("\n")
