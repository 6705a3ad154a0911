# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field

from ..utilities.errors import ErrorKind

__all__ = ("ActionResult", "ClassifiedError")


class ActionResult(BaseModel):
    """Uniform result every request handler returns to its caller.

    Success carries ``data``; failure carries ``error`` (a client-safe
    message) plus the classification fields.
    """

    success: bool = Field(..., description="Whether the action completed")
    data: Any = Field(None, description="Action payload on success")
    error: str | None = Field(None, description="Client-safe error message on failure")
    code: str | None = Field(None, description="Machine-readable error code")
    kind: ErrorKind | None = Field(None, description="Error kind on failure")
    status_code: int | None = Field(None, description="HTTP status for the failure")
    details: Any = Field(None, description="Structured error payload")

    @classmethod
    def ok(cls, data: Any = None) -> ActionResult:
        return cls(success=True, data=data)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict, dropping unset fields."""
        if self.success:
            return self.model_dump(mode="json", include={"success", "data"})
        return self.model_dump(mode="json", exclude_none=True, exclude={"data"})


@dataclass(slots=True, frozen=True)
class ClassifiedError:
    kind: ErrorKind
    message: str
    status_code: int
    code: str
    details: Any = None

    def to_result(self) -> ActionResult:
        return ActionResult(
            success=False,
            error=self.message,
            code=self.code,
            kind=self.kind,
            status_code=self.status_code,
            details=self.details,
        )
