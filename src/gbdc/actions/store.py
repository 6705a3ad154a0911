# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
import secrets
import time
import uuid
from typing import Any, Literal, Protocol, runtime_checkable

from .schemas import Program

__all__ = ("DEFAULT_CAPACITY", "InMemorySubmissionStore", "SubmissionStore")

logger = logging.getLogger(__name__)

EnrollmentStatus = Literal["pending", "waitlist"]

# (open spots, waitlist length) per program
DEFAULT_CAPACITY: dict[Program, tuple[int, int]] = {
    Program.INFANT: (2, 3),
    Program.TODDLER: (0, 5),
    Program.PRESCHOOL: (4, 1),
    Program.PREK: (3, 0),
    Program.SCHOOLAGE: (8, 0),
}


@runtime_checkable
class SubmissionStore(Protocol):
    """Backend for form submissions and document records.

    A managed database implements it in production.
    """

    async def save_contact(self, submission: dict[str, Any]) -> str:
        """Store a contact submission and return its id."""
        ...

    async def save_enrollment(
        self, application: dict[str, Any]
    ) -> tuple[str, EnrollmentStatus]:
        """Store an enrollment application and return ``(id, status)``."""
        ...

    async def availability(self, program: Program) -> tuple[int, int]:
        """Return ``(open spots, waitlist length)`` for a program."""
        ...

    async def save_document(self, document: dict[str, Any]) -> None:
        """Store an uploaded document record keyed by its ``id``."""
        ...

    async def list_documents(self, uploaded_by: str) -> list[dict[str, Any]]:
        """Return the document records uploaded by ``uploaded_by``."""
        ...

    async def delete_document(self, document_id: str) -> bool:
        """Delete a document record. Returns False when it does not exist."""
        ...


class InMemorySubmissionStore:
    """Process-local SubmissionStore for development and tests."""

    def __init__(self, capacity: dict[Program, tuple[int, int]] | None = None):
        self.capacity = dict(DEFAULT_CAPACITY if capacity is None else capacity)
        self.contacts: dict[str, dict[str, Any]] = {}
        self.enrollments: dict[str, dict[str, Any]] = {}
        self.documents: dict[str, dict[str, Any]] = {}

    async def save_contact(self, submission: dict[str, Any]) -> str:
        submission_id = str(uuid.uuid4())
        self.contacts[submission_id] = submission
        logger.debug(f"Saved contact submission {submission_id}")
        return submission_id

    async def save_enrollment(
        self, application: dict[str, Any]
    ) -> tuple[str, EnrollmentStatus]:
        enrollment_id = f"ENR-{int(time.time() * 1000)}-{secrets.token_hex(4).upper()}"
        spots, _ = await self.availability(Program(application["program"]))
        status: EnrollmentStatus = "pending" if spots > 0 else "waitlist"
        self.enrollments[enrollment_id] = {**application, "status": status}
        logger.debug(f"Saved enrollment {enrollment_id} ({status})")
        return enrollment_id, status

    async def availability(self, program: Program) -> tuple[int, int]:
        return self.capacity.get(program, (0, 0))

    async def save_document(self, document: dict[str, Any]) -> None:
        self.documents[document["id"]] = document
        logger.debug(f"Saved document {document['id']}")

    async def list_documents(self, uploaded_by: str) -> list[dict[str, Any]]:
        return [d for d in self.documents.values() if d["uploaded_by"] == uploaded_by]

    async def delete_document(self, document_id: str) -> bool:
        return self.documents.pop(document_id, None) is not None
