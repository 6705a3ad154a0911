# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Contact, enrollment and document form handlers.

Each public method returns an ActionResult and never raises: the flow is
rate limit -> validate -> persist (retried) -> notify (best effort).
"""

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Callable, Mapping
from datetime import date, datetime, timezone
from typing import Any

from ..services.error_handling import ErrorClassifier
from ..services.types.result import ActionResult
from ..services.utilities.errors import (
    ExternalServiceError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from ..services.utilities.rate_limiter import (
    RELAXED,
    STANDARD,
    STRICT,
    RateLimitPolicy,
    RateLimitStore,
)
from ..services.utilities.request import client_identifier, request_metadata
from ..services.utilities.resilience import RetryConfig, retry_with_backoff
from ..services.utilities.validation import (
    collapse_whitespace,
    sanitize_input,
    validate_email,
    validate_phone,
    validate_required,
)
from .emails import ContactEmailData, DocumentUploadEmailData, EmailService
from .schemas import (
    ALLOWED_DOCUMENT_TYPES,
    MAX_DOCUMENT_SIZE,
    SUBJECT_LABELS,
    Availability,
    ContactForm,
    DocumentUpload,
    EnrollmentForm,
    EnrollmentResult,
    Program,
    UploadedDocument,
    is_allowed_document_type,
    response_time,
)
from .store import SubmissionStore

__all__ = ("PROGRAM_AGE_MONTHS", "FormActions", "age_in_months")

logger = logging.getLogger(__name__)

# Eligible age range in months per program, with display label
PROGRAM_AGE_MONTHS: dict[Program, tuple[float, float, str]] = {
    Program.INFANT: (1.5, 15, "6 weeks - 15 months"),
    Program.TODDLER: (15, 36, "15 months - 3 years"),
    Program.PRESCHOOL: (36, 60, "3 - 5 years"),
    Program.PREK: (48, 72, "4 - 6 years"),
    Program.SCHOOLAGE: (60, 144, "5 - 12 years"),
}

ZIP_RE = re.compile(r"^\d{5}(-\d{4})?$")

ENROLLMENT_REQUIRED = (
    "parent_name",
    "email",
    "phone",
    "address",
    "city",
    "state",
    "zip_code",
    "child_name",
    "child_birth_date",
    "program",
    "desired_start_date",
    "emergency_contact",
    "emergency_phone",
    "emergency_relationship",
)

WAITLIST_STEPS = [
    "You'll receive a confirmation email shortly",
    "We'll notify you when a spot opens up",
    "Keep your contact information updated",
    "Feel free to call us for waitlist status updates",
]

PENDING_STEPS = [
    "You'll receive a confirmation email within 15 minutes",
    "Our enrollment team will review your application within 24-48 hours",
    "We'll contact you to schedule an enrollment meeting",
    "Prepare required documents (medical records, immunizations, etc.)",
    "Complete remaining paperwork during enrollment meeting",
]


def age_in_months(birth: date, today: date) -> tuple[int, int]:
    """Whole years and months between ``birth`` and ``today``."""
    years = today.year - birth.year
    months = today.month - birth.month
    if today.day < birth.day:
        months -= 1
    if months < 0:
        years -= 1
        months += 12
    return years, months


def _parse_date(value: str, message: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(message) from None


class FormActions:
    """Request handlers for the site's forms.

    Collaborators are injected so each deployment (and each test) decides
    where submissions go and how emails are delivered.
    """

    def __init__(
        self,
        store: SubmissionStore,
        emails: EmailService,
        rate_limits: RateLimitStore,
        classifier: ErrorClassifier,
        retry_config: RetryConfig | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.store = store
        self.emails = emails
        self.rate_limits = rate_limits
        self.classifier = classifier
        self.retry_config = retry_config or RetryConfig(on_retry=self._log_retry)
        self.today = today

    @staticmethod
    def _log_retry(error: BaseException, attempt: int) -> None:
        logger.warning(f"Save attempt {attempt} failed: {error}")

    def _throttle(self, headers: Mapping[str, str] | None, policy: RateLimitPolicy) -> None:
        result = self.rate_limits.check(client_identifier(headers), policy)
        if not result.allowed:
            raise RateLimitError(result.reset_at)

    async def _persist(self, service: str, func: Callable[..., Any], *args: Any) -> Any:
        try:
            return await retry_with_backoff(func, *args, **self.retry_config.as_kwargs())
        except Exception as e:
            raise ExternalServiceError(service, e) from e

    async def _run(
        self, action: Callable[..., Any], context: dict[str, Any], *args: Any
    ) -> ActionResult:
        return await self.classifier.wrap(action, context=context)(*args)

    # -- contact ------------------------------------------------------------

    async def submit_contact(
        self, form: Mapping[str, Any], headers: Mapping[str, str] | None = None
    ) -> ActionResult:
        """Validate, store and acknowledge a contact form submission."""
        return await self._run(
            self._submit_contact, {"context": "contact_form"}, form, headers
        )

    async def _submit_contact(
        self, form: Mapping[str, Any], headers: Mapping[str, str] | None
    ) -> dict[str, Any]:
        self._throttle(headers, STRICT)

        data = ContactForm.model_validate(dict(form))
        if data.website:
            raise ValidationError("Invalid submission detected")

        data = data.model_copy(
            update={
                "name": collapse_whitespace(data.name),
                "message": collapse_whitespace(data.message, max_length=2000),
                "child_name": collapse_whitespace(data.child_name) if data.child_name else None,
            }
        )
        meta = request_metadata(headers)
        submission = {
            **data.model_dump(mode="json", exclude={"website", "consent"}),
            "ip_address": meta.ip,
            "user_agent": meta.user_agent,
            "submitted_at": meta.timestamp,
        }

        submission_id = await self._persist("submissions", self.store.save_contact, submission)

        results = await self.emails.send_contact_form_emails(
            ContactEmailData(
                name=data.name,
                email=data.email,
                phone=data.phone,
                message=data.message,
                inquiry_type=SUBJECT_LABELS[data.subject],
                submitted_at=datetime.now(timezone.utc),
            )
        )
        if not results.success:
            logger.warning(f"Contact emails incomplete for submission {submission_id}")

        return {
            "submission_id": submission_id,
            "message": (
                "Thank you for contacting us! "
                f"We'll respond {response_time(data.urgency)}."
            ),
            "emails_sent": results.success,
        }

    # -- enrollment ---------------------------------------------------------

    async def submit_enrollment(
        self, form: Mapping[str, Any], headers: Mapping[str, str] | None = None
    ) -> ActionResult:
        """Validate and store an enrollment application."""
        return await self._run(
            self._submit_enrollment, {"context": "enrollment_form"}, form, headers
        )

    async def _submit_enrollment(
        self, form: Mapping[str, Any], headers: Mapping[str, str] | None
    ) -> EnrollmentResult:
        self._throttle(headers, STANDARD)

        cleaned = {
            k: sanitize_input(v) if isinstance(v, str) else v for k, v in dict(form).items()
        }
        data = EnrollmentForm.model_validate(cleaned)
        data.email = data.email.lower()
        self._validate_enrollment(data)

        meta = request_metadata(headers)
        application = {**data.model_dump(), "metadata": meta.to_dict()}
        enrollment_id, status = await self._persist(
            "enrollments", self.store.save_enrollment, application
        )

        try:
            await self.emails.send_enrollment_received(
                data.email, data.parent_name, data.child_name, enrollment_id, status
            )
        except Exception as e:
            logger.error(f"Failed to send enrollment notification for {enrollment_id}: {e}")

        if status == "waitlist":
            return EnrollmentResult(
                id=enrollment_id,
                status="waitlist",
                message=(
                    "Your application has been added to our waitlist. We'll contact you "
                    "as soon as a spot becomes available."
                ),
                next_steps=WAITLIST_STEPS,
                estimated_response_time="Variable based on availability",
            )
        return EnrollmentResult(
            id=enrollment_id,
            status="pending",
            message=(
                "Thank you! Your enrollment application has been received "
                "and is being reviewed."
            ),
            next_steps=PENDING_STEPS,
            estimated_response_time="24-48 hours",
        )

    def _validate_enrollment(self, data: EnrollmentForm) -> None:
        validate_required(data.model_dump(), ENROLLMENT_REQUIRED)
        validate_email(data.email)
        validate_phone(data.phone)
        if data.alternate_phone:
            validate_phone(data.alternate_phone)
        validate_phone(data.emergency_phone)

        if len(data.parent_name) < 2:
            raise ValidationError("Parent name must be at least 2 characters")
        if len(data.child_name) < 2:
            raise ValidationError("Child name must be at least 2 characters")

        today = self.today()
        birth = _parse_date(data.child_birth_date, "Invalid birth date")
        if birth > today:
            raise ValidationError("Birth date cannot be in the future")

        years, months = age_in_months(birth, today)
        if years > 12 or (years == 0 and months < 1):
            raise ValidationError("Child must be between 6 weeks and 12 years old")

        try:
            program = Program(data.program)
        except ValueError:
            raise ValidationError(
                f"Unknown program: {data.program}",
                details={"program": [p.value for p in Program]},
            ) from None

        low, high, label = PROGRAM_AGE_MONTHS[program]
        total = years * 12 + months
        if not low <= total <= high:
            raise ValidationError(
                f"Child's age ({years} years, {months} months) is not eligible for "
                f"{program.value} program ({label})"
            )

        start = _parse_date(data.desired_start_date, "Invalid start date")
        if start < today:
            raise ValidationError("Start date cannot be in the past")

        if not ZIP_RE.match(data.zip_code):
            raise ValidationError("Invalid ZIP code format")

    # -- availability -------------------------------------------------------

    async def check_availability(
        self, program: str, start_date: str, headers: Mapping[str, str] | None = None
    ) -> ActionResult:
        """Report open spots and waitlist length for a program."""
        return await self._run(
            self._check_availability,
            {"context": "check_availability"},
            program,
            start_date,
            headers,
        )

    async def _check_availability(
        self, program: str, start_date: str, headers: Mapping[str, str] | None
    ) -> Availability:
        self._throttle(headers, RELAXED)

        if not program or not start_date:
            raise ValidationError("Program and start date are required")
        try:
            prog = Program(program)
        except ValueError:
            raise ValidationError(f"Unknown program: {program}") from None
        start = _parse_date(start_date, "Invalid start date")

        spots, waitlist = await self._persist("availability", self.store.availability, prog)
        return Availability(
            program=prog,
            start_date=start,
            available=spots > 0,
            spots_remaining=spots,
            waitlist_length=waitlist,
        )

    # -- documents ----------------------------------------------------------

    async def upload_documents(
        self, upload: Mapping[str, Any], headers: Mapping[str, str] | None = None
    ) -> ActionResult:
        """Check file metadata, record each document and notify the parent."""
        return await self._run(
            self._upload_documents, {"context": "document_upload"}, upload, headers
        )

    async def _upload_documents(
        self, upload: Mapping[str, Any], headers: Mapping[str, str] | None
    ) -> dict[str, Any]:
        self._throttle(headers, STANDARD)

        data = DocumentUpload.model_validate(dict(upload))
        for file in data.files:
            if not is_allowed_document_type(file.content_type, file.category):
                raise ValidationError(
                    f"Invalid file type for {file.name}. Category {file.category.value} "
                    f"does not accept {file.content_type} files.",
                    details={
                        "file": file.name,
                        "allowed": sorted(ALLOWED_DOCUMENT_TYPES[file.category]),
                    },
                )
            if file.size > MAX_DOCUMENT_SIZE:
                raise ValidationError(
                    "File size must be less than 10MB",
                    details={"file": file.name, "size": file.size},
                )

        uploaded_at = datetime.now(timezone.utc)
        documents: list[UploadedDocument] = []
        for file in data.files:
            document_id = str(uuid.uuid4())
            document = UploadedDocument(
                id=document_id,
                name=file.name,
                size=file.size,
                content_type=file.content_type,
                category=file.category,
                uploaded_at=uploaded_at,
                uploaded_by=data.uploaded_by,
                url=f"/documents/{document_id}/{file.name}",
                child_id=file.child_id,
                child_name=file.child_name,
                notes=file.notes,
                expires_at=file.expires_at,
            )
            await self._persist(
                "documents", self.store.save_document, document.model_dump(mode="json")
            )
            documents.append(document)

        latest = documents[-1]
        try:
            await self.emails.send_document_upload(
                DocumentUploadEmailData(
                    parent_name=data.parent_name or "there",
                    child_name=latest.child_name or "your child",
                    document_type=latest.category.value,
                    file_name=latest.name,
                    upload_date=uploaded_at,
                    document_count=len(documents),
                ),
                data.uploaded_by,
            )
        except Exception as e:
            logger.error(f"Failed to send upload notification to {data.uploaded_by}: {e}")

        return {
            "message": f"Successfully uploaded {len(documents)} document(s)",
            "documents": documents,
        }

    async def list_documents(
        self, uploaded_by: str, headers: Mapping[str, str] | None = None
    ) -> ActionResult:
        """Documents uploaded by one parent, newest first."""
        return await self._run(
            self._list_documents, {"context": "list_documents"}, uploaded_by, headers
        )

    async def _list_documents(
        self, uploaded_by: str, headers: Mapping[str, str] | None
    ) -> list[UploadedDocument]:
        self._throttle(headers, RELAXED)

        if not uploaded_by:
            raise ValidationError("Uploader email is required")
        records = await self._persist(
            "documents", self.store.list_documents, uploaded_by.lower()
        )
        documents = [UploadedDocument.model_validate(r) for r in records]
        return sorted(documents, key=lambda d: d.uploaded_at, reverse=True)

    async def delete_document(
        self, document_id: str, headers: Mapping[str, str] | None = None
    ) -> ActionResult:
        return await self._run(
            self._delete_document, {"context": "delete_document"}, document_id, headers
        )

    async def _delete_document(
        self, document_id: str, headers: Mapping[str, str] | None
    ) -> dict[str, str]:
        self._throttle(headers, STANDARD)

        if not await self._persist("documents", self.store.delete_document, document_id):
            raise NotFoundError("Document")
        return {"message": "Document deleted successfully"}
