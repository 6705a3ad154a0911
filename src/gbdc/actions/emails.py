# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Transactional emails sent on behalf of the site."""

from __future__ import annotations

import html
import logging
from datetime import date, datetime

from pydantic import BaseModel, Field

from ..config import SiteConfig
from ..services.types.endpoint import EmailEndpoint, EmailMessage, EmailReceipt
from ..services.utilities.errors import ValidationError
from ..services.utilities.validation import is_valid_email

__all__ = (
    "SUBJECTS",
    "ContactEmailData",
    "ContactEmailResults",
    "DeliveryOutcome",
    "DocumentUploadEmailData",
    "EmailService",
    "EnrollmentEmailData",
    "WelcomeEmailData",
)

logger = logging.getLogger(__name__)

SUBJECTS = {
    "document_upload": "Document Received",
    "contact_form": "New Message from Website",
    "welcome": "Welcome to the Family!",
    "enrollment": "Enrollment Confirmation",
    "enrollment_received": "Enrollment Application Received",
}


class DocumentUploadEmailData(BaseModel):
    parent_name: str
    child_name: str
    document_type: str
    file_name: str
    upload_date: datetime
    document_count: int = 1


class ContactEmailData(BaseModel):
    name: str
    email: str
    phone: str | None = None
    message: str
    inquiry_type: str
    submitted_at: datetime


class WelcomeEmailData(BaseModel):
    parent_name: str
    child_name: str
    start_date: date
    classroom: str | None = None
    teacher: str | None = None


class EnrollmentEmailData(BaseModel):
    parent_name: str
    child_name: str
    program: str
    start_date: date
    classroom: str
    teacher: str
    tuition: float
    next_steps: list[str] = Field(default_factory=list)


class DeliveryOutcome(BaseModel):
    success: bool = False
    email_id: str | None = None
    error: str | None = None


class ContactEmailResults(BaseModel):
    staff: DeliveryOutcome | None = None
    confirmation: DeliveryOutcome | None = None

    @property
    def success(self) -> bool:
        return all(o.success for o in (self.staff, self.confirmation) if o is not None)


def _html(text: str) -> str:
    paragraphs = (html.escape(p).replace("\n", "<br>") for p in text.split("\n\n"))
    return "".join(f"<p>{p}</p>" for p in paragraphs)


class EmailService:
    """Renders and sends the site's transactional emails through an EmailEndpoint."""

    def __init__(self, endpoint: EmailEndpoint, config: SiteConfig):
        self.endpoint = endpoint
        self.config = config

    def _subject(self, key: str) -> str:
        return f"{SUBJECTS[key]} - {self.config.business.name}"

    def _signature(self) -> str:
        b = self.config.business
        return f"{b.name}\n{b.address}\n{b.phone} | {b.website}"

    async def send(self, to: str, subject: str, text: str, reply_to: str | None = None) -> EmailReceipt:
        """Send a plain-text email with an HTML alternative."""
        if not is_valid_email(to):
            raise ValidationError(f"Invalid email address: {to}", details={"recipient": to})

        body = f"{text}\n\n{self._signature()}"
        message = EmailMessage(
            sender=self.config.sender,
            to=[to],
            subject=subject,
            text=body,
            html=_html(body),
            reply_to=reply_to,
        )
        logger.info(f"Sending email '{subject}' to {to}")
        return await self.endpoint.send(message)

    async def send_document_upload(
        self, data: DocumentUploadEmailData, recipient: str
    ) -> EmailReceipt:
        text = (
            f"Hi {data.parent_name},\n\n"
            f"We received {data.document_count} document(s) for {data.child_name} "
            f"on {data.upload_date:%B %d, %Y}.\n"
            f"Latest: {data.document_type} ({data.file_name})\n\n"
            "Our staff will review it shortly."
        )
        return await self.send(recipient, self._subject("document_upload"), text)

    async def send_contact_form_emails(
        self,
        data: ContactEmailData,
        *,
        send_to_staff: bool = True,
        send_confirmation: bool = True,
        staff_email: str | None = None,
    ) -> ContactEmailResults:
        """Notify staff and confirm receipt to the family.

        The two sends are independent: one failing does not stop the other,
        and each outcome is reported separately.
        """
        if not is_valid_email(data.email):
            raise ValidationError(
                f"Invalid customer email address: {data.email}", details={"recipient": data.email}
            )

        results = ContactEmailResults()

        if send_to_staff:
            text = (
                f"New {data.inquiry_type} inquiry from {data.name}\n\n"
                f"Email: {data.email}\nPhone: {data.phone or 'not provided'}\n"
                f"Submitted: {data.submitted_at.isoformat()}\n\n{data.message}"
            )
            results.staff = await self._deliver(
                staff_email or self.config.staff_inbox,
                f"{self._subject('contact_form')} - {data.inquiry_type}",
                text,
                reply_to=data.email,
            )

        if send_confirmation:
            text = (
                f"Hi {data.name},\n\n"
                f"Thank you for contacting {self.config.business.name}. "
                "We received your message and will get back to you soon.\n\n"
                f"Your message:\n{data.message}"
            )
            results.confirmation = await self._deliver(
                data.email, f"Thank you for contacting {self.config.business.name}", text
            )

        return results

    async def send_welcome(self, data: WelcomeEmailData, recipient: str) -> EmailReceipt:
        lines = [
            f"Hi {data.parent_name},",
            "",
            f"Welcome! {data.child_name} starts on {data.start_date:%B %d, %Y}.",
        ]
        if data.classroom:
            lines.append(f"Classroom: {data.classroom}")
        if data.teacher:
            lines.append(f"Teacher: {data.teacher}")
        return await self.send(recipient, self._subject("welcome"), "\n".join(lines))

    async def send_enrollment_confirmation(
        self, data: EnrollmentEmailData, recipient: str
    ) -> EmailReceipt:
        steps = "\n".join(f"- {s}" for s in data.next_steps)
        text = (
            f"Hi {data.parent_name},\n\n"
            f"{data.child_name} is enrolled in our {data.program} program "
            f"starting {data.start_date:%B %d, %Y}.\n"
            f"Classroom: {data.classroom}\nTeacher: {data.teacher}\n"
            f"Tuition: ${data.tuition:,.2f}"
        )
        if steps:
            text += f"\n\nNext steps:\n{steps}"
        return await self.send(recipient, self._subject("enrollment"), text)

    async def send_enrollment_received(
        self,
        recipient: str,
        parent_name: str,
        child_name: str,
        enrollment_id: str,
        status: str,
    ) -> EmailReceipt:
        state = "added to our waitlist" if status == "waitlist" else "received and is under review"
        text = (
            f"Hi {parent_name},\n\n"
            f"The enrollment application for {child_name} has been {state}.\n"
            f"Reference: {enrollment_id}"
        )
        return await self.send(recipient, self._subject("enrollment_received"), text)

    async def _deliver(
        self, to: str, subject: str, text: str, reply_to: str | None = None
    ) -> DeliveryOutcome:
        try:
            receipt = await self.send(to, subject, text, reply_to=reply_to)
        except Exception as e:
            logger.error(f"Failed to send '{subject}' to {to}: {e}")
            return DeliveryOutcome(success=False, error=str(e))
        return DeliveryOutcome(success=True, email_id=receipt.id)
