# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Form schemas for contact, enrollment and document submissions."""

from __future__ import annotations

import re
from datetime import date, datetime
from enum import Enum
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = (
    "AGE_GROUP_LABELS",
    "ALLOWED_DOCUMENT_TYPES",
    "MAX_DOCUMENT_SIZE",
    "SUBJECT_LABELS",
    "Availability",
    "ContactForm",
    "ContactSubject",
    "DocumentCategory",
    "DocumentFile",
    "DocumentUpload",
    "EnrollmentForm",
    "EnrollmentResult",
    "Program",
    "UploadedDocument",
    "Urgency",
    "is_allowed_document_type",
    "response_time",
)

NAME_RE = re.compile(r"^[a-zA-Z\s'-]+$")
US_PHONE_RE = re.compile(r"^(\+1)?[-.\s]?\(?[0-9]{3}\)?[-.\s]?[0-9]{3}[-.\s]?[0-9]{4}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class ContactSubject(str, Enum):
    ENROLLMENT = "enrollment"
    TOUR = "tour"
    GENERAL = "general"
    PROGRAMS = "programs"
    BILLING = "billing"
    EMERGENCY = "emergency"
    FEEDBACK = "feedback"
    OTHER = "other"


class Urgency(str, Enum):
    NORMAL = "normal"
    URGENT = "urgent"
    EMERGENCY = "emergency"


class Program(str, Enum):
    INFANT = "infant"
    TODDLER = "toddler"
    PRESCHOOL = "preschool"
    PREK = "prek"
    SCHOOLAGE = "schoolage"


SUBJECT_LABELS = {
    ContactSubject.ENROLLMENT: "Enrollment Inquiry",
    ContactSubject.TOUR: "Schedule a Tour",
    ContactSubject.GENERAL: "General Question",
    ContactSubject.PROGRAMS: "Programs Information",
    ContactSubject.BILLING: "Billing Question",
    ContactSubject.EMERGENCY: "Emergency Contact",
    ContactSubject.FEEDBACK: "Feedback",
    ContactSubject.OTHER: "Other",
}

AGE_GROUP_LABELS = {
    "infant": "Infant (6 weeks - 15 months)",
    "toddler": "Toddler (15 months - 2.5 years)",
    "preschool": "Preschool (2.5 - 4 years)",
    "pre-k": "Pre-K (4 - 5 years)",
    "school-age": "School Age (5+ years)",
    "": "Not specified",
}


def response_time(urgency: Urgency) -> str:
    if urgency == Urgency.EMERGENCY:
        return "within 1 hour during business hours"
    if urgency == Urgency.URGENT:
        return "within 4 hours during business hours"
    return "within 24-48 hours"


class ContactForm(BaseModel):
    """Contact form submission as posted by the site."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=2, max_length=100)
    email: str = Field(..., max_length=255)
    phone: str | None = None
    subject: ContactSubject
    message: str = Field(..., min_length=10, max_length=2000)
    child_name: str | None = Field(None, alias="childName")
    child_age: Literal["infant", "toddler", "preschool", "pre-k", "school-age", ""] | None = Field(
        None, alias="childAge"
    )
    preferred_contact_method: Literal["email", "phone", "either"] = Field(
        "email", alias="preferredContactMethod"
    )
    urgency: Urgency = Urgency.NORMAL
    consent: Literal[True]
    # Honeypot: real visitors never see this field
    website: str | None = None

    @field_validator("name")
    def _validate_name(cls, v: str):  # noqa: N805
        if not NAME_RE.match(v):
            raise ValueError("Name can only contain letters, spaces, hyphens, and apostrophes")
        return v

    @field_validator("email")
    def _validate_email(cls, v: str):  # noqa: N805
        if not EMAIL_RE.match(v):
            raise ValueError("Please enter a valid email address")
        return v.lower()

    @field_validator("phone")
    def _validate_phone(cls, v: str | None):  # noqa: N805
        if v and not US_PHONE_RE.match(v):
            raise ValueError("Please enter a valid phone number")
        return v or None

    @field_validator("child_name")
    def _validate_child_name(cls, v: str | None):  # noqa: N805
        if not v:
            return None
        if not 2 <= len(v) <= 100 or not NAME_RE.match(v):
            raise ValueError(
                "Child's name must be 2-100 letters, spaces, hyphens, or apostrophes"
            )
        return v


class EnrollmentForm(BaseModel):
    """Sanitized enrollment application fields.

    Only shape is enforced here; business rules (ages, dates, eligibility)
    are checked by the enrollment action so each failure gets its own message.
    """

    model_config = ConfigDict(populate_by_name=True)

    parent_name: str = Field("", alias="parentName")
    email: str = ""
    phone: str = ""
    alternate_phone: str = Field("", alias="alternatePhone")
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = Field("", alias="zipCode")
    child_name: str = Field("", alias="childName")
    child_birth_date: str = Field("", alias="childBirthDate")
    program: str = ""
    desired_start_date: str = Field("", alias="desiredStartDate")
    schedule: Literal["fulltime", "parttime", "dropin"] = "fulltime"
    allergies: str = ""
    medications: str = ""
    special_needs: str = Field("", alias="specialNeeds")
    emergency_contact: str = Field("", alias="emergencyContact")
    emergency_phone: str = Field("", alias="emergencyPhone")
    emergency_relationship: str = Field("", alias="emergencyRelationship")
    how_heard: str = Field("", alias="howHeard")
    additional_info: str = Field("", alias="additionalInfo")


class EnrollmentResult(BaseModel):
    id: str
    status: Literal["pending", "waitlist"]
    message: str
    next_steps: list[str]
    estimated_response_time: str


class Availability(BaseModel):
    program: Program
    start_date: date
    available: bool
    spots_remaining: int
    waitlist_length: int


class DocumentCategory(str, Enum):
    ENROLLMENT = "enrollment"
    MEDICAL = "medical"
    EMERGENCY = "emergency"
    AUTHORIZATION = "authorization"
    FINANCIAL = "financial"
    OTHER = "other"


MAX_DOCUMENT_SIZE = 10 * 1024 * 1024

_PDF_OR_IMAGE = frozenset({"application/pdf", "image/jpeg", "image/png"})

ALLOWED_DOCUMENT_TYPES: dict[DocumentCategory, frozenset[str]] = {
    DocumentCategory.ENROLLMENT: _PDF_OR_IMAGE,
    DocumentCategory.MEDICAL: _PDF_OR_IMAGE,
    DocumentCategory.EMERGENCY: _PDF_OR_IMAGE,
    DocumentCategory.AUTHORIZATION: frozenset({"application/pdf"}),
    DocumentCategory.FINANCIAL: _PDF_OR_IMAGE,
    DocumentCategory.OTHER: _PDF_OR_IMAGE | {"application/msword"},
}


def is_allowed_document_type(content_type: str, category: DocumentCategory) -> bool:
    return content_type in ALLOWED_DOCUMENT_TYPES.get(category, frozenset())


class DocumentFile(BaseModel):
    """Metadata for one uploaded file; the bytes go to storage separately."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    size: int = Field(..., ge=0)
    content_type: str = Field(..., alias="type")
    category: DocumentCategory
    child_id: UUID | None = Field(None, alias="childId")
    child_name: str | None = Field(None, alias="childName", min_length=1)
    notes: str | None = Field(None, max_length=500)
    expires_at: datetime | None = Field(None, alias="expiresAt")


class DocumentUpload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    files: list[DocumentFile] = Field(..., min_length=1)
    parent_id: UUID = Field(..., alias="parentId")
    uploaded_by: str = Field(..., alias="uploadedBy")
    parent_name: str | None = Field(None, alias="parentName")

    @field_validator("uploaded_by")
    def _validate_uploaded_by(cls, v: str):  # noqa: N805
        if not EMAIL_RE.match(v):
            raise ValueError("Please enter a valid email address")
        return v.lower()


class UploadedDocument(BaseModel):
    id: str
    name: str
    size: int
    content_type: str
    category: DocumentCategory
    uploaded_at: datetime
    uploaded_by: str
    url: str
    child_id: UUID | None = None
    child_name: str | None = None
    notes: str | None = None
    expires_at: datetime | None = None
    status: Literal["pending", "approved", "rejected"] = "pending"
