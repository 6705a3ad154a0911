# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Form handlers, schemas, transactional emails and the submission store."""

from .emails import (
    ContactEmailData,
    ContactEmailResults,
    DeliveryOutcome,
    DocumentUploadEmailData,
    EmailService,
    EnrollmentEmailData,
    WelcomeEmailData,
)
from .forms import FormActions
from .schemas import (
    ALLOWED_DOCUMENT_TYPES,
    MAX_DOCUMENT_SIZE,
    Availability,
    ContactForm,
    DocumentCategory,
    DocumentFile,
    DocumentUpload,
    EnrollmentForm,
    EnrollmentResult,
    Program,
    UploadedDocument,
)
from .store import InMemorySubmissionStore, SubmissionStore

__all__ = (
    "ALLOWED_DOCUMENT_TYPES",
    "MAX_DOCUMENT_SIZE",
    "Availability",
    "ContactEmailData",
    "ContactEmailResults",
    "ContactForm",
    "DeliveryOutcome",
    "DocumentCategory",
    "DocumentFile",
    "DocumentUpload",
    "DocumentUploadEmailData",
    "EmailService",
    "EnrollmentEmailData",
    "EnrollmentForm",
    "EnrollmentResult",
    "FormActions",
    "InMemorySubmissionStore",
    "Program",
    "SubmissionStore",
    "UploadedDocument",
    "WelcomeEmailData",
)
