# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Tests for FormActions document upload, listing and deletion."""

from datetime import datetime, timedelta, timezone

import pytest

from gbdc.actions import (
    MAX_DOCUMENT_SIZE,
    DocumentCategory,
    FormActions,
    InMemorySubmissionStore,
    UploadedDocument,
)
from gbdc.actions.emails import EmailService
from gbdc.actions.schemas import is_allowed_document_type
from gbdc.config import SiteConfig
from gbdc.services import ErrorClassifier
from gbdc.services.types import EmailReceipt
from gbdc.services.utilities import ExternalServiceError, RateLimitStore, RetryConfig

PARENT_ID = "5f2b7c1e-8a4d-4e3b-9c6a-1d2e3f4a5b6c"
HEADERS = {"X-Forwarded-For": "198.51.100.7"}


class FakeEndpoint:
    provider = "fake"

    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    async def send(self, message):
        if self.fail:
            raise ExternalServiceError(self.provider)
        self.sent.append(message)
        return EmailReceipt(id=f"msg-{len(self.sent)}", provider=self.provider)


class FlakyDocumentStore(InMemorySubmissionStore):
    """Fails the first ``failures`` document saves."""

    def __init__(self, failures):
        super().__init__()
        self.failures = failures
        self.attempts = 0

    async def save_document(self, document):
        self.attempts += 1
        if self.attempts <= self.failures:
            raise OSError("bucket unavailable")
        await super().save_document(document)


def make_actions(store=None, endpoint=None):
    store = store if store is not None else InMemorySubmissionStore()
    endpoint = endpoint if endpoint is not None else FakeEndpoint()
    actions = FormActions(
        store=store,
        emails=EmailService(endpoint, SiteConfig(staff_email="staff@example.com")),
        rate_limits=RateLimitStore(),
        classifier=ErrorClassifier(),
        retry_config=RetryConfig(max_attempts=3, initial_delay=0.0),
    )
    return actions, store, endpoint


def document_file(**overrides):
    return {
        "name": "immunizations.pdf",
        "size": 204_800,
        "type": "application/pdf",
        "category": "medical",
        "childName": "Sam",
        **overrides,
    }


def upload(*files, **overrides):
    return {
        "files": list(files) or [document_file()],
        "parentId": PARENT_ID,
        "uploadedBy": "Jane@Example.com",
        "parentName": "Jane Parent",
        **overrides,
    }


class TestAllowedTypes:
    @pytest.mark.parametrize(
        ("content_type", "category", "allowed"),
        [
            ("application/pdf", DocumentCategory.AUTHORIZATION, True),
            ("image/png", DocumentCategory.AUTHORIZATION, False),
            ("image/jpeg", DocumentCategory.MEDICAL, True),
            ("application/msword", DocumentCategory.OTHER, True),
            ("application/msword", DocumentCategory.FINANCIAL, False),
        ],
    )
    def test_category_rules(self, content_type, category, allowed):
        assert is_allowed_document_type(content_type, category) is allowed


class TestUploadDocuments:
    """Test the upload flow: rate limit, metadata checks, persistence, notice."""

    @pytest.mark.asyncio
    async def test_upload_records_and_notifies(self):
        actions, store, endpoint = make_actions()

        result = await actions.upload_documents(
            upload(document_file(), document_file(name="allergy-plan.png", type="image/png")),
            HEADERS,
        )

        assert result.success is True
        assert result.data["message"] == "Successfully uploaded 2 document(s)"
        documents = result.data["documents"]
        assert [d.name for d in documents] == ["immunizations.pdf", "allergy-plan.png"]

        first = documents[0]
        assert first.status == "pending"
        assert first.uploaded_by == "jane@example.com"
        assert first.url == f"/documents/{first.id}/immunizations.pdf"
        assert store.documents[first.id]["content_type"] == "application/pdf"
        assert len(store.documents) == 2

        assert len(endpoint.sent) == 1
        assert endpoint.sent[0].to == ["jane@example.com"]
        assert "2 document(s) for Sam" in endpoint.sent[0].text

    @pytest.mark.asyncio
    async def test_wrong_type_for_category(self):
        """Category rules are checked before anything is stored."""
        actions, store, endpoint = make_actions()

        result = await actions.upload_documents(
            upload(document_file(name="consent.png", type="image/png", category="authorization"))
        )

        assert result.success is False
        assert result.status_code == 400
        assert result.error == (
            "Invalid file type for consent.png. "
            "Category authorization does not accept image/png files."
        )
        assert result.details["allowed"] == ["application/pdf"]
        assert store.documents == {}
        assert endpoint.sent == []

    @pytest.mark.asyncio
    async def test_oversize_file_rejected(self):
        actions, store, _ = make_actions()

        result = await actions.upload_documents(
            upload(document_file(size=MAX_DOCUMENT_SIZE + 1))
        )

        assert result.status_code == 400
        assert result.error == "File size must be less than 10MB"
        assert result.details["file"] == "immunizations.pdf"
        assert store.documents == {}

    @pytest.mark.asyncio
    async def test_size_at_cap_accepted(self):
        actions, _, _ = make_actions()
        result = await actions.upload_documents(upload(document_file(size=MAX_DOCUMENT_SIZE)))
        assert result.success is True

    @pytest.mark.asyncio
    async def test_no_files_rejected(self):
        actions, _, _ = make_actions()

        result = await actions.upload_documents(upload(files=[]))

        assert result.code == "VALIDATION_ERROR"
        assert result.error == "Please correct the form errors"
        assert "files" in result.details["fields"]

    @pytest.mark.asyncio
    async def test_invalid_uploader_email(self):
        actions, _, _ = make_actions()
        result = await actions.upload_documents(upload(uploadedBy="not-an-email"))
        assert "uploadedBy" in result.details["fields"]

    @pytest.mark.asyncio
    async def test_store_retried(self):
        store = FlakyDocumentStore(failures=2)
        actions, _, _ = make_actions(store=store)

        result = await actions.upload_documents(upload())

        assert result.success is True
        assert store.attempts == 3
        assert len(store.documents) == 1

    @pytest.mark.asyncio
    async def test_store_exhausted(self):
        actions, _, endpoint = make_actions(store=FlakyDocumentStore(failures=10))

        result = await actions.upload_documents(upload())

        assert result.status_code == 503
        assert result.error.startswith("External service error: documents")
        assert endpoint.sent == []

    @pytest.mark.asyncio
    async def test_email_failure_is_not_fatal(self):
        actions, store, _ = make_actions(endpoint=FakeEndpoint(fail=True))

        result = await actions.upload_documents(upload())

        assert result.success is True
        assert len(store.documents) == 1

    @pytest.mark.asyncio
    async def test_rate_limited(self):
        """Uploads share the standard per-client quota."""
        actions, store, _ = make_actions()

        for _ in range(30):
            assert (await actions.upload_documents(upload(), HEADERS)).success

        result = await actions.upload_documents(upload(), HEADERS)
        assert result.status_code == 429
        assert len(store.documents) == 30


class TestListAndDeleteDocuments:
    @pytest.mark.asyncio
    async def test_newest_first_for_uploader(self):
        actions, store, _ = make_actions()
        now = datetime(2026, 6, 1, tzinfo=timezone.utc)
        for i, (name, who) in enumerate(
            [("a.pdf", "jane@example.com"), ("b.pdf", "jane@example.com"), ("c.pdf", "x@example.com")]
        ):
            await store.save_document(
                UploadedDocument(
                    id=f"doc-{i}",
                    name=name,
                    size=10,
                    content_type="application/pdf",
                    category=DocumentCategory.ENROLLMENT,
                    uploaded_at=now + timedelta(minutes=i),
                    uploaded_by=who,
                    url=f"/documents/doc-{i}/{name}",
                ).model_dump(mode="json")
            )

        result = await actions.list_documents("Jane@Example.com")

        assert result.success is True
        assert [d.name for d in result.data] == ["b.pdf", "a.pdf"]

    @pytest.mark.asyncio
    async def test_list_requires_uploader(self):
        actions, _, _ = make_actions()
        result = await actions.list_documents("")
        assert result.error == "Uploader email is required"

    @pytest.mark.asyncio
    async def test_delete(self):
        actions, store, _ = make_actions()
        uploaded = await actions.upload_documents(upload())
        document_id = uploaded.data["documents"][0].id

        result = await actions.delete_document(document_id)

        assert result.data == {"message": "Document deleted successfully"}
        assert store.documents == {}

    @pytest.mark.asyncio
    async def test_delete_missing(self):
        actions, _, _ = make_actions()

        result = await actions.delete_document("doc-missing")

        assert result.status_code == 404
        assert result.code == "NOT_FOUND"
