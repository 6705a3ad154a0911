# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Tests for FormActions: contact, enrollment and availability handlers."""

from datetime import date

import pytest

from gbdc.actions import FormActions, InMemorySubmissionStore, Program
from gbdc.actions.emails import EmailService
from gbdc.actions.forms import age_in_months
from gbdc.config import SiteConfig
from gbdc.services import ErrorClassifier
from gbdc.services.types import EmailReceipt
from gbdc.services.utilities import ExternalServiceError, RateLimitStore, RetryConfig

TODAY = date(2026, 6, 1)
HEADERS = {"X-Forwarded-For": "198.51.100.4", "User-Agent": "pytest"}


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


class FlakyStore(InMemorySubmissionStore):
    """Fails the first ``failures`` saves of each kind."""

    def __init__(self, failures):
        super().__init__()
        self.failures = failures
        self.attempts = 0

    async def save_contact(self, submission):
        self.attempts += 1
        if self.attempts <= self.failures:
            raise OSError("database unavailable")
        return await super().save_contact(submission)


class RecordingLogger:
    def __init__(self):
        self.errors = []
        self.contexts = []

    def log(self, error, context=None):
        self.errors.append(error)
        self.contexts.append(context)


def make_actions(store=None, endpoint=None, production=False, error_logger=None):
    store = store or InMemorySubmissionStore()
    endpoint = endpoint or FakeEndpoint()
    actions = FormActions(
        store=store,
        emails=EmailService(endpoint, SiteConfig(staff_email="staff@example.com")),
        rate_limits=RateLimitStore(),
        classifier=ErrorClassifier(production=production, error_logger=error_logger),
        retry_config=RetryConfig(max_attempts=3, initial_delay=0.0),
        today=lambda: TODAY,
    )
    return actions, store, endpoint


def contact_form(**overrides):
    return {
        "name": "  Jane   Parent ",
        "email": "Jane@Example.com",
        "phone": "(630) 555-1234",
        "subject": "tour",
        "message": "We would like to   tour the\npreschool room.",
        "consent": True,
        **overrides,
    }


def enrollment_form(**overrides):
    return {
        "parentName": "Jane Parent",
        "email": "Jane@Example.com",
        "phone": "630-555-1234",
        "address": "1 Main St",
        "city": "Roselle",
        "state": "IL",
        "zipCode": "60172",
        "childName": "Sam Parent",
        "childBirthDate": "2023-01-15",
        "program": "preschool",
        "desiredStartDate": "2026-09-01",
        "emergencyContact": "Pat Parent",
        "emergencyPhone": "630-555-9876",
        "emergencyRelationship": "Grandparent",
        **overrides,
    }


class TestAgeInMonths:
    @pytest.mark.parametrize(
        ("birth", "expected"),
        [
            (date(2023, 1, 15), (3, 4)),
            (date(2025, 6, 1), (1, 0)),
            (date(2025, 6, 2), (0, 11)),
            (date(2026, 5, 1), (0, 1)),
        ],
    )
    def test_whole_months(self, birth, expected):
        assert age_in_months(birth, TODAY) == expected


class TestSubmitContact:
    """Test the contact form handler."""

    @pytest.mark.asyncio
    async def test_success(self):
        """A valid submission is stored, normalized and acknowledged."""
        actions, store, endpoint = make_actions()

        result = await actions.submit_contact(contact_form(urgency="urgent"), HEADERS)

        assert result.success is True
        assert result.data["emails_sent"] is True
        assert result.data["message"] == (
            "Thank you for contacting us! We'll respond within 4 hours during business hours."
        )

        saved = store.contacts[result.data["submission_id"]]
        assert saved["name"] == "Jane Parent"
        assert saved["email"] == "jane@example.com"
        assert saved["message"] == "We would like to tour the preschool room."
        assert saved["ip_address"] == "198.51.100.4"
        assert saved["user_agent"] == "pytest"
        assert "website" not in saved
        assert len(endpoint.sent) == 2

    @pytest.mark.asyncio
    async def test_default_response_time(self):
        actions, _, _ = make_actions()
        result = await actions.submit_contact(contact_form())
        assert result.data["message"].endswith("within 24-48 hours.")

    @pytest.mark.asyncio
    async def test_honeypot(self):
        actions, store, endpoint = make_actions()

        result = await actions.submit_contact(contact_form(website="http://spam.example"))

        assert result.success is False
        assert result.status_code == 400
        assert result.error == "Invalid submission detected"
        assert store.contacts == {}
        assert endpoint.sent == []

    @pytest.mark.asyncio
    async def test_schema_errors(self):
        """Schema failures report each offending field."""
        actions, _, _ = make_actions()

        result = await actions.submit_contact(
            contact_form(email="nope", message="short", consent=False)
        )

        assert result.success is False
        assert result.code == "VALIDATION_ERROR"
        assert result.error == "Please correct the form errors"
        assert {"email", "message", "consent"} <= set(result.details["fields"])

    @pytest.mark.asyncio
    async def test_rate_limited_after_ten(self):
        """The eleventh submission in a minute from one client is rejected."""
        actions, store, _ = make_actions()

        for _ in range(10):
            assert (await actions.submit_contact(contact_form(), HEADERS)).success

        result = await actions.submit_contact(contact_form(), HEADERS)
        assert result.status_code == 429
        assert result.code == "RATE_LIMIT"
        assert len(store.contacts) == 10

        other = await actions.submit_contact(contact_form(), {"X-Real-IP": "203.0.113.9"})
        assert other.success is True

    @pytest.mark.asyncio
    async def test_store_retried(self):
        """Transient store failures are retried before succeeding."""
        store = FlakyStore(failures=2)
        actions, _, _ = make_actions(store=store)

        result = await actions.submit_contact(contact_form())

        assert result.success is True
        assert store.attempts == 3

    @pytest.mark.asyncio
    async def test_store_exhausted(self):
        """A store that keeps failing yields a 503 naming the service."""
        recorder = RecordingLogger()
        actions, _, endpoint = make_actions(
            store=FlakyStore(failures=10), production=True, error_logger=recorder
        )

        result = await actions.submit_contact(contact_form())

        assert result.status_code == 503
        assert result.error == "External service error: submissions"
        assert result.details["cause"] == "OSError: database unavailable"
        assert endpoint.sent == []
        assert isinstance(recorder.errors[0].__cause__, OSError)

    @pytest.mark.asyncio
    async def test_error_context_excludes_form_fields(self):
        """Logged context names the handler but carries no submitted data."""
        recorder = RecordingLogger()
        actions, _, _ = make_actions(store=FlakyStore(failures=10), error_logger=recorder)

        await actions.submit_contact(contact_form(), HEADERS)

        context = recorder.contexts[0]
        assert context == {"context": "contact_form", "action": "_submit_contact"}
        assert "jane@example.com" not in repr(context).lower()
        assert "198.51.100.4" not in repr(context)

    @pytest.mark.asyncio
    async def test_email_failure_is_not_fatal(self):
        actions, store, _ = make_actions(endpoint=FakeEndpoint(fail=True))

        result = await actions.submit_contact(contact_form())

        assert result.success is True
        assert result.data["emails_sent"] is False
        assert len(store.contacts) == 1


class TestSubmitEnrollment:
    """Test the enrollment handler."""

    @pytest.mark.asyncio
    async def test_pending(self):
        actions, store, endpoint = make_actions()

        result = await actions.submit_enrollment(enrollment_form(), HEADERS)

        assert result.success is True
        data = result.data
        assert data.status == "pending"
        assert data.id.startswith("ENR-")
        assert data.estimated_response_time == "24-48 hours"
        assert len(data.next_steps) == 5

        saved = store.enrollments[data.id]
        assert saved["email"] == "jane@example.com"
        assert saved["metadata"]["ip"] == "198.51.100.4"
        assert endpoint.sent[0].to == ["jane@example.com"]

    @pytest.mark.asyncio
    async def test_waitlist_when_full(self):
        """Programs without open spots put the application on the waitlist."""
        actions, _, _ = make_actions()

        result = await actions.submit_enrollment(
            enrollment_form(program="toddler", childBirthDate="2024-09-01")
        )

        assert result.data.status == "waitlist"
        assert result.data.estimated_response_time == "Variable based on availability"

    @pytest.mark.asyncio
    async def test_inputs_sanitized(self):
        actions, store, _ = make_actions()

        result = await actions.submit_enrollment(
            enrollment_form(additionalInfo="<b>Naps</b><script>x()</script> at noon")
        )

        assert store.enrollments[result.data.id]["additional_info"] == "Naps at noon"

    @pytest.mark.asyncio
    async def test_missing_fields(self):
        actions, _, _ = make_actions()
        form = enrollment_form()
        for key in ("emergencyContact", "emergencyPhone", "emergencyRelationship"):
            del form[key]

        result = await actions.submit_enrollment(form)

        assert result.status_code == 400
        assert result.error == (
            "Missing required fields: emergency_contact, emergency_phone, emergency_relationship"
        )
        assert result.details == {
            "missing": ["emergency_contact", "emergency_phone", "emergency_relationship"]
        }

    @pytest.mark.parametrize(
        ("overrides", "message"),
        [
            ({"email": "jane-at-example"}, "Invalid email format"),
            ({"phone": "555-1234"}, "Invalid phone number format"),
            ({"emergencyPhone": "12"}, "Invalid phone number format"),
            ({"parentName": "J"}, "Parent name must be at least 2 characters"),
            ({"childBirthDate": "2027-01-01"}, "Birth date cannot be in the future"),
            ({"childBirthDate": "not-a-date"}, "Invalid birth date"),
            ({"childBirthDate": "2010-01-01"}, "Child must be between 6 weeks and 12 years old"),
            (
                {"program": "infant"},
                "Child's age (3 years, 4 months) is not eligible for infant program "
                "(6 weeks - 15 months)",
            ),
            ({"program": "daycare"}, "Unknown program: daycare"),
            ({"desiredStartDate": "2026-01-01"}, "Start date cannot be in the past"),
            ({"zipCode": "6017"}, "Invalid ZIP code format"),
        ],
    )
    @pytest.mark.asyncio
    async def test_business_rules(self, overrides, message):
        actions, store, endpoint = make_actions()

        result = await actions.submit_enrollment(enrollment_form(**overrides))

        assert result.success is False
        assert result.status_code == 400
        assert result.error == message
        assert store.enrollments == {}
        assert endpoint.sent == []

    @pytest.mark.asyncio
    async def test_email_failure_is_not_fatal(self):
        actions, store, _ = make_actions(endpoint=FakeEndpoint(fail=True))

        result = await actions.submit_enrollment(enrollment_form())

        assert result.success is True
        assert len(store.enrollments) == 1


class TestCheckAvailability:
    """Test the availability handler."""

    @pytest.mark.asyncio
    async def test_available(self):
        actions, _, _ = make_actions()

        result = await actions.check_availability("preschool", "2026-09-01")

        assert result.success is True
        assert result.data.program is Program.PRESCHOOL
        assert result.data.available is True
        assert result.data.spots_remaining == 4
        assert result.to_dict()["data"]["start_date"] == "2026-09-01"

    @pytest.mark.asyncio
    async def test_full_program(self):
        actions, _, _ = make_actions()
        result = await actions.check_availability("toddler", "2026-09-01")
        assert result.data.available is False
        assert result.data.waitlist_length == 5

    @pytest.mark.parametrize(
        ("program", "start", "message"),
        [
            ("", "2026-09-01", "Program and start date are required"),
            ("preschool", "", "Program and start date are required"),
            ("daycare", "2026-09-01", "Unknown program: daycare"),
            ("preschool", "September", "Invalid start date"),
        ],
    )
    @pytest.mark.asyncio
    async def test_invalid(self, program, start, message):
        actions, _, _ = make_actions()
        result = await actions.check_availability(program, start)
        assert result.status_code == 400
        assert result.error == message
