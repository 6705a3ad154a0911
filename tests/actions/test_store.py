# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

import re

import pytest

from gbdc.actions import InMemorySubmissionStore, Program, SubmissionStore


class TestInMemorySubmissionStore:
    def test_satisfies_protocol(self):
        assert isinstance(InMemorySubmissionStore(), SubmissionStore)

    @pytest.mark.asyncio
    async def test_save_contact(self):
        store = InMemorySubmissionStore()
        submission_id = await store.save_contact({"name": "Jane"})
        assert store.contacts[submission_id] == {"name": "Jane"}

    @pytest.mark.asyncio
    async def test_enrollment_status_follows_capacity(self):
        store = InMemorySubmissionStore({Program.INFANT: (1, 0), Program.TODDLER: (0, 2)})

        enrollment_id, status = await store.save_enrollment({"program": "infant"})
        assert re.fullmatch(r"ENR-\d+-[0-9A-F]{8}", enrollment_id)
        assert status == "pending"

        _, status = await store.save_enrollment({"program": "toddler"})
        assert status == "waitlist"
        assert len(store.enrollments) == 2

    @pytest.mark.asyncio
    async def test_unknown_capacity_is_empty(self):
        store = InMemorySubmissionStore({})
        assert await store.availability(Program.PREK) == (0, 0)

    @pytest.mark.asyncio
    async def test_documents_by_uploader(self):
        store = InMemorySubmissionStore()
        await store.save_document({"id": "d1", "uploaded_by": "jane@example.com"})
        await store.save_document({"id": "d2", "uploaded_by": "sam@example.com"})

        assert await store.list_documents("jane@example.com") == [
            {"id": "d1", "uploaded_by": "jane@example.com"}
        ]
        assert await store.delete_document("d1") is True
        assert await store.delete_document("d1") is False
        assert list(store.documents) == ["d2"]
