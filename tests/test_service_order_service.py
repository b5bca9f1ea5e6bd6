"""
Integration tests for the service-order client.

Drives the full save flow (attachment uploads, payload pipeline, record
write) against a mocked API.
"""

import asyncio
from datetime import datetime

import pytest

from consolesync.core.exceptions import AttachmentUploadError
from consolesync.core.models import PendingFile
from consolesync.data.attachments import PENDING_FILE_KEY, AttachmentUploader
from consolesync.services.service_order_service import ServiceOrderService
from mock_api import MockApi, make_executor

ORDERS = "/inspection/service-order"
SLOT_PATH = "/admin/attachment/upload"


class TestServiceOrderService:
    """Test the service-order save flow."""

    def setup_method(self):
        self.api = MockApi()
        executor = make_executor(self.api)
        self.service = ServiceOrderService(executor, AttachmentUploader(executor))

    def _issue_slot(self, slot_id, filename):
        self.api.respond(
            "POST",
            SLOT_PATH,
            json_body={
                "id": slot_id,
                "filename": filename,
                "presign_data": {"url": f"https://storage.test/put/{slot_id}"},
            },
        )
        self.api.respond("PUT", f"/put/{slot_id}", status=200)

    def test_update_uploads_new_attachment_and_drops_stored_one(self):
        self._issue_slot(77, "new.pdf")
        self.api.respond(
            "PUT",
            f"{ORDERS}/12",
            json_body={
                "data": {
                    "id": 12,
                    "operation_starts_at": "2025-10-30 15:45:30",
                    "attachments": [
                        {"id": 9, "name": "old.pdf", "created_at": "2025-10-01"},
                        {"id": 77, "filename": "new.pdf", "created_at": "2025-10-02"},
                    ],
                }
            },
        )
        payload = {
            "vessel_name": "MV Aurora",
            "operation_starts_at": datetime(2025, 10, 30, 15, 45, 30),
            "attachments": [
                {"id": "9", "name": "old.pdf", "created_at": datetime(2025, 10, 1)},
                {"description": "Draft", PENDING_FILE_KEY: PendingFile("new.pdf", b"%PDF")},
            ],
        }

        record = asyncio.run(self.service.update(12, payload))

        upload = self.api.calls("PUT", "/put/77")[0]
        write = self.api.calls("PUT", f"{ORDERS}/12")[0]
        assert self.api.requests.index(upload) < self.api.requests.index(write)

        sent = self.api.body(write)
        assert sent["attachments"] == [
            {
                "description": "Draft",
                "id": "77",
                "filename": "new.pdf",
                "name": "new.pdf",
                "path": "service_order",
            }
        ]
        assert sent["operation_starts_at"] == "2025-10-30 15:45:30"

        assert record["operation_starts_at"] == datetime(2025, 10, 30, 15, 45, 30)
        assert [a["id"] for a in record["attachments"]] == ["9", "77"]

    def test_create_without_attachments_sends_empty_list(self):
        self.api.respond("POST", ORDERS, status=201, json_body={"data": {"id": 3, "services": []}})

        record = asyncio.run(
            self.service.create(
                {"services": [{"service": {"id": 8}, "unit_price": "12,5", "quantity": 2}]}
            )
        )

        sent = self.api.body(self.api.calls("POST", ORDERS)[0])
        assert sent["attachments"] == []
        assert sent["services"] == [
            {
                "service_id": "8",
                "unit_price": "12.50",
                "quantity": "2",
                "total_price": "25.00",
                "scope": "",
            }
        ]
        assert record == {"id": 3, "services": []}

    def test_create_keeps_drafted_attachments(self):
        self._issue_slot(5, "photo.jpg")
        self.api.respond("POST", ORDERS, json_body={"id": 3})
        self.api.respond("GET", f"{ORDERS}/3", json_body={"id": 3, "attachments": []})
        drafts = [{PENDING_FILE_KEY: PendingFile("photo.jpg", b"jpg", "image/jpeg")}]

        asyncio.run(self.service.create({"attachments": drafts}))

        sent = self.api.body(self.api.calls("POST", ORDERS)[0])
        assert [a["id"] for a in sent["attachments"]] == ["5"]
        assert self.api.calls("PUT", "/put/5")[0].headers["Content-Type"] == "image/jpeg"

    def test_failed_upload_aborts_the_save(self):
        self.api.respond(
            "POST",
            SLOT_PATH,
            json_body={"id": 1, "filename": "a.pdf", "presign_data": {"url": "https://s.test/1"}},
        )
        self.api.respond("PUT", "/1", status=500)
        payload = {"attachments": [{PENDING_FILE_KEY: PendingFile("a.pdf", b"x")}]}

        with pytest.raises(AttachmentUploadError):
            asyncio.run(self.service.update(12, payload))

        assert not self.api.calls("PUT", f"{ORDERS}/12")

    def test_get_returns_normalized_view(self):
        self.api.respond(
            "GET",
            f"{ORDERS}/12",
            json_body={"data": {"id": 12, "schedules": [{"user_id": 2, "date": "2025-10-31"}]}},
        )

        record = asyncio.run(self.service.get(12))

        assert record["schedules"] == [{"id": None, "user_id": "2", "date": datetime(2025, 10, 31)}]

    def test_remove_attachment(self):
        self.api.respond("DELETE", "/admin/attachment/9", status=204)

        asyncio.run(self.service.remove_attachment(9))

        assert len(self.api.calls("DELETE", "/admin/attachment/9")) == 1
