"""
Attachment upload orchestration.

Uploading one file is a two-phase flow: ask the API for an upload slot, then
PUT the bytes to the pre-signed target the slot names. All pending files of a
save upload concurrently and the caller waits for every one of them.
"""

import asyncio
from typing import Any, List, Optional, Sequence

import httpx
import structlog

from consolesync.core.exceptions import ApiError, AttachmentUploadError
from consolesync.core.models import PendingFile, Record, UploadSlot
from consolesync.data.envelope import unwrap_record
from consolesync.data.request_executor import RecordId, RequestExecutor

logger = structlog.get_logger(__name__)

# Key under which an attachment entry carries its not-yet-uploaded file.
PENDING_FILE_KEY = "file_object"


def is_persisted(entry: Record) -> bool:
    """An attachment the server already stored carries ``created_at``."""
    return bool(entry.get("created_at"))


def has_pending_file(entry: Record) -> bool:
    return isinstance(entry.get(PENDING_FILE_KEY), PendingFile)


class AttachmentUploader:
    """
    Uploads pending attachment files and manages stored attachments.

    Args:
        executor: Shared request executor
        upload_path: Endpoint issuing upload slots
        delete_path: Collection path used to delete attachments
        download_path: Endpoint returning a download URL
        parent_kind: Default tag of the record that owns the attachments
    """

    def __init__(
        self,
        executor: RequestExecutor,
        upload_path: str = "/admin/attachment/upload",
        delete_path: str = "/admin/attachment",
        download_path: str = "/admin/attachment/download",
        parent_kind: str = "service_order",
    ):
        self.executor = executor
        self.upload_path = upload_path
        self.delete_path = delete_path
        self.download_path = download_path
        self.parent_kind = parent_kind

    async def request_slot(self, filename: str, parent_kind: Optional[str] = None) -> UploadSlot:
        """Phase one: reserve an upload slot for ``filename``."""
        body = await self.executor.create(
            self.upload_path, {"filename": filename, "parent_kind": parent_kind or self.parent_kind}
        )
        record = unwrap_record(body)
        if record is None:
            raise AttachmentUploadError(filename, "empty upload slot response")

        slot = UploadSlot.model_validate({"filename": filename, **record})
        logger.debug("Upload slot issued", filename=slot.filename, slot_id=slot.id)
        return slot

    async def upload_bytes(self, slot: UploadSlot, pending: PendingFile) -> None:
        """Phase two: send the raw bytes to the slot's target."""
        if not slot.upload_target:
            raise AttachmentUploadError(pending.filename, "upload slot has no target URL")
        try:
            await self.executor.transport.put_bytes(
                slot.upload_target, pending.content, pending.media_type
            )
        except httpx.HTTPError as e:
            logger.error("Attachment upload failed", filename=pending.filename, error=str(e))
            raise AttachmentUploadError(pending.filename, str(e)) from e

        logger.info("Attachment uploaded", filename=slot.filename, slot_id=slot.id)

    async def upload_entry(self, entry: Record, parent_kind: Optional[str] = None) -> Record:
        """Upload the file carried by ``entry`` and return the entry without it."""
        kind = parent_kind or self.parent_kind
        pending: PendingFile = entry[PENDING_FILE_KEY]

        slot = await self.request_slot(pending.filename, kind)
        await self.upload_bytes(slot, pending)

        uploaded = {key: value for key, value in entry.items() if key != PENDING_FILE_KEY}
        uploaded.update(id=slot.id, filename=slot.filename, name=slot.filename, path=kind)
        return uploaded

    async def upload_pending(
        self, entries: Sequence[Record], parent_kind: Optional[str] = None
    ) -> List[Record]:
        """
        Upload every new entry with a pending file, concurrently.

        Entries keep their order. Persisted entries and entries without a
        local file are returned unchanged. The first failed upload propagates
        and fails the whole call.
        """
        results: List[Record] = list(entries)
        pending_indexes = [
            index
            for index, entry in enumerate(entries)
            if not is_persisted(entry) and has_pending_file(entry)
        ]
        if not pending_indexes:
            return results

        logger.info("Uploading attachments", count=len(pending_indexes))
        uploaded = await asyncio.gather(
            *(self.upload_entry(entries[index], parent_kind) for index in pending_indexes)
        )
        for index, entry in zip(pending_indexes, uploaded):
            results[index] = entry
        return results

    async def delete(self, attachment_id: RecordId) -> Any:
        return await self.executor.delete_by_id(self.delete_path, attachment_id)

    async def download_url(self, attachment_id: RecordId) -> str:
        """Ask the API for a URL the attachment can be downloaded from."""
        body = await self.executor.create(self.download_path, {"attachment_id": attachment_id})
        if isinstance(body, str) and body:
            return body
        if isinstance(body, dict) and isinstance(body.get("url"), str):
            return body["url"]
        raise ApiError("Malformed response: no download URL", details=body)
