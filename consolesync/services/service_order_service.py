"""
Service-order resource client.

Service orders are the one composite resource: every record read is reshaped
by the normalization pipeline, and every write uploads pending attachments
before the record itself is sent.
"""

from typing import Optional

import structlog

from consolesync.core.models import Record
from consolesync.data.attachments import AttachmentUploader
from consolesync.data.request_executor import RecordId, RequestExecutor
from consolesync.data.resource_client import RESOURCE_PATHS, ResourceClient
from consolesync.pipeline.normalization import (
    finalize_outbound,
    normalize_response,
    prepare_attachments,
)
from consolesync.utils.reliability import track_performance

logger = structlog.get_logger(__name__)


class ServiceOrderService(ResourceClient):
    """CRUD client for service orders with the normalization pipeline attached."""

    def __init__(
        self,
        executor: RequestExecutor,
        uploader: AttachmentUploader,
        path: Optional[str] = None,
        default_per_page: int = 20,
    ):
        super().__init__(
            executor,
            path or RESOURCE_PATHS["service_order"],
            kind="service_order",
            default_per_page=default_per_page,
            normalizer=normalize_response,
        )
        self.uploader = uploader

    async def prepare_payload(
        self, payload: Record, drop_persisted_attachments: bool = False
    ) -> Record:
        """
        Build the outbound payload.

        Pending files are uploaded first and all uploads finish before the
        payload is formatted, so the record never references a missing file.
        """
        prepared = prepare_attachments(payload, drop_persisted=drop_persisted_attachments)
        prepared["attachments"] = await self.uploader.upload_pending(prepared["attachments"])
        return finalize_outbound(prepared)

    @track_performance("service_order.create")
    async def create(self, payload: Record) -> Record:
        outbound = await self.prepare_payload(payload)
        return await super().create(outbound)

    @track_performance("service_order.update")
    async def update(self, record_id: RecordId, payload: Record) -> Record:
        # Stored attachments are not re-sent; only new ones go up with the update.
        outbound = await self.prepare_payload(payload, drop_persisted_attachments=True)
        logger.debug(
            "Updating service order",
            record_id=record_id,
            new_attachments=len(outbound["attachments"]),
        )
        return await super().update(record_id, outbound)

    async def remove_attachment(self, attachment_id: RecordId) -> None:
        await self.uploader.delete(attachment_id)
        logger.info("Service order attachment removed", attachment_id=attachment_id)
