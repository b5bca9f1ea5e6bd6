"""
Composition root.

``build_context`` constructs one transport, one executor, one uploader and one
client per known resource from settings, and hands them out explicitly.
Nothing in the package keeps a module-level client.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

import httpx
import structlog

from consolesync.core.config import Settings, get_settings
from consolesync.core.exceptions import ValidationError
from consolesync.data.attachments import AttachmentUploader
from consolesync.data.request_executor import RequestExecutor
from consolesync.data.resource_client import RESOURCE_PATHS, ResourceClient, create_resource_client
from consolesync.data.transport import MemoryTokenStore, TokenStore, Transport
from consolesync.services.attachment_drafts import AttachmentDraftStore
from consolesync.services.reference_cache import QueryCache, ReferenceCache, ReferenceField
from consolesync.services.save_registry import SaveRegistry
from consolesync.services.service_order_service import ServiceOrderService

logger = structlog.get_logger(__name__)


@dataclass
class ScreenScope:
    """State owned by one open screen: its reference cache and attachment drafts."""

    context: "ConsoleContext"
    references: ReferenceCache
    drafts: AttachmentDraftStore = field(default_factory=AttachmentDraftStore)

    def reference_field(
        self, kind: str, filter_key: str = "name", per_page: Optional[int] = None
    ) -> ReferenceField:
        return ReferenceField(
            kind,
            self.context.client(kind),
            self.references,
            filter_key=filter_key,
            per_page=per_page or self.context.settings.api.default_per_page,
        )


@dataclass
class ConsoleContext:
    settings: Settings
    token_store: TokenStore
    transport: Transport
    executor: RequestExecutor
    uploader: AttachmentUploader
    service_orders: ServiceOrderService
    resources: Dict[str, ResourceClient]
    query_cache: QueryCache = field(default_factory=QueryCache)
    save_registry: SaveRegistry = field(default_factory=SaveRegistry)

    def client(self, kind: str) -> ResourceClient:
        """The client serving ``kind``."""
        if kind == "service_order":
            return self.service_orders
        try:
            return self.resources[kind]
        except KeyError:
            raise ValidationError(f"Unknown resource kind: {kind}", details={"kind": kind})

    def open_screen(self) -> ScreenScope:
        return ScreenScope(context=self, references=ReferenceCache(self.query_cache))

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> "ConsoleContext":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


def build_context(
    settings: Optional[Settings] = None,
    token_store: Optional[TokenStore] = None,
    http_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ConsoleContext:
    """
    Wire every client from settings.

    Args:
        settings: Settings to use, the global settings when omitted
        token_store: Token source, an in-memory store holding API_TOKEN when omitted
        http_transport: Low-level httpx transport, used by tests to mock the API

    Returns:
        A ConsoleContext that must be closed with ``aclose``
    """
    settings = settings or get_settings()
    api = settings.api
    token_store = token_store or MemoryTokenStore(api.token)

    transport = Transport(
        api.base_url, token_store=token_store, timeout=api.timeout, http_transport=http_transport
    )
    executor = RequestExecutor(transport, retries=api.retries, retry_delay_ms=api.retry_delay_ms)
    uploader = AttachmentUploader(
        executor,
        upload_path=settings.attachments.upload_path,
        delete_path=settings.attachments.delete_path,
        download_path=settings.attachments.download_path,
        parent_kind=settings.attachments.parent_kind,
    )
    service_orders = ServiceOrderService(
        executor, uploader, default_per_page=api.default_per_page
    )
    resources = {
        kind: create_resource_client(executor, kind, default_per_page=api.default_per_page)
        for kind in RESOURCE_PATHS
        if kind != "service_order"
    }

    logger.debug("Context built", base_url=api.base_url, resources=len(resources) + 1)
    return ConsoleContext(
        settings=settings,
        token_store=token_store,
        transport=transport,
        executor=executor,
        uploader=uploader,
        service_orders=service_orders,
        resources=resources,
    )
