"""
Screen-facing services: the service-order client, reference resolution,
save coordination and attachment drafts.
"""

from .attachment_drafts import AttachmentDraftStore
from .reference_cache import QueryCache, ReferenceCache, ReferenceField
from .save_registry import SaveRegistry
from .service_order_service import ServiceOrderService

__all__ = [
    "AttachmentDraftStore",
    "QueryCache",
    "ReferenceCache",
    "ReferenceField",
    "SaveRegistry",
    "ServiceOrderService",
]
