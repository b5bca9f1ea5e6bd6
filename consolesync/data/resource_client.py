"""
Generic CRUD resource clients.

Every console resource (companies, sites, business units, ...) is served by a
``ResourceClient`` bound to its API path. Clients are built by factory
functions at the composition root; there are no module-level instances.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import structlog

from consolesync.core.exceptions import ApiError, ValidationError
from consolesync.core.models import ListParams, PaginatedResult, Record
from consolesync.data.envelope import (
    EmptyEnvelope,
    ListEnvelope,
    PageEnvelope,
    decode_envelope,
    unwrap_record,
)
from consolesync.data.request_executor import RecordId, RequestExecutor

logger = structlog.get_logger(__name__)

RESOURCE_PATHS: Dict[str, str] = {
    "attachment_type": "/admin/attachment-type",
    "business_unit": "/admin/business-unit",
    "cargo_type": "/admin/cargo-type",
    "city": "/admin/city",
    "client": "/inspection/client",
    "company": "/admin/company",
    "currency": "/admin/currency",
    "document_type": "/admin/document-type",
    "exporter": "/admin/exporter",
    "inspection_site": "/inspection/inspection-site",
    "measure": "/inspection/measure",
    "operation_good": "/operation/good",
    "operation_tally": "/operation/tally/web",
    "operation_type": "/admin/operation-type",
    "packing_type": "/admin/packing-type",
    "product": "/inspection/product",
    "region": "/admin/region",
    "sampling_type": "/inspection/sampling-type",
    "service": "/inspection/service",
    "service_order": "/inspection/service-order",
    "service_order_status": "/inspection/service-order-status",
    "service_type": "/inspection/service-type",
    "shipper": "/inspection/shipper",
    "site": "/inspection/site",
    "subsidiary": "/admin/subsidiary",
    "trader": "/inspection/trader",
    "vessel_type": "/inspection/vessel-type",
    "weather": "/inspection/weather",
    "weighing_rule": "/inspection/weighing-rule",
    "weight_type": "/inspection/weight-type",
}

# Resources whose write endpoints answer without the full record.
REFRESH_AFTER_WRITE = frozenset({"client"})

ListParamsInput = Union[ListParams, Mapping[str, Any], None]


def coerce_list_params(params: ListParamsInput) -> ListParams:
    if isinstance(params, ListParams):
        return params
    return ListParams(**dict(params or {}))


class ResourceClient:
    """
    CRUD client for one resource path.

    Args:
        executor: Shared request executor
        path: API path of the resource collection
        kind: Entity kind name used for logging and cache keys
        default_per_page: Page size used when params carry none
        normalizer: Wire-to-view transform applied to every returned record
        refresh_after_write: Re-fetch the record after every update
    """

    def __init__(
        self,
        executor: RequestExecutor,
        path: str,
        kind: Optional[str] = None,
        default_per_page: int = 20,
        normalizer: Optional[Callable[[Record], Record]] = None,
        refresh_after_write: bool = False,
    ):
        self.executor = executor
        self.path = path
        self.kind = kind or path.rstrip("/").rsplit("/", 1)[-1]
        self.default_per_page = default_per_page
        self.normalizer = normalizer
        self.refresh_after_write = refresh_after_write

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind!r}, path={self.path!r})"

    def to_view(self, record: Record) -> Record:
        return self.normalizer(record) if self.normalizer else record

    async def list(self, params: ListParamsInput = None) -> PaginatedResult:
        """Fetch one page of records."""
        list_params = coerce_list_params(params)
        query = list_params.to_query(self.default_per_page)
        body = await self.executor.list(self.path, query)

        envelope = decode_envelope(body)
        if isinstance(envelope, PageEnvelope):
            items = envelope.items
            page = envelope.page or list_params.page or 1
            per_page = envelope.per_page or query["limit"]
            total = envelope.total if envelope.total is not None else len(items)
        elif isinstance(envelope, ListEnvelope):
            items, page, per_page, total = envelope.items, 1, query["limit"], len(envelope.items)
        elif isinstance(envelope, EmptyEnvelope):
            items, page, per_page, total = [], list_params.page or 1, query["limit"], 0
        else:
            raise ApiError("Malformed response: expected a list of records", details=body)

        records = [item for item in items if isinstance(item, dict)]
        # Clamp server counters into the page model bounds
        page = max(page, 1)
        if per_page < 1:
            per_page = query["limit"]
        total = max(total, len(records))
        if len(records) > per_page:
            logger.warning(
                "Server returned more items than per_page",
                kind=self.kind,
                items=len(records),
                per_page=per_page,
            )
            per_page = len(records)

        return PaginatedResult(
            items=[self.to_view(record) for record in records],
            page=page,
            per_page=per_page,
            total=total,
        )

    async def list_all(self, params: ListParamsInput = None, max_pages: int = 100) -> List[Record]:
        """Walk every page and return all records."""
        list_params = coerce_list_params(params)
        records: List[Record] = []
        page = list_params.page or 1

        for _ in range(max_pages):
            result = await self.list(list_params.model_copy(update={"page": page}))
            records.extend(result.items)
            if not result.items or not result.has_next:
                break
            page += 1
        else:
            logger.warning("list_all stopped at page limit", kind=self.kind, max_pages=max_pages)

        return records

    async def get(self, record_id: RecordId) -> Optional[Record]:
        """Fetch one record, or ``None`` when it does not exist."""
        body = await self.executor.get_by_id(self.path, record_id)
        if body is None:
            return None
        record = unwrap_record(body)
        return self.to_view(record) if record is not None else None

    async def create(self, payload: Record) -> Record:
        body = await self.executor.create(self.path, payload)
        return await self._written_record(body)

    async def update(self, record_id: RecordId, payload: Record) -> Record:
        body = await self.executor.update_by_id(self.path, record_id, payload)
        return await self._written_record(body, record_id, force_refresh=self.refresh_after_write)

    async def remove(self, record_id: RecordId) -> None:
        await self.executor.delete_by_id(self.path, record_id)
        logger.info("Record removed", kind=self.kind, record_id=record_id)

    async def _written_record(
        self, body: Any, record_id: Optional[RecordId] = None, force_refresh: bool = False
    ) -> Record:
        """Turn a create/update answer into a view, re-fetching id-only echoes."""
        record = unwrap_record(body) or {}
        record_id = record.get("id", record_id)
        has_fields = any(key != "id" for key in record)

        if record_id is not None and (force_refresh or not has_fields):
            fresh = await self.get(record_id)
            if fresh is None:
                raise ApiError(f"Record {record_id} missing after write", status=404)
            return fresh
        if not has_fields:
            raise ApiError("Malformed response: write returned no record", details=body)
        return self.to_view(record)


def create_resource_client(
    executor: RequestExecutor, kind: str, default_per_page: int = 20
) -> ResourceClient:
    """Build the client for a known resource kind."""
    try:
        path = RESOURCE_PATHS[kind]
    except KeyError:
        raise ValidationError(f"Unknown resource kind: {kind}", details={"kind": kind})
    return ResourceClient(
        executor,
        path,
        kind=kind,
        default_per_page=default_per_page,
        refresh_after_write=kind in REFRESH_AFTER_WRITE,
    )
