"""
Service-order normalization pipeline.

``normalize_response`` reshapes a record read from the API into the view the
forms consume. The outbound helpers turn an edited view back into a payload:
attachment list handling, line-item arithmetic, removal of embedded objects
and field formatting.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

import structlog

from consolesync.core.models import Record
from consolesync.data.attachments import is_persisted
from consolesync.pipeline.field_kinds import SERVICE_ORDER_READ_DATE_FIELDS
from consolesync.pipeline.formatting import apply_field_formatting, coerce_date, parse_decimal

logger = structlog.get_logger(__name__)

_CENTS = Decimal("0.01")


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


def _text(item: Mapping[str, Any], key: str, default: str = "") -> str:
    value = item.get(key)
    return str(value) if _is_scalar(value) else default


def _optional_text(item: Mapping[str, Any], key: str) -> Optional[str]:
    value = item.get(key)
    return str(value) if _is_scalar(value) else None


def pick_reference_id(item: Mapping[str, Any], name: str) -> Optional[str]:
    """Read ``<name>_id``, falling back to the embedded ``<name>`` object's id."""
    direct = item.get(f"{name}_id")
    if _is_scalar(direct):
        return str(direct)
    embedded = item.get(name)
    if isinstance(embedded, dict) and _is_scalar(embedded.get("id")):
        return str(embedded["id"])
    return None


def _timestamps(item: Mapping[str, Any]) -> Record:
    return {key: coerce_date(item[key]) for key in ("created_at", "updated_at") if key in item}


def _service_view(item: Mapping[str, Any]) -> Record:
    return {
        "id": _optional_text(item, "id"),
        "service_id": pick_reference_id(item, "service"),
        "unit_price": _text(item, "unit_price", "0.00"),
        "quantity": _text(item, "quantity", "0"),
        "total_price": _text(item, "total_price", "0.00"),
        "scope": item.get("scope") if isinstance(item.get("scope"), str) else "",
        **_timestamps(item),
    }


def _payment_view(item: Mapping[str, Any]) -> Record:
    return {
        "id": _optional_text(item, "id"),
        "description": _text(item, "description"),
        "document_type_id": pick_reference_id(item, "document_type"),
        "currency_id": pick_reference_id(item, "currency"),
        "document_number": _text(item, "document_number"),
        "unit_price": _text(item, "unit_price", "0.00"),
        "quantity": _text(item, "quantity", "0"),
        "total_price": _text(item, "total_price", "0.00"),
        **_timestamps(item),
    }


def _schedule_view(item: Mapping[str, Any]) -> Record:
    return {
        "id": _optional_text(item, "id"),
        "user_id": pick_reference_id(item, "user"),
        "date": coerce_date(item.get("date")),
        **_timestamps(item),
    }


def _attachment_view(item: Mapping[str, Any]) -> Record:
    filename = _optional_text(item, "filename") or _optional_text(item, "name")
    return {
        "id": _optional_text(item, "id"),
        "filename": filename,
        "name": _optional_text(item, "name") or filename,
        "file": _optional_text(item, "file"),
        "content_type": _optional_text(item, "content_type"),
        "path": _optional_text(item, "path"),
        **_timestamps(item),
    }


_SERVICE_DEFAULT: Record = {
    "id": None,
    "service_id": None,
    "unit_price": "0.00",
    "quantity": "0",
    "total_price": "0.00",
    "scope": "",
}
_PAYMENT_DEFAULT: Record = {
    "id": None,
    "description": "",
    "document_type_id": None,
    "currency_id": None,
    "document_number": "",
    "unit_price": "0.00",
    "quantity": "0",
    "total_price": "0.00",
}
_SCHEDULE_DEFAULT: Record = {"id": None, "user_id": None, "date": None}
_ATTACHMENT_DEFAULT: Record = {
    "id": None,
    "filename": None,
    "name": None,
    "file": None,
    "content_type": None,
    "path": None,
}

# collection name -> (element reshaper, shape used for malformed elements)
NESTED_COLLECTIONS: Dict[str, Tuple[Callable[[Mapping[str, Any]], Record], Record]] = {
    "services": (_service_view, _SERVICE_DEFAULT),
    "payments": (_payment_view, _PAYMENT_DEFAULT),
    "schedules": (_schedule_view, _SCHEDULE_DEFAULT),
    "attachments": (_attachment_view, _ATTACHMENT_DEFAULT),
}


def _reshape(name: str, item: Any) -> Record:
    reshape, default = NESTED_COLLECTIONS[name]
    if not isinstance(item, dict):
        return dict(default)
    try:
        return reshape(item)
    except (TypeError, ValueError, AttributeError) as e:
        logger.debug("Malformed nested element", collection=name, error=str(e))
        return dict(default)


def normalize_response(record: Record) -> Record:
    """
    Reshape a service order read from the API into its form view.

    Nested collections are narrowed element by element, known date fields are
    coerced, everything else passes through untouched.
    """
    if not isinstance(record, dict):
        return record

    view = dict(record)
    for name in NESTED_COLLECTIONS:
        items = view.get(name)
        if isinstance(items, list):
            view[name] = [_reshape(name, item) for item in items]

    for key in SERVICE_ORDER_READ_DATE_FIELDS:
        if key in view:
            view[key] = coerce_date(view[key])
    return view


def prepare_attachments(payload: Mapping[str, Any], drop_persisted: bool = False) -> Record:
    """
    Make ``attachments`` an explicit list.

    An absent list means "no attachments" to the server, so it is always
    sent. With ``drop_persisted`` already stored entries are filtered out.
    """
    prepared = dict(payload)
    attachments = prepared.get("attachments")
    entries = []
    if isinstance(attachments, (list, tuple)):
        entries = [entry for entry in attachments if isinstance(entry, dict)]
    if drop_persisted:
        entries = [entry for entry in entries if not is_persisted(entry)]
    prepared["attachments"] = entries
    return prepared


def _money(value: Any) -> Decimal:
    try:
        return parse_decimal(value if value not in (None, "") else 0)
    except (TypeError, ValueError, ArithmeticError):
        return Decimal(0)


def normalize_service_items(payload: Mapping[str, Any]) -> Record:
    """Recompute line totals: two-digit unit price, whole quantity, total."""
    normalized = dict(payload)
    services = normalized.get("services")
    if not isinstance(services, list):
        return normalized

    items = []
    for item in services:
        if not isinstance(item, dict):
            items.append(item)
            continue
        unit = _money(item.get("unit_price")).quantize(_CENTS, rounding=ROUND_HALF_UP)
        quantity = int(_money(item.get("quantity")))
        items.append(
            {
                **item,
                "service_id": pick_reference_id(item, "service"),
                "unit_price": str(unit),
                "quantity": str(quantity),
                "total_price": str((unit * quantity).quantize(_CENTS, rounding=ROUND_HALF_UP)),
                "scope": item.get("scope") or "",
            }
        )
    normalized["services"] = items
    return normalized


def strip_embedded_references(payload: Mapping[str, Any]) -> Record:
    """Drop embedded objects from list elements that carry a non-null ``<name>_id``."""
    stripped = dict(payload)
    for key, value in payload.items():
        if not isinstance(value, list):
            continue
        stripped[key] = [
            {
                name: field
                for name, field in item.items()
                if not (isinstance(field, dict) and item.get(f"{name}_id") is not None)
            }
            if isinstance(item, dict)
            else item
            for item in value
        ]
    return stripped


def finalize_outbound(payload: Mapping[str, Any]) -> Record:
    """Last step before sending: line items, embedded objects, formatting."""
    return apply_field_formatting(strip_embedded_references(normalize_service_items(payload)))
