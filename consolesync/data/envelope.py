"""
Response envelope decoding.

The API answers in a handful of shapes: a paginated ``{data: [...], total,
per_page, current_page}`` page, a ``{data: {...}}`` wrapped record, a bare
record, a bare list, or an empty body. ``decode_envelope`` is the single
place that tells them apart; resource clients only consume the tagged result.
"""

from dataclasses import dataclass, field
from typing import Any, List, Literal, Optional, Union

from consolesync.core.exceptions import ApiError
from consolesync.core.models import Record


@dataclass(frozen=True)
class PageEnvelope:
    items: List[Any]
    page: Optional[int] = None
    per_page: Optional[int] = None
    total: Optional[int] = None
    kind: Literal["page"] = field(default="page", init=False)


@dataclass(frozen=True)
class RecordEnvelope:
    record: Record
    kind: Literal["record"] = field(default="record", init=False)


@dataclass(frozen=True)
class ListEnvelope:
    items: List[Any]
    kind: Literal["list"] = field(default="list", init=False)


@dataclass(frozen=True)
class EmptyEnvelope:
    kind: Literal["empty"] = field(default="empty", init=False)


Envelope = Union[PageEnvelope, RecordEnvelope, ListEnvelope, EmptyEnvelope]


def _int_or_none(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def decode_envelope(body: Any) -> Envelope:
    """
    Classify a decoded response body.

    Raises:
        ApiError: If the body is not a mapping, a list or empty
    """
    if body is None or body == "":
        return EmptyEnvelope()
    if isinstance(body, list):
        return ListEnvelope(items=body)
    if not isinstance(body, dict):
        raise ApiError("Malformed response", details=body)

    data = body.get("data")
    if isinstance(data, list):
        return PageEnvelope(
            items=data,
            page=_int_or_none(body.get("current_page", body.get("page"))),
            per_page=_int_or_none(body.get("per_page")),
            total=_int_or_none(body.get("total")),
        )
    if isinstance(data, dict):
        # Some endpoints double-wrap a page: {data: {data: [...], total: ...}}
        if isinstance(data.get("data"), list):
            return decode_envelope(data)
        return RecordEnvelope(record=data)
    return RecordEnvelope(record=body)


def unwrap_record(body: Any) -> Optional[Record]:
    """Return the single record carried by ``body``; ``None`` for an empty body."""
    envelope = decode_envelope(body)
    if isinstance(envelope, RecordEnvelope):
        return envelope.record
    if isinstance(envelope, EmptyEnvelope):
        return None
    raise ApiError("Malformed response: expected a single record", details=body)
