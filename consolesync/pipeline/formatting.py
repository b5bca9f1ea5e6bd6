"""
Date and decimal coercion for service-order payloads.

Read-side helpers turn wire strings into ``datetime`` values; write-side
helpers render form values into the exact text formats the API accepts.
"""

import re
from datetime import date, datetime, time, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Dict, Mapping, Optional

import structlog
from dateutil import parser as date_parser

from consolesync.core.models import Record
from consolesync.pipeline.field_kinds import SERVICE_ORDER_FIELD_KINDS, FieldKind, FieldKindTable

logger = structlog.get_logger(__name__)

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_FIXED_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
    "%d/%m/%Y",
    "%d/%m/%Y %H:%M",
)

# Trailing "(Brasilia Standard Time)" of JavaScript Date.toString() output
_TZ_NAME_SUFFIX = re.compile(r"\s*\([^)]*\)\s*$")

# "1.234" or "12.345.678": dots as thousands separators
_THOUSANDS_ONLY = re.compile(r"^[+-]?[1-9]\d{0,2}(\.\d{3})+$")

_CENTS = Decimal("0.01")

_DEFAULT_A = datetime(2000, 1, 1)
_DEFAULT_B = datetime(2001, 2, 2)


def parse_date(value: Any) -> Optional[datetime]:
    """
    Parse ``value`` into a datetime, or return None when it is not a date.

    Numbers are epoch timestamps (milliseconds when large enough, seconds
    otherwise). Strings keep their wall-clock time; no timezone conversion.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        seconds = value / 1000 if abs(value) >= 1e11 else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass

    for fmt in _FIXED_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    return _parse_free_form(_TZ_NAME_SUFFIX.sub("", text))


def _parse_free_form(text: str) -> Optional[datetime]:
    """Parse with dateutil, rejecting text that lacks a year, month or day."""
    try:
        first = date_parser.parse(text, default=_DEFAULT_A)
        second = date_parser.parse(text, default=_DEFAULT_B)
    except (ValueError, OverflowError):
        return None
    # Parts taken from the defaults differ between the two parses
    if first.date() != second.date():
        return None
    return first


def coerce_date(value: Any) -> Any:
    """Read-side coercion: a datetime when parsable, the value unchanged otherwise."""
    if not value:
        return value
    parsed = parse_date(value)
    return parsed if parsed is not None else value


def format_date(value: Any) -> Any:
    """Render as ``YYYY-MM-DD``; unparsable values pass through."""
    if not value:
        return value
    parsed = parse_date(value)
    return parsed.strftime(DATE_FORMAT) if parsed is not None else value


def format_datetime(value: Any) -> Any:
    """Render as ``YYYY-MM-DD HH:mm:ss``; unparsable values pass through."""
    if not value:
        return value
    parsed = parse_date(value)
    return parsed.strftime(DATETIME_FORMAT) if parsed is not None else value


def parse_decimal(value: Any) -> Decimal:
    """
    Parse a number, a canonical decimal string or a locale-formatted string.

    In locale strings ``.`` groups thousands and ``,`` marks decimals
    (``"1.234,5"`` is 1234.5). Comma-free strings are canonical unless every
    dot separates a group of exactly three digits.

    Raises:
        ValueError: If the value is not a finite number
        TypeError: If the value has an unsupported type
    """
    if isinstance(value, bool):
        raise TypeError("booleans are not decimal quantities")
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip().replace(" ", "")
        if "," in text:
            text = text.replace(".", "").replace(",", ".")
        elif _THOUSANDS_ONLY.match(text):
            text = text.replace(".", "")
        number = Decimal(text)
    else:
        raise TypeError(f"unsupported decimal value: {type(value).__name__}")

    if not number.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return number


def format_decimal(value: Any) -> Optional[str]:
    """Render as a fixed-point string with two digits; None stays None."""
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return value
    return str(parse_decimal(value).quantize(_CENTS, rounding=ROUND_HALF_UP))


_FORMATTERS: Dict[FieldKind, Callable[[Any], Any]] = {
    FieldKind.DATE: format_date,
    FieldKind.DATETIME: format_datetime,
    FieldKind.DECIMAL: format_decimal,
}


def format_field(name: str, value: Any, table: FieldKindTable = SERVICE_ORDER_FIELD_KINDS) -> Any:
    """Format one field by its declared kind, leaving it as is on failure."""
    formatter = _FORMATTERS.get(table.classify(name))
    if formatter is None:
        return value
    try:
        return formatter(value)
    except (ValueError, TypeError, ArithmeticError) as e:
        logger.debug("Field left unformatted", field=name, error=str(e))
        return value


def _format_mapping(mapping: Mapping[str, Any], table: FieldKindTable) -> Record:
    return {key: format_field(key, value, table) for key, value in mapping.items()}


def apply_field_formatting(
    payload: Mapping[str, Any], table: FieldKindTable = SERVICE_ORDER_FIELD_KINDS
) -> Record:
    """
    Format an outbound payload, one level deep.

    Top-level scalars are formatted by key. Each mapping inside a top-level
    list, and a top-level mapping itself, has its own keys formatted. Deeper
    values are left untouched. Returns a new mapping.
    """
    formatted: Record = {}
    for key, value in payload.items():
        if isinstance(value, list):
            formatted[key] = [
                _format_mapping(item, table) if isinstance(item, dict) else item for item in value
            ]
        elif isinstance(value, dict):
            formatted[key] = _format_mapping(value, table)
        else:
            formatted[key] = format_field(key, value, table)
    return formatted
