"""
Service-order payload pipeline.

Field kinds, date/decimal formatting and the read/write normalization of
service orders.
"""

from .formatting import apply_field_formatting, format_date, format_datetime, format_decimal
from .normalization import finalize_outbound, normalize_response

__all__ = [
    "apply_field_formatting",
    "finalize_outbound",
    "format_date",
    "format_datetime",
    "format_decimal",
    "normalize_response",
]
