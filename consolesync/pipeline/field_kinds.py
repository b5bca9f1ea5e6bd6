"""
Field-kind tables.

Outbound formatting is driven by data: each entity declares which of its
fields are dates, datetimes or decimal quantities. Names missing from the
table fall back to the entity's suffix rules, then to passthrough.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Tuple


class FieldKind(str, Enum):
    DATE = "date"
    DATETIME = "datetime"
    DECIMAL = "decimal"
    PASSTHROUGH = "passthrough"


@dataclass(frozen=True)
class FieldKindTable:
    """Explicit per-entity classification of field names."""

    fields: Mapping[str, FieldKind] = field(default_factory=dict)
    suffix_rules: Tuple[Tuple[str, FieldKind], ...] = ()

    def classify(self, name: str) -> FieldKind:
        kind = self.fields.get(name)
        if kind is not None:
            return kind
        for suffix, suffix_kind in self.suffix_rules:
            if name.endswith(suffix):
                return suffix_kind
        return FieldKind.PASSTHROUGH


DATETIME_FIELDS = ("operation_starts_at", "operation_finishes_at", "date")

DATE_FIELDS = ("nomination_date", "bl_date", "cargo_arrival_date", "operation_finish_date")

DECIMAL_FIELDS = (
    "gross_volume_invoice",
    "net_volume_invoice",
    "tare_volume_invoice",
    "gross_volume_landed",
    "net_volume_landed",
    "tare_volume_landed",
)


def _table(**groups: Tuple[str, ...]) -> Dict[str, FieldKind]:
    return {name: FieldKind(kind) for kind, names in groups.items() for name in names}


SERVICE_ORDER_FIELD_KINDS = FieldKindTable(
    fields=_table(datetime=DATETIME_FIELDS, date=DATE_FIELDS, decimal=DECIMAL_FIELDS),
    suffix_rules=(("_date", FieldKind.DATE), ("_at", FieldKind.DATE)),
)

# Top-level fields coerced to date values when reading a service order.
SERVICE_ORDER_READ_DATE_FIELDS = frozenset(
    ("operation_starts_at", "operation_finishes_at", "created_at", "updated_at", "deleted_at")
    + DATE_FIELDS
)
