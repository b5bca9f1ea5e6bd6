"""
Test suite for date and decimal formatting.

Validates the wire formats of outbound service-order fields.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from consolesync.pipeline.field_kinds import SERVICE_ORDER_FIELD_KINDS, FieldKind
from consolesync.pipeline.formatting import (
    apply_field_formatting,
    coerce_date,
    format_date,
    format_datetime,
    format_decimal,
    format_field,
    parse_date,
    parse_decimal,
)

BRT = timezone(timedelta(hours=-3))


class TestFieldKinds:
    @pytest.mark.parametrize(
        "name,kind",
        [
            ("operation_starts_at", FieldKind.DATETIME),
            ("date", FieldKind.DATETIME),
            ("nomination_date", FieldKind.DATE),
            ("gross_volume_landed", FieldKind.DECIMAL),
            ("invoice_date", FieldKind.DATE),
            ("created_at", FieldKind.DATE),
            ("unit_price", FieldKind.PASSTHROUGH),
            ("name", FieldKind.PASSTHROUGH),
        ],
    )
    def test_classify(self, name, kind):
        assert SERVICE_ORDER_FIELD_KINDS.classify(name) == kind


class TestDateFormatting:
    """Test date parsing and rendering."""

    def test_aware_datetime_keeps_wall_clock_date(self):
        value = datetime(2025, 10, 30, 22, 15, tzinfo=BRT)

        assert format_date(value) == "2025-10-30"

    def test_javascript_date_string(self):
        value = "Thu Oct 16 2025 00:00:00 GMT-0300 (Brasilia Standard Time)"

        assert format_date(value) == "2025-10-16"

    def test_datetime_format(self):
        value = datetime(2025, 10, 30, 15, 45, 30, tzinfo=BRT)

        assert format_datetime(value) == "2025-10-30 15:45:30"

    def test_iso_string_with_zulu(self):
        assert format_datetime("2025-01-02T03:04:05Z") == "2025-01-02 03:04:05"

    def test_brazilian_day_first_string(self):
        assert format_date("05/03/2024") == "2024-03-05"

    def test_plain_date(self):
        assert format_datetime(date(2024, 2, 29)) == "2024-02-29 00:00:00"

    def test_epoch_milliseconds_and_seconds(self):
        assert parse_date(1_700_000_000_000) == parse_date(1_700_000_000)

    def test_unparsable_values_pass_through(self):
        assert format_date("not a date") == "not a date"
        assert format_date("") == ""
        assert format_date(None) is None
        assert parse_date(True) is None

    @pytest.mark.parametrize("value", ["12", "Mar", "May 2025", "7"])
    def test_partial_dates_pass_through(self, value):
        assert parse_date(value) is None
        assert format_date(value) == value
        assert coerce_date(value) == value

    def test_free_form_date_with_all_parts(self):
        assert parse_date("30 October 2025") == datetime(2025, 10, 30)

    def test_coerce_date(self):
        assert coerce_date("2025-10-30") == datetime(2025, 10, 30)
        assert coerce_date("soon") == "soon"

    def test_idempotent(self):
        once = format_datetime(datetime(2025, 10, 30, 15, 45, 30))

        assert format_datetime(once) == once
        assert format_date(format_date("2025-10-30T10:00:00")) == "2025-10-30"


class TestDecimalFormatting:
    """Test decimal parsing and rendering."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("1.234,5", "1234.50"),
            (2.5, "2.50"),
            ("10", "10.00"),
            ("1.234", "1234.00"),
            ("12.345.678", "12345678.00"),
            ("3.14159", "3.14"),
            ("0.005", "0.01"),
            (Decimal("7"), "7.00"),
        ],
    )
    def test_format_decimal(self, value, expected):
        assert format_decimal(value) == expected

    def test_none_stays_none(self):
        assert format_decimal(None) is None

    def test_blank_passes_through(self):
        assert format_decimal("") == ""

    def test_idempotent(self):
        once = format_decimal("1.234,5")

        assert format_decimal(once) == once

    def test_rejects_non_numbers(self):
        with pytest.raises(TypeError):
            parse_decimal(True)
        with pytest.raises(ValueError):
            parse_decimal(float("nan"))

    def test_format_field_contains_bad_values(self):
        assert format_field("net_volume_invoice", "lots") == "lots"


class TestApplyFieldFormatting:
    """Test the one-level payload walk."""

    def test_formats_top_level_and_list_elements(self):
        payload = {
            "nomination_date": datetime(2025, 10, 30, 9, 0),
            "gross_volume_invoice": "1.234,5",
            "name": "MV Example",
            "schedules": [{"date": datetime(2025, 11, 1, 8, 30), "user_id": "3"}],
        }

        formatted = apply_field_formatting(payload)

        assert formatted == {
            "nomination_date": "2025-10-30",
            "gross_volume_invoice": "1234.50",
            "name": "MV Example",
            "schedules": [{"date": "2025-11-01 08:30:00", "user_id": "3"}],
        }
        assert payload["gross_volume_invoice"] == "1.234,5"

    def test_partial_dates_are_not_completed(self):
        formatted = apply_field_formatting({"bl_date": "7", "cargo_arrival_date": "May"})

        assert formatted == {"bl_date": "7", "cargo_arrival_date": "May"}

    def test_deeper_values_untouched(self):
        nested = {"inner": {"bl_date": datetime(2025, 1, 1)}}

        formatted = apply_field_formatting({"meta": nested})

        assert formatted["meta"]["inner"] == {"bl_date": datetime(2025, 1, 1)}

    def test_idempotent(self):
        payload = {"operation_starts_at": "2025-10-30T15:45:30", "net_volume_landed": 3}

        once = apply_field_formatting(payload)

        assert apply_field_formatting(once) == once
