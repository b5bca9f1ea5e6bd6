"""Tests for response envelope decoding."""

import pytest

from consolesync.core.exceptions import ApiError
from consolesync.data.envelope import (
    EmptyEnvelope,
    ListEnvelope,
    PageEnvelope,
    RecordEnvelope,
    decode_envelope,
    unwrap_record,
)


class TestDecodeEnvelope:
    def test_paginated_body(self):
        envelope = decode_envelope(
            {"data": [{"id": 1}], "current_page": "2", "per_page": 10, "total": 11}
        )

        assert isinstance(envelope, PageEnvelope)
        assert envelope.kind == "page"
        assert (envelope.page, envelope.per_page, envelope.total) == (2, 10, 11)

    def test_double_wrapped_page(self):
        envelope = decode_envelope({"data": {"data": [{"id": 1}, {"id": 2}], "total": 2}})

        assert isinstance(envelope, PageEnvelope)
        assert len(envelope.items) == 2
        assert envelope.total == 2

    def test_bare_list(self):
        envelope = decode_envelope([{"id": 1}])

        assert isinstance(envelope, ListEnvelope)
        assert envelope.items == [{"id": 1}]

    def test_wrapped_record(self):
        envelope = decode_envelope({"data": {"id": 3, "name": "Acme"}})

        assert isinstance(envelope, RecordEnvelope)
        assert envelope.record == {"id": 3, "name": "Acme"}

    def test_bare_record(self):
        assert decode_envelope({"id": 3}).record == {"id": 3}

    @pytest.mark.parametrize("body", [None, ""])
    def test_empty_body(self, body):
        assert isinstance(decode_envelope(body), EmptyEnvelope)

    def test_scalar_body_is_malformed(self):
        with pytest.raises(ApiError) as exc_info:
            decode_envelope(42)

        assert exc_info.value.status is None
        assert "Malformed" in exc_info.value.message


class TestUnwrap:
    def test_unwrap_record_from_list_is_malformed(self):
        with pytest.raises(ApiError):
            unwrap_record([{"id": 1}])

    def test_unwrap_record_empty(self):
        assert unwrap_record(None) is None
