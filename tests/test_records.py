"""Tests for record models, timestamp adapters and the wire codec."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from telemerge.exceptions import RecordFormatError
from telemerge.ingestion.normalize import is_null_island, safe_float, safe_int
from telemerge.ingestion.wire import parse_record, render_record
from telemerge.models import (
    DeviceRecord,
    Position,
    format_wire_timestamp,
    from_storage_timestamp,
    parse_wire_timestamp,
    position_from_columns,
    to_storage_timestamp,
)

# ------------------------------------------------------------------
# Timestamp adapters
# ------------------------------------------------------------------


class TestTimestamps:
    def test_wire_format(self) -> None:
        assert parse_wire_timestamp("2024-01-01 12:30:00") == datetime(2024, 1, 1, 12, 30, tzinfo=UTC)

    def test_rfc3339_accepted_on_wire(self) -> None:
        assert parse_wire_timestamp("2024-01-02T00:00:00Z") == datetime(2024, 1, 2, tzinfo=UTC)

    def test_offset_converted_to_utc(self) -> None:
        parsed = parse_wire_timestamp("2024-01-02T02:00:00+02:00")
        assert parsed == datetime(2024, 1, 2, tzinfo=UTC)
        assert parsed.tzinfo == UTC

    def test_unparseable_is_absent(self) -> None:
        assert parse_wire_timestamp("yesterday") is None
        assert parse_wire_timestamp("") is None
        assert parse_wire_timestamp(None) is None

    def test_format_wire(self) -> None:
        tz = timezone(timedelta(hours=1))
        assert format_wire_timestamp(datetime(2024, 1, 1, 1, 0, tzinfo=tz)) == "2024-01-01 00:00:00"

    def test_storage_naive_is_utc(self) -> None:
        assert from_storage_timestamp(datetime(2024, 1, 1)) == datetime(2024, 1, 1, tzinfo=UTC)
        assert from_storage_timestamp("2024-01-01T00:00:00Z") == datetime(2024, 1, 1, tzinfo=UTC)
        assert from_storage_timestamp(None) is None

    def test_to_storage_is_naive_utc(self) -> None:
        tz = timezone(timedelta(hours=2))
        stored = to_storage_timestamp(datetime(2024, 1, 1, 2, 0, tzinfo=tz))
        assert stored == datetime(2024, 1, 1, 0, 0)
        assert stored.tzinfo is None
        assert to_storage_timestamp(None) is None


# ------------------------------------------------------------------
# Normalization
# ------------------------------------------------------------------


class TestNormalize:
    def test_safe_float(self) -> None:
        assert safe_float("1.5") == 1.5
        assert safe_float(Decimal("2.25")) == 2.25
        assert safe_float("abc") is None
        assert safe_float(None) is None
        assert safe_float(float("nan")) is None

    def test_safe_int(self) -> None:
        assert safe_int(90) == 90
        assert safe_int(Decimal("95")) == 95
        assert safe_int(None) is None

    def test_null_island(self) -> None:
        assert is_null_island(0.0, 0.0) is True
        assert is_null_island(0.0, 1.0) is False
        assert is_null_island(None, None) is False


# ------------------------------------------------------------------
# Models
# ------------------------------------------------------------------


class TestPosition:
    def test_numeric_strings_coerced(self) -> None:
        position = Position.model_validate({"lat": "52.37", "long": "4.89"})
        assert position.latitude == 52.37
        assert position.longitude == 4.89

    def test_numbers_accepted(self) -> None:
        position = Position.model_validate({"lat": 52, "long": 4.5})
        assert position == Position(latitude=52.0, longitude=4.5)

    def test_unparseable_coordinate_becomes_zero(self) -> None:
        position = Position.model_validate({"lat": "north", "long": "4.5"})
        assert position.latitude == 0.0
        assert position.longitude == 4.5

    def test_sentinel_columns_mean_absent(self) -> None:
        assert position_from_columns(Decimal("0"), Decimal("0")) is None
        assert position_from_columns(0.0, 0.0) is None
        assert position_from_columns(None, None) is None
        assert position_from_columns(Decimal("1.5"), None) is None

    def test_columns_to_position(self) -> None:
        assert position_from_columns(Decimal("0"), Decimal("7.25")) == Position(latitude=0.0, longitude=7.25)


class TestDeviceRecord:
    def test_device_required_and_stripped(self) -> None:
        assert DeviceRecord(device="  A ").device == "A"
        with pytest.raises(ValueError):
            DeviceRecord(device="   ")

    def test_optional_fields_default_to_none(self) -> None:
        record = DeviceRecord(device="A")
        assert record.generated is None
        assert record.heading is None
        assert record.speed is None
        assert record.position is None

    def test_records_are_frozen(self) -> None:
        record = DeviceRecord(device="A")
        with pytest.raises(ValueError):
            record.speed = 1.0  # type: ignore[misc]


# ------------------------------------------------------------------
# Wire codec
# ------------------------------------------------------------------


class TestWire:
    def test_parse_full_record(self) -> None:
        record = parse_record(
            '{"device":"A","generated":"2024-01-01 00:00:00","heading":90,'
            '"speed":5.5,"position":{"lat":"1.5","long":2}}'
        )
        assert record.device == "A"
        assert record.generated == datetime(2024, 1, 1, tzinfo=UTC)
        assert record.heading == 90
        assert record.speed == 5.5
        assert record.position == Position(latitude=1.5, longitude=2.0)

    def test_unknown_keys_ignored(self) -> None:
        assert parse_record('{"device":"A","battery":80}') == DeviceRecord(device="A")

    @pytest.mark.parametrize(
        "text",
        [
            "not json",
            "[1, 2]",
            "{}",
            '{"device": ""}',
            '{"device": "A", "heading": "north"}',
        ],
    )
    def test_malformed_records_rejected(self, text: str) -> None:
        with pytest.raises(RecordFormatError):
            parse_record(text)

    def test_render_omits_generated_and_absent_fields(self) -> None:
        record = parse_record('{"device":"A","generated":"2024-01-01 00:00:00","speed":5}')
        assert json.loads(render_record(record)) == {"device": "A", "speed": 5}

    def test_render_whole_speed_without_fraction(self) -> None:
        assert render_record(parse_record('{"device":"A","speed":5}')) == '{"device":"A","speed":5}'
        assert render_record(parse_record('{"device":"A","speed":5.5}')) == '{"device":"A","speed":5.5}'

    def test_render_position_as_numbers(self) -> None:
        record = parse_record('{"device":"A","position":{"lat":"1.5","long":"-2.25"}}')
        rendered = json.loads(render_record(record))
        assert rendered["position"] == {"lat": 1.5, "long": -2.25}
