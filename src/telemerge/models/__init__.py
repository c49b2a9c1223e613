"""Typed models for device telemetry records."""

from telemerge.models._base import (
    WireTimestamp,
    format_wire_timestamp,
    from_storage_timestamp,
    parse_wire_timestamp,
    to_storage_timestamp,
)
from telemerge.models.record import DeviceRecord, Position, position_from_columns

__all__ = [
    "DeviceRecord",
    "Position",
    "WireTimestamp",
    "format_wire_timestamp",
    "from_storage_timestamp",
    "parse_wire_timestamp",
    "position_from_columns",
    "to_storage_timestamp",
]
