"""Device record model."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_serializer, field_validator

from telemerge.ingestion.normalize import is_null_island, safe_float
from telemerge.models._base import WireTimestamp, format_wire_timestamp

_logger = logging.getLogger(__name__)


class Position(BaseModel):
    """A latitude/longitude pair in degrees.

    Coordinates arrive either as numbers or as numeric strings and are
    always emitted as numbers (JSON keys ``lat`` and ``long``).
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    latitude: float = Field(
        default=0.0,
        validation_alias=AliasChoices("lat", "latitude"),
        serialization_alias="lat",
    )
    longitude: float = Field(
        default=0.0,
        validation_alias=AliasChoices("long", "lng", "longitude"),
        serialization_alias="long",
    )

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coerce_coordinate(cls, value: Any) -> float:
        parsed = safe_float(value)
        if parsed is None:
            _logger.warning("Unable to parse coordinate %r, using 0.0", value)
            return 0.0
        return parsed


def position_from_columns(latitude: Any, longitude: Any) -> Position | None:
    """Build a position from stored latitude/longitude columns.

    NULL columns and the ``(0, 0)`` sentinel both mean "no position".
    """
    lat = safe_float(latitude)
    lon = safe_float(longitude)
    if lat is None or lon is None or is_null_island(lat, lon):
        return None
    return Position(latitude=lat, longitude=lon)


class DeviceRecord(BaseModel):
    """Latest known telemetry state of one device.

    Every field except ``device`` is optional; ``None`` means "not reported".

    Parameters
    ----------
    device : str
        Device identifier, the key for "latest state" lookups.
    generated : datetime or None
        When the observation was generated (aware UTC).
    heading : int or None
        Bearing in degrees.
    speed : float or None
        Speed as reported by the device.
    position : Position or None
        Last reported coordinates.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    device: str = Field(..., description="Device identifier")
    generated: WireTimestamp = None
    heading: int | None = None
    speed: float | None = None
    position: Position | None = None

    @field_validator("device")
    @classmethod
    def _normalize_device(cls, value: str) -> str:
        device = value.strip()
        if not device:
            raise ValueError("device must be non-empty")
        return device

    @field_serializer("generated")
    def _serialize_generated(self, value: datetime | None) -> str | None:
        if value is None:
            return None
        return format_wire_timestamp(value)

    @field_serializer("speed", when_used="json")
    def _serialize_speed(self, value: float | None) -> int | float | None:
        # Whole numbers are written without a fractional part ("speed":5).
        if value is None or not value.is_integer():
            return value
        return int(value)
