"""Timestamp type and boundary adapters.

A record's generation time is held as a UTC-aware :class:`~datetime.datetime`
everywhere inside telemerge. It only changes shape at two boundaries:

* **wire**: the JSON record given on the command line carries
  ``"YYYY-MM-DD HH:MM:SS"`` (ISO 8601 / RFC 3339 is accepted too).
* **storage**: the ``generatedts`` column is a ``timestamp`` without time
  zone; the driver hands back naive datetimes which are taken as UTC.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BeforeValidator

_logger = logging.getLogger(__name__)

WIRE_FORMAT = "%Y-%m-%d %H:%M:%S"


def utcnow() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Return *value* as an aware UTC datetime (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _parse_text(text: str) -> datetime:
    try:
        return datetime.strptime(text, WIRE_FORMAT)
    except ValueError:
        return datetime.fromisoformat(text)


def parse_wire_timestamp(value: Any) -> datetime | None:
    """Parse a wire timestamp into an aware UTC datetime.

    Returns ``None`` for missing, empty or unparseable values. An unparseable
    value is logged and otherwise treated as absent, which makes any ordering
    against it indeterminate.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    text = str(value).strip()
    if not text:
        return None
    try:
        parsed = _parse_text(text)
    except ValueError:
        _logger.warning("Ignoring unparseable generated timestamp %r", text)
        return None
    return ensure_utc(parsed)


def format_wire_timestamp(value: datetime) -> str:
    return ensure_utc(value).strftime(WIRE_FORMAT)


def from_storage_timestamp(value: Any) -> datetime | None:
    """Convert a ``generatedts`` column value to an aware UTC datetime."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    try:
        return ensure_utc(datetime.fromisoformat(str(value)))
    except ValueError:
        _logger.warning("Ignoring unparseable stored timestamp %r", value)
        return None


def to_storage_timestamp(value: datetime | None) -> datetime | None:
    """Convert to the naive UTC datetime stored in a ``timestamp`` column."""
    if value is None:
        return None
    return ensure_utc(value).replace(tzinfo=None)


WireTimestamp = Annotated[datetime | None, BeforeValidator(parse_wire_timestamp)]
"""Annotated type that coerces wire timestamps to aware UTC datetimes."""
