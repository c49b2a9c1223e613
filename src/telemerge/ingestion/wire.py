"""JSON codec for the command-line record format."""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from telemerge.exceptions import RecordFormatError
from telemerge.models.record import DeviceRecord

_logger = logging.getLogger(__name__)


def parse_record(text: str) -> DeviceRecord:
    """Parse one JSON device record.

    Raises
    ------
    RecordFormatError
        If *text* is not JSON, not an object, or not a valid device record.
    """
    try:
        payload: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise RecordFormatError(f"Record is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise RecordFormatError(f"Record must be a JSON object, got {type(payload).__name__}")

    _logger.debug("Incoming record: %s", payload)

    try:
        return DeviceRecord.model_validate(payload)
    except ValidationError as exc:
        raise RecordFormatError(f"Invalid device record: {exc}") from exc


def render_record(record: DeviceRecord) -> str:
    """Render *record* as compact JSON without its ``generated`` field."""
    data = record.model_dump(
        mode="json",
        by_alias=True,
        exclude={"generated"},
        exclude_none=True,
    )
    return json.dumps(data, separators=(",", ":"))
