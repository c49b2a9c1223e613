"""Normalization helpers.

Centralizes defensive parsing and placeholder handling.
"""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Any

# Stored rows with both coordinates at zero are read as "no position".
NULL_ISLAND = (0.0, 0.0)


def safe_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    try:
        result = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, Decimal):
        return int(value)
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def is_null_island(latitude: float | None, longitude: float | None) -> bool:
    """Return ``True`` when the pair is the reserved "absent position" sentinel.

    A real reading at (0, 0) cannot be told apart from the sentinel and is
    therefore also treated as absent.
    """
    if latitude is None or longitude is None:
        return False
    return (latitude, longitude) == NULL_ISLAND
