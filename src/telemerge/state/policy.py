"""Timestamp ordering policy used by the reconciler.

This module intentionally contains *no* payload parsing. Timestamps reach
it already converted to aware UTC datetimes by the model adapters.
"""

from __future__ import annotations

from datetime import datetime


def is_before(incoming: datetime | None, existing: datetime | None) -> bool:
    """Return ``True`` only when *incoming* is strictly older than *existing*.

    A missing timestamp on either side makes the ordering indeterminate,
    which is reported as "not before" so the incoming value wins.
    """
    if incoming is None or existing is None:
        return False
    return incoming < existing


def is_duplicate(incoming: datetime | None, existing: datetime | None) -> bool:
    """Return ``True`` when both records carry the same generation time."""
    if incoming is None or existing is None:
        return False
    return incoming == existing
