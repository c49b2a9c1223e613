"""Field-level reconciliation of an incoming record with the stored one.

This is the only component allowed to decide which value becomes current.
"""

from __future__ import annotations

import logging
from typing import Any

from telemerge.models.record import DeviceRecord
from telemerge.state.policy import is_before, is_duplicate

_logger = logging.getLogger(__name__)

MERGED_FIELDS: tuple[str, ...] = ("heading", "speed", "position")


def _pick(existing_value: Any, incoming_value: Any, *, incoming_is_older: bool) -> Any:
    if incoming_value is None:
        return existing_value
    if existing_value is not None and incoming_is_older:
        return existing_value
    return incoming_value


def merge(existing: DeviceRecord, incoming: DeviceRecord) -> DeviceRecord:
    """Merge *incoming* into *existing* and return the record that becomes current.

    Rules, applied to heading, speed and position independently:

    * a field missing from *incoming* keeps the existing value;
    * when both carry the field, an *incoming* record generated strictly
      before *existing* cannot overwrite it;
    * otherwise the incoming value is kept.

    A record generated at exactly the same time as the stored one is a
    re-delivery and is returned unchanged. When *incoming* is older, the
    result carries the existing (newer) generation time.
    """
    if is_duplicate(incoming.generated, existing.generated):
        _logger.debug("Duplicate delivery for %s at %s", incoming.device, incoming.generated)
        return incoming

    incoming_is_older = is_before(incoming.generated, existing.generated)

    update: dict[str, Any] = {}
    for name in MERGED_FIELDS:
        current = getattr(incoming, name)
        chosen = _pick(getattr(existing, name), current, incoming_is_older=incoming_is_older)
        if chosen is not current:
            update[name] = chosen

    if incoming_is_older:
        _logger.debug(
            "Out-of-order record for %s: %s is older than stored %s",
            incoming.device,
            incoming.generated,
            existing.generated,
        )
        update["generated"] = existing.generated

    if not update:
        return incoming
    return incoming.model_copy(update=update)
