"""Single-record processing: fetch, initialize or merge, persist."""

from __future__ import annotations

import contextlib
import dataclasses
import logging
from collections.abc import Callable
from datetime import datetime

from telemerge.exceptions import StoreError
from telemerge.models._base import utcnow
from telemerge.models.record import DeviceRecord
from telemerge.state.reconcile import merge
from telemerge.state.store import RecordStore

_logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class ProcessResult:
    """Outcome of :func:`process_record`.

    ``created`` is ``True`` when the device had no stored state and the
    incoming record became its first row.
    """

    record: DeviceRecord
    created: bool


def process_record(
    store: RecordStore,
    incoming: DeviceRecord,
    *,
    clock: Callable[[], datetime] = utcnow,
    lock: bool = True,
    strict: bool = False,
) -> ProcessResult:
    """Reconcile *incoming* with the stored state of its device and persist it.

    Parameters
    ----------
    store
        Store holding the device's current state.
    incoming
        Record received from the device.
    clock
        Source of the generation time for records that arrive without one.
    lock
        Run the read-merge-write sequence under :meth:`RecordStore.device_lock`.
    strict
        Re-raise write failures instead of logging them.

    Raises
    ------
    StoreError
        Reading the current state failed, or a write failed in strict mode.
    """
    if incoming.generated is None:
        incoming = incoming.model_copy(update={"generated": clock()})

    guard = store.device_lock(incoming.device) if lock else contextlib.nullcontext()
    with guard:
        existing = store.try_fetch_latest(incoming.device)

        if existing is None:
            _write(store.initialize, incoming, strict=strict)
            return ProcessResult(record=incoming, created=True)

        merged = merge(existing, incoming)
        _write(store.update_current, merged, strict=strict)
        return ProcessResult(record=merged, created=False)


def _write(operation: Callable[[DeviceRecord], None], record: DeviceRecord, *, strict: bool) -> None:
    try:
        operation(record)
    except StoreError as exc:
        if strict:
            raise
        _logger.error("%s", exc)
