from __future__ import annotations

import contextlib
from collections.abc import Iterator

import pytest

from telemerge.exceptions import StoreError
from telemerge.models import DeviceRecord


class MemoryStore:
    """In-memory :class:`telemerge.state.store.RecordStore` double."""

    def __init__(self, *, fail_writes: bool = False, fail_reads: bool = False) -> None:
        self.rows: dict[str, DeviceRecord] = {}
        self.initialized: list[DeviceRecord] = []
        self.updated: list[DeviceRecord] = []
        self.locked: list[str] = []
        self.fail_writes = fail_writes
        self.fail_reads = fail_reads
        self.closed = False

    def try_fetch_latest(self, device: str) -> DeviceRecord | None:
        if self.fail_reads:
            raise StoreError("read failed", operation="fetch_latest", device=device)
        return self.rows.get(device)

    def initialize(self, record: DeviceRecord) -> None:
        if self.fail_writes:
            raise StoreError("insert failed", operation="append", device=record.device)
        self.initialized.append(record)
        self.rows[record.device] = record

    def update_current(self, record: DeviceRecord) -> None:
        if self.fail_writes:
            raise StoreError("update failed", operation="update_current", device=record.device)
        self.updated.append(record)
        # generated of the current row is not rewritten by an update
        stored = self.rows[record.device]
        self.rows[record.device] = record.model_copy(update={"generated": stored.generated})

    @contextlib.contextmanager
    def device_lock(self, device: str) -> Iterator[None]:
        self.locked.append(device)
        yield

    def __enter__(self) -> MemoryStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.closed = True


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()
