"""PostgreSQL-backed store for device records.

The event table keeps raw rows per device; the newest row by
``generatedts`` is the device's current state.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterator, Mapping
from contextlib import AbstractContextManager
from typing import Any, Protocol

import psycopg
from psycopg import sql
from psycopg.rows import dict_row

from telemerge.config import StoreConfig
from telemerge.exceptions import SchemaError, StoreError, StoreUnavailableError
from telemerge.ingestion.normalize import safe_float, safe_int
from telemerge.models._base import from_storage_timestamp, to_storage_timestamp
from telemerge.models.record import DeviceRecord, position_from_columns

_logger = logging.getLogger(__name__)

_CREATE_TABLE = sql.SQL(
    """
    CREATE TABLE IF NOT EXISTS {table} (
        device      text,
        generatedts timestamp,
        speed       numeric,
        heading     integer,
        latitude    numeric,
        longitude   numeric
    )
    """
)

_SELECT_LATEST = sql.SQL(
    """
    SELECT device, generatedts, speed, heading, latitude, longitude
    FROM {table}
    WHERE device = %s
    ORDER BY generatedts DESC NULLS LAST
    LIMIT 1
    """
)

_INSERT_EVENT = sql.SQL(
    """
    INSERT INTO {table} (device, generatedts, speed, heading, latitude, longitude)
    VALUES (%s, %s, %s, %s, %s, %s)
    """
)

# generatedts is deliberately left out of the SET list.
_UPDATE_CURRENT = sql.SQL(
    """
    UPDATE {table}
    SET speed = %s, heading = %s, latitude = %s, longitude = %s
    WHERE ctid = (
        SELECT ctid FROM {table}
        WHERE device = %s
        ORDER BY generatedts DESC NULLS LAST
        LIMIT 1
    )
    """
)

_SET_TIMEOUT = "SELECT set_config('statement_timeout', %s, true)"
_SET_LOCK_TIMEOUT = "SELECT set_config('lock_timeout', %s, true)"
_DEVICE_LOCK = "SELECT pg_advisory_xact_lock(hashtext(%s))"


class RecordStore(Protocol):
    """Structural store interface used by the processor.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`DeviceStore`) concrete.
    """

    def try_fetch_latest(self, device: str) -> DeviceRecord | None: ...

    def initialize(self, record: DeviceRecord) -> None: ...

    def update_current(self, record: DeviceRecord) -> None: ...

    def device_lock(self, device: str) -> AbstractContextManager[None]: ...


def record_from_row(row: Mapping[str, Any]) -> DeviceRecord:
    """Map a ``device_events`` row to a record, applying the position sentinel rule."""
    return DeviceRecord(
        device=row["device"],
        generated=from_storage_timestamp(row.get("generatedts")),
        speed=safe_float(row.get("speed")),
        heading=safe_int(row.get("heading")),
        position=position_from_columns(row.get("latitude"), row.get("longitude")),
    )


def _event_params(record: DeviceRecord) -> tuple[Any, Any, Any, Any]:
    # Absent position is written as a NULL pair, never as zeros.
    if record.position is None:
        return record.speed, record.heading, None, None
    return record.speed, record.heading, record.position.latitude, record.position.longitude


def _timeout_ms(seconds: float) -> str:
    return str(int(seconds * 1000))


class DeviceStore:
    """Device event store on a single psycopg connection.

    The connection is used in autocommit mode; every operation opens its own
    transaction, which becomes a savepoint when nested in :meth:`device_lock`.
    """

    def __init__(self, config: StoreConfig, connection: psycopg.Connection) -> None:
        self._config = config
        self._conn = connection
        self._table = sql.Identifier(config.table)

    @classmethod
    def connect(cls, config: StoreConfig) -> DeviceStore:
        """Open, ping and prepare a store.

        Raises
        ------
        StoreUnavailableError
            The database cannot be reached.
        SchemaError
            The event table could not be created.
        """
        try:
            connection = psycopg.connect(config.conninfo(), autocommit=True, row_factory=dict_row)
        except psycopg.Error as exc:
            raise StoreUnavailableError(f"Unable to connect to database: {exc}", operation="connect") from exc

        store = cls(config, connection)
        try:
            store.ping()
            store.ensure_schema()
        except StoreError:
            store.close()
            raise
        return store

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> DeviceStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @contextlib.contextmanager
    def _transaction(self, timeout: float) -> Iterator[psycopg.Cursor]:
        with self._conn.transaction():
            with self._conn.cursor() as cur:
                cur.execute(_SET_TIMEOUT, (_timeout_ms(timeout),))
                yield cur

    def ping(self) -> None:
        try:
            with self._transaction(self._config.schema_timeout) as cur:
                cur.execute("SELECT 1")
        except psycopg.Error as exc:
            raise StoreUnavailableError(f"Database ping failed: {exc}", operation="ping") from exc

    def ensure_schema(self) -> None:
        """Create the event table if it does not exist yet."""
        try:
            with self._transaction(self._config.schema_timeout) as cur:
                cur.execute(_CREATE_TABLE.format(table=self._table))
        except psycopg.Error as exc:
            raise SchemaError(
                f"Error creating `{self._config.table}` table: {exc}",
                operation="ensure_schema",
            ) from exc

    def try_fetch_latest(self, device: str) -> DeviceRecord | None:
        """Return the newest stored record for *device*, or ``None`` if there is none."""
        try:
            with self._transaction(self._config.write_timeout) as cur:
                cur.execute(_SELECT_LATEST.format(table=self._table), (device,))
                row = cur.fetchone()
        except psycopg.Error as exc:
            raise StoreError(
                f"Error reading latest row for {device!r}: {exc}",
                operation="fetch_latest",
                device=device,
            ) from exc

        if row is None:
            _logger.debug("No stored record for %s", device)
            return None
        return record_from_row(row)

    def initialize(self, record: DeviceRecord) -> None:
        """Store *record* as the first event of a device never seen before."""
        _logger.debug("Initializing state for %s", record.device)
        self.append(record)

    def append(self, record: DeviceRecord) -> None:
        """Insert *record* as a raw event row."""
        params = (record.device, to_storage_timestamp(record.generated), *_event_params(record))
        try:
            with self._transaction(self._config.write_timeout) as cur:
                cur.execute(_INSERT_EVENT.format(table=self._table), params)
        except psycopg.Error as exc:
            raise StoreError(
                f"Error inserting row into {self._config.table} table: {exc}",
                operation="append",
                device=record.device,
            ) from exc

    def update_current(self, record: DeviceRecord) -> None:
        """Overwrite speed, heading and position of the device's current row."""
        params = (*_event_params(record), record.device)
        try:
            with self._transaction(self._config.write_timeout) as cur:
                cur.execute(_UPDATE_CURRENT.format(table=self._table), params)
                updated = cur.rowcount
        except psycopg.Error as exc:
            raise StoreError(
                f"Error updating row in {self._config.table} table: {exc}",
                operation="update_current",
                device=record.device,
            ) from exc

        if updated == 0:
            _logger.warning("No current row to update for %s", record.device)

    @contextlib.contextmanager
    def device_lock(self, device: str) -> Iterator[None]:
        """Hold a transaction-scoped advisory lock on *device* for the block.

        Waiting for the lock is bounded by ``write_timeout``. Failures while
        locking or committing the enclosing transaction raise :class:`StoreError`.
        """
        timeout = _timeout_ms(self._config.write_timeout)
        try:
            with self._conn.transaction():
                with self._conn.cursor() as cur:
                    cur.execute(_SET_LOCK_TIMEOUT, (timeout,))
                    cur.execute(_SET_TIMEOUT, (timeout,))
                    cur.execute(_DEVICE_LOCK, (device,))
                yield
        except psycopg.Error as exc:
            raise StoreError(
                f"Error in locked transaction for device {device!r}: {exc}",
                operation="lock",
                device=device,
            ) from exc
