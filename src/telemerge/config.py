"""Store configuration for telemerge."""

from __future__ import annotations

import dataclasses
import os
import re
from typing import Any

from psycopg.conninfo import make_conninfo

from telemerge.exceptions import ConfigError

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
# The DSN may embed a password.
_SECRET_FIELDS = ("dsn", "password")


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class StoreConfig:
    """Connection and behaviour settings for :class:`telemerge.state.store.DeviceStore`.

    Parameters
    ----------
    dsn : str or None
        Full libpq connection string or URL. When set, the individual
        connection fields below are ignored.
    host : str
        Database host.
    port : int
        Database port.
    dbname : str
        Database name.
    user : str
        Database user.
    password : str
        Database password.
    sslmode : str
        libpq ``sslmode``.
    table : str
        Name of the device event table. Must be a plain SQL identifier.
    connect_timeout : int
        Seconds to wait for the connection to be established.
    schema_timeout : float
        Statement timeout in seconds for creating the event table.
    write_timeout : float
        Statement timeout in seconds for reads and writes of device rows.
    lock_device : bool
        Serialise the read-merge-write sequence per device with a
        transaction-scoped advisory lock.
    strict_writes : bool
        Treat insert/update failures as fatal instead of logging them.
    """

    dsn: str | None = None
    host: str = "localhost"
    port: int = 5432
    dbname: str = "process_db"
    user: str = "postgres"
    password: str = "postgres"
    sslmode: str = "disable"
    table: str = "device_events"
    connect_timeout: int = 10
    schema_timeout: float = 5.0
    write_timeout: float = 50.0
    lock_device: bool = True
    strict_writes: bool = False

    def __post_init__(self) -> None:
        if not _IDENTIFIER.match(self.table):
            raise ConfigError(f"Invalid table name: {self.table!r}")
        if self.schema_timeout <= 0 or self.write_timeout <= 0:
            raise ConfigError("Statement timeouts must be positive")

    def redacted(self) -> dict[str, Any]:
        """Return the settings as a dict with credentials hidden, for debug logs."""
        values = dataclasses.asdict(self)
        for key in _SECRET_FIELDS:
            if values[key] is not None:
                values[key] = "<redacted>"
        return values

    def conninfo(self) -> str:
        """Return the libpq connection string for this configuration."""
        if self.dsn:
            return make_conninfo(self.dsn, connect_timeout=self.connect_timeout)
        return make_conninfo(
            host=self.host,
            port=self.port,
            dbname=self.dbname,
            user=self.user,
            password=self.password,
            sslmode=self.sslmode,
            connect_timeout=self.connect_timeout,
        )

    @classmethod
    def from_env(cls, **overrides: Any) -> StoreConfig:
        """Create configuration from environment variables.

        Reads ``TELEMERGE_DSN`` (or ``DATABASE_URL``) and the optional
        ``TELEMERGE_*`` variables. Explicit keyword arguments override
        environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        StoreConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "TELEMERGE_DB_HOST": "host",
            "TELEMERGE_DB_NAME": "dbname",
            "TELEMERGE_DB_USER": "user",
            "TELEMERGE_DB_PASSWORD": "password",
            "TELEMERGE_DB_SSLMODE": "sslmode",
            "TELEMERGE_TABLE": "table",
        }
        config_kwargs: dict[str, Any] = {}

        dsn = env.get("TELEMERGE_DSN") or env.get("DATABASE_URL")
        if dsn:
            config_kwargs["dsn"] = dsn

        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        try:
            port_env = env.get("TELEMERGE_DB_PORT")
            if port_env is not None:
                config_kwargs["port"] = int(port_env)

            connect_env = env.get("TELEMERGE_CONNECT_TIMEOUT")
            if connect_env is not None:
                config_kwargs["connect_timeout"] = int(connect_env)

            schema_env = env.get("TELEMERGE_SCHEMA_TIMEOUT")
            if schema_env is not None:
                config_kwargs["schema_timeout"] = float(schema_env)

            write_env = env.get("TELEMERGE_WRITE_TIMEOUT")
            if write_env is not None:
                config_kwargs["write_timeout"] = float(write_env)
        except ValueError as exc:
            raise ConfigError(f"Invalid numeric setting in environment: {exc}") from exc

        config_kwargs["lock_device"] = _env_bool(env.get("TELEMERGE_LOCK_DEVICE"), True)
        config_kwargs["strict_writes"] = _env_bool(env.get("TELEMERGE_STRICT_WRITES"), False)

        config_kwargs.update({k: v for k, v in overrides.items() if v is not None})

        return cls(**config_kwargs)
