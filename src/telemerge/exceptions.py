"""Custom exception hierarchy for telemerge."""

from __future__ import annotations


class TelemergeError(Exception):
    """Base exception for all telemerge errors."""


class ConfigError(TelemergeError):
    """Invalid or missing configuration."""


class RecordFormatError(TelemergeError):
    """Incoming record is not valid JSON or does not describe a device record."""


class StoreError(TelemergeError):
    """A database operation failed.

    Store operations always raise; whether the failure is fatal is decided
    by the caller (see :func:`telemerge.processor.process_record`).
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str = "",
        device: str = "",
    ) -> None:
        self.operation = operation
        self.device = device
        super().__init__(message)


class StoreUnavailableError(StoreError):
    """Could not connect to or ping the database."""


class SchemaError(StoreError):
    """Creating the event table failed."""
