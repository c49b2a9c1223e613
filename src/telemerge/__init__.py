"""telemerge - Reconcile device telemetry records with their stored state."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("telemerge")
except PackageNotFoundError:
    __version__ = "0+local"
from telemerge.config import StoreConfig
from telemerge.exceptions import (
    ConfigError,
    RecordFormatError,
    SchemaError,
    StoreError,
    StoreUnavailableError,
    TelemergeError,
)
from telemerge.models import DeviceRecord, Position
from telemerge.processor import ProcessResult, process_record
from telemerge.state.reconcile import merge
from telemerge.state.store import DeviceStore, RecordStore

__all__ = [
    "__version__",
    "ConfigError",
    "DeviceRecord",
    "DeviceStore",
    "Position",
    "ProcessResult",
    "RecordFormatError",
    "RecordStore",
    "SchemaError",
    "StoreConfig",
    "StoreError",
    "StoreUnavailableError",
    "TelemergeError",
    "merge",
    "process_record",
]
