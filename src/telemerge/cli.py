"""Command-line entry point.

Usage
-----
Pass one JSON record as the only positional argument::

    telemerge '{"device": "A", "generated": "2024-01-02 00:00:00", "speed": 5}'

Connection settings come from ``TELEMERGE_*`` environment variables
(see :class:`telemerge.config.StoreConfig`) or ``--dsn``.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from telemerge.config import StoreConfig
from telemerge.exceptions import TelemergeError
from telemerge.ingestion.wire import parse_record, render_record
from telemerge.processor import process_record
from telemerge.state.store import DeviceStore

_logger = logging.getLogger("telemerge")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="telemerge",
        description="Reconcile one device telemetry record with its stored state.",
    )
    parser.add_argument("record", help="Device record as a JSON object")
    parser.add_argument("--dsn", help="PostgreSQL connection string (overrides TELEMERGE_DSN)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def run(argv: Sequence[str] | None = None) -> int:
    """Process one record and print the result. Returns the exit status."""
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        incoming = parse_record(args.record)
        config = StoreConfig.from_env(dsn=args.dsn)
        _logger.debug("Store config: %s", config.redacted())

        with DeviceStore.connect(config) as store:
            result = process_record(
                store,
                incoming,
                lock=config.lock_device,
                strict=config.strict_writes,
            )
    except TelemergeError as exc:
        _logger.error("%s", exc)
        return 1

    _logger.debug("Device %s %s", result.record.device, "created" if result.created else "merged")
    print(render_record(result.record))
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
