"""
Hornet peering sidecar CLI entry point.

Keeps the local Hornet node peered with the main Hornet node of the
cluster. Runs until the container is stopped.

Usage::

    MY_NODE_NAME=node-b MY_IP=10.0.0.5 python -m tangle_peerer \\
        --main-node-name node-a \\
        --iota-hornet-selector app=iota-hornet \\
        --iota-hornet-ns iota \\
        --private-key-file /app/p2pstore/identity.key

Environment:
    MY_NODE_NAME  Name of the k8s node this pod runs on (required)
    MY_IP         IP of this pod (required)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import Final

from tangle_peerer.config import PeererConfig, add_arguments
from tangle_peerer.exceptions import FatalError
from tangle_peerer.sidecar import PeeringSidecar

logger = logging.getLogger(__name__)


LOG_FORMAT: Final = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
"""Line layout shared by the plain and colored formatters."""

LOG_DATE_FORMAT: Final = "%Y-%m-%d %H:%M:%S"


def _ansi(code: str) -> str:
    return f"\x1b[{code}m"


class ColoredFormatter(logging.Formatter):
    """LOG_FORMAT with ANSI colors on the timestamp, level and logger name."""

    RESET = _ansi("0")
    TIMESTAMP_COLOR = _ansi("38;5;51")
    NAME_COLOR = _ansi("38;5;39")

    LEVEL_COLORS = {
        logging.DEBUG: _ansi("38;5;244"),
        logging.INFO: _ansi("38;5;40"),
        logging.WARNING: _ansi("38;5;220"),
        logging.ERROR: _ansi("38;5;196"),
        logging.CRITICAL: _ansi("38;5;196;1"),
    }

    def __init__(self, datefmt: str | None = LOG_DATE_FORMAT) -> None:
        super().__init__(LOG_FORMAT, datefmt)

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        return f"{self.TIMESTAMP_COLOR}{super().formatTime(record, datefmt)}{self.RESET}"

    def format(self, record: logging.LogRecord) -> str:
        """Color a copy of the record so other handlers see it unchanged."""
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)

        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname:8}{self.RESET}"
        colored.name = f"{self.NAME_COLOR}{record.name}{self.RESET}"
        return super().format(colored)


def setup_logging(verbose: bool = False, no_color: bool = False) -> None:
    """Configure root logging, colored unless disabled."""
    level = logging.DEBUG if verbose else logging.INFO

    handler = logging.StreamHandler()
    handler.setLevel(level)

    if no_color:
        formatter = logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT)
    else:
        formatter = ColoredFormatter()

    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)

    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser of the sidecar."""
    parser = argparse.ArgumentParser(
        prog="tangle-peerer",
        description="Keep a Hornet node peered with the main Hornet node",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    add_arguments(parser)
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored logging output",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns the process exit status."""
    args = build_parser().parse_args(argv)

    setup_logging(args.verbose, args.no_color)
    logger.info("Starting")

    try:
        config = PeererConfig.load(args, os.environ)
        logger.info("Loaded env and flags")
        asyncio.run(PeeringSidecar.start(config))
    except FatalError as exc:
        logger.error("%s", exc)
        return 1
    except KeyboardInterrupt:
        logger.info("Shutting down...")

    return 0


if __name__ == "__main__":
    sys.exit(main())
