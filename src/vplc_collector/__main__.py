"""
vPLC Collector - Main Entry Point

Command-line interface for running the vPLC metrics collector.

Author: uldyssian-sh
License: MIT
"""

import argparse
import asyncio
import sys
from typing import List, Optional

import structlog

from . import __version__
from .config import CollectorSettings, load_device_records
from .exceptions import ConfigurationError
from .logging_config import setup_logging
from .supervisor import CollectorSupervisor

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vplc-collector",
        description="Prometheus collector for vPLC cyclic-backup metrics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Read the device list from VPLC_ACCESS_FILE and serve :2112/metrics
  python -m vplc_collector

  # Explicit access file and port
  python -m vplc_collector --access-file vplcs.json --port 9100

  # Enable debug logging with readable output
  python -m vplc_collector --log-level DEBUG --log-format console
        """
    )

    parser.add_argument(
        "--access-file", "-a",
        help="Device access file (default: $VPLC_ACCESS_FILE)",
        default=None
    )

    parser.add_argument("--host", help="Bind address for the metrics endpoint", default=None)

    parser.add_argument(
        "--port", "-p",
        type=int,
        help="Port for the metrics endpoint (default: 2112)",
        default=None
    )

    parser.add_argument(
        "--interval", "-i",
        type=float,
        help="Seconds between collection cycles (default: 10)",
        default=None
    )

    parser.add_argument(
        "--timeout", "-t",
        type=float,
        dest="request_timeout",
        help="Timeout in seconds for each vPLC request (default: 8)",
        default=None
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level"
    )

    parser.add_argument(
        "--log-format",
        choices=["json", "console"],
        default=None,
        help="Log output format"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"vPLC Collector {__version__}"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point"""
    args = build_parser().parse_args(argv)

    try:
        settings = CollectorSettings.from_env(
            access_file=args.access_file,
            host=args.host,
            port=args.port,
            interval=args.interval,
            request_timeout=args.request_timeout,
            log_level=args.log_level,
            log_format=args.log_format,
        )
        setup_logging(settings.log_level, settings.log_format)
        records = load_device_records(settings.access_file)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    supervisor = CollectorSupervisor(settings, records)

    try:
        asyncio.run(supervisor.run())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user")


if __name__ == "__main__":
    main()
