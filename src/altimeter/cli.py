"""
Command line entry point.

Usage:
    altimeter discover [--attempts N] [--json] [--verbose]
    altimeter diagnose
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

import orjson

from .config import ConfigurationError, DiscoveryConfig
from .errors import EnvironmentNotFoundError
from .logging_config import setup_logging
from .process_hunter import ProcessHunter, discover_connection

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="altimeter", description="Locate the local language server")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    # SUPPRESS keeps an absent subcommand flag from resetting a top-level --verbose
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--verbose", "-v", action="store_true", default=argparse.SUPPRESS, help="Enable debug logging")

    discover = subparsers.add_parser("discover", parents=[common], help="Find and verify the language server port")
    discover.add_argument("--attempts", type=int, default=None, help="Process scan attempts (default: ALTIMETER_MAX_ATTEMPTS or 3)")
    discover.add_argument("--json", action="store_true", help="Print the connection as JSON")

    subparsers.add_parser("diagnose", parents=[common], help="Print the platform's diagnostic process listing")
    return parser


async def _discover(hunter: ProcessHunter, attempts: Optional[int], as_json: bool) -> int:
    try:
        connection = await discover_connection(attempts, required=True, hunter=hunter)
    except EnvironmentNotFoundError as exc:
        print(f"Could not discover the language server: {exc.message}", file=sys.stderr)
        for requirement in exc.requirements:
            print(f"  - requires: {requirement}", file=sys.stderr)
        return 1

    if connection is None:
        return 1
    if as_json:
        sys.stdout.write(orjson.dumps(connection.to_dict(), option=orjson.OPT_INDENT_2).decode() + "\n")
    else:
        print(f"Connected on port {connection.connect_port} (extension port {connection.extension_port})")
    return 0


async def _diagnose(hunter: ProcessHunter) -> int:
    output = await hunter.run_diagnostics()
    if not output:
        print("Diagnostic command produced no output", file=sys.stderr)
        return 1
    print(output.rstrip())
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    command = args.command or "discover"

    setup_logging(level="DEBUG" if args.verbose else None, user_friendly=not args.verbose)

    try:
        hunter = ProcessHunter(config=DiscoveryConfig.from_env())
        if command == "diagnose":
            return asyncio.run(_diagnose(hunter))
        attempts = getattr(args, "attempts", None)
        as_json = bool(getattr(args, "json", False))
        return asyncio.run(_discover(hunter, attempts, as_json))
    except (ConfigurationError, ValueError) as exc:
        logger.error("%s", exc)
        return 2


if __name__ == "__main__":
    sys.exit(main())
