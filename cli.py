#!/usr/bin/env python3
"""
CLI runner for registration date searches.

Provides command-line interface for:
- Searching a date range for a vehicle registration record
- Checking a single registration date

Usage:
    python cli.py search ABC123                     # 2000-01-01 to today, 6 threads
    python cli.py search ABC123 --start 2015-01-01 --end 2015-12-31 --threads 10
    python cli.py check ABC123 2015-06-01           # Single lookup
"""

import argparse
import logging
import sys
import time
from datetime import date
from typing import Optional

import structlog

from config import settings

# Configure logging before imports
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    )
)

logger = structlog.get_logger()

from fetcher.registration_client import QueryClient
from search.classifier import ClassificationKind, ResponseClassifier, body_preview
from search.coordinator import SearchCoordinator
from search.exceptions import ConfigurationError
from search.inputs import normalize_identifier, parse_date
from search.state import RunResult

# Seconds between progress lines while a search runs
POLL_INTERVAL = 2.0

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_ABORTED = 130


def thread_count(value: str) -> int:
    """argparse type for --threads (1..MAX_THREADS)."""
    try:
        threads = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid thread count: {value}")

    if not 1 <= threads <= settings.MAX_THREADS:
        raise argparse.ArgumentTypeError(
            f"threads must be between 1 and {settings.MAX_THREADS}"
        )
    return threads


def cmd_search(
    identifier: str,
    start: str,
    end: Optional[str],
    threads: int
) -> int:
    """Run a search and report progress until it finishes."""
    issues = settings.validate()
    if issues:
        for issue in issues:
            logger.warning(f"Configuration issue: {issue}")

    try:
        identifier = normalize_identifier(identifier)
        start_date = parse_date(start, "start")
        end_date = parse_date(end, "end") if end else date.today()
    except ConfigurationError as e:
        logger.error("Invalid search parameters", error=str(e))
        return EXIT_CONFIG_ERROR

    coordinator = SearchCoordinator()

    try:
        handle = coordinator.start(identifier, start_date, end_date, threads)
    except ConfigurationError as e:
        logger.error("Search not started", error=str(e))
        return EXIT_CONFIG_ERROR

    try:
        while handle.wait(timeout=POLL_INTERVAL) is None:
            snapshot = handle.snapshot()
            print(f"  {snapshot.status_text} {snapshot.progress:.1%}")
    except KeyboardInterrupt:
        coordinator.request_stop()
        print("\nStopping... waiting for in-flight requests to finish")
        handle.wait()

    snapshot = handle.snapshot()

    print("\n=== Search Results ===")
    print(f"Vehicle: {snapshot.identifier}")
    print(f"Date range: {snapshot.date_range}")
    print(f"Checked: {snapshot.checked_count}/{snapshot.total_count}")
    print(f"Found: {snapshot.found_count}")
    print(f"Status: {snapshot.status_text}")

    if snapshot.result == RunResult.FOUND:
        print(f"Saved responses are in: {coordinator.store.results_dir}")

    if snapshot.result == RunResult.ABORTED:
        return EXIT_ABORTED
    return EXIT_OK


def cmd_check(identifier: str, day: str) -> int:
    """Look up one registration date and print the classification."""
    try:
        identifier = normalize_identifier(identifier)
        lookup_date = parse_date(day, "lookup")
    except ConfigurationError as e:
        logger.error("Invalid lookup parameters", error=str(e))
        return EXIT_CONFIG_ERROR

    client = QueryClient()
    outcome = client.query(identifier, lookup_date)
    classification = ResponseClassifier().classify(outcome)

    print(f"\n=== Lookup {identifier} on {lookup_date.isoformat()} ===")
    print(f"Result: {classification.kind.value}")

    if classification.kind == ClassificationKind.TRANSPORT_ERROR:
        print(f"Error: {outcome.error}")
    else:
        print(f"HTTP status: {outcome.status_code}")
        print(f"Preview: {body_preview(outcome.body)}")

    return EXIT_OK


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description=f"{settings.APP_NAME} CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  search    Search a date range for a registration record
  check     Look up a single registration date

Examples:
  python cli.py search ABC123
  python cli.py search ABC123 --start 2015-01-01 --end 2015-12-31 --threads 10
  python cli.py check ABC123 2015-06-01
        """
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    search_parser = subparsers.add_parser("search", help="Search a date range")
    search_parser.add_argument("identifier", help="Vehicle registration number")
    search_parser.add_argument(
        "--start",
        default=settings.DEFAULT_START_DATE,
        help="Starting date (YYYY-MM-DD)"
    )
    search_parser.add_argument(
        "--end",
        default=None,
        help="Ending date (YYYY-MM-DD, default: today)"
    )
    search_parser.add_argument(
        "--threads",
        type=thread_count,
        default=settings.DEFAULT_THREADS,
        help=f"Number of threads (1-{settings.MAX_THREADS})"
    )

    check_parser = subparsers.add_parser("check", help="Look up a single date")
    check_parser.add_argument("identifier", help="Vehicle registration number")
    check_parser.add_argument("date", help="Registration date (YYYY-MM-DD)")

    args = parser.parse_args()

    if args.command == "search":
        sys.exit(cmd_search(args.identifier, args.start, args.end, args.threads))
    elif args.command == "check":
        sys.exit(cmd_check(args.identifier, args.date))


if __name__ == "__main__":
    main()
