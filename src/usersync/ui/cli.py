# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import UTC, datetime, timedelta
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any, NoReturn

from dotenv import load_dotenv

from usersync.app import (
    deactivate_platform_user,
    list_sync_runs,
    reconcile_platform_user,
    sync_platform_users_from_file,
    synced_user_count,
)
from usersync.config import ConfigurationError, configure_logging, get_admin_config
from usersync.domain.errors import SyncError
from usersync.domain.reconciliation import DEFAULT_CANCELLATION_REASON
from usersync.domain.records import PlatformUserRecord
from usersync.domain.time_windows import TimeWindow

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from usersync.domain.model import SyncRun

log = logging.getLogger(__name__)

ADMIN_COMMANDS = frozenset({"sync", "reconcile", "deactivate"})


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        raise ValueError(message)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = _ArgumentParser(description="Synchronise platform users")
    parser.add_argument(
        "--actor",
        type=str,
        help="E-mail of the admin running the command (checked against ADMIN_EMAILS)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser("sync", help="Run a bulk sync from a JSON batch file")
    sync.add_argument("file", type=str, help="JSON array of users or {\"users\": [...]}")
    sync.add_argument(
        "--platform",
        type=str,
        help="Platform identifier recorded in the ledger (defaults to config)",
    )

    reconcile = subparsers.add_parser("reconcile", help="Create or update a single user")
    reconcile.add_argument("--external-id", type=str, required=True, help="Platform user id")
    reconcile.add_argument("--email", type=str, required=True, help="E-mail address")
    reconcile.add_argument("--name", type=str, help="Display name")
    reconcile.add_argument("--username", type=str, help="Handle (derived from e-mail if absent)")

    deactivate = subparsers.add_parser(
        "deactivate",
        help="Deactivate a user and cancel their upcoming bookings",
    )
    deactivate.add_argument("external_id", type=str, help="Platform user id")
    deactivate.add_argument(
        "--reason",
        type=str,
        default=DEFAULT_CANCELLATION_REASON,
        help="Cancellation reason stamped on bookings (default: %(default)s)",
    )

    runs = subparsers.add_parser("runs", help="List recorded sync runs")
    runs.add_argument(
        "--start",
        type=str,
        help="ISO-8601 timestamp (UTC) marking the inclusive start of the window",
    )
    runs.add_argument(
        "--end",
        type=str,
        help="ISO-8601 timestamp (UTC) marking the inclusive end of the window",
    )
    runs.add_argument(
        "--lookback-hours",
        type=float,
        help="Relative lookback window in hours (overrides start if larger)",
    )

    subparsers.add_parser("stats", help="Show the number of platform-synced users")

    return parser.parse_args(list(argv))


def _parse_iso_datetime(value: str) -> datetime:
    try:
        normalized = value.strip()
        if normalized.endswith("Z"):
            normalized = normalized[:-1] + "+00:00"
        dt = datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise ValueError(f"Invalid ISO timestamp: {value}") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def _build_time_window(args: argparse.Namespace) -> TimeWindow | None:
    start = _parse_iso_datetime(args.start) if args.start else None
    end = _parse_iso_datetime(args.end) if args.end else None
    lookback = None
    if args.lookback_hours is not None:
        if args.lookback_hours < 0:
            raise ValueError("Lookback hours must be non-negative")
        lookback = timedelta(hours=args.lookback_hours)
    if start and end and start > end:
        raise ValueError("Time window start must be before end")
    if any(value is not None for value in (start, end, lookback)):
        return TimeWindow(start=start, end=end, lookback=lookback)
    return None


def _check_actor(args: argparse.Namespace) -> None:
    if args.command not in ADMIN_COMMANDS:
        return
    admins = get_admin_config()
    if admins.restricted and not admins.is_admin(args.actor):
        raise ConfigurationError(
            f"{args.actor or 'anonymous'} is not allowed to run {args.command!r}; "
            "pass --actor with an address listed in ADMIN_EMAILS"
        )


def _run_summary(run: SyncRun) -> dict[str, Any]:
    return {
        "id": str(run.id),
        "platform": run.platform,
        "runAt": run.run_at.isoformat(),
        "runType": str(run.run_type),
        "status": str(run.status),
        "recordsProcessed": run.records_processed,
        "recordsFailed": run.records_failed,
        "failureDetails": run.failure_details,
    }


def _emit(document: object) -> None:
    print(json.dumps(document, indent=2))


def _dispatch(args: argparse.Namespace, window: TimeWindow | None) -> None:
    if args.command == "sync":
        outcome = sync_platform_users_from_file(
            args.file, platform=args.platform, actor=args.actor
        )
        _emit(
            {
                "runId": str(outcome.run_id),
                "total": outcome.total,
                "successful": len(outcome.successful),
                "failed": [failure.as_detail() for failure in outcome.failed],
            }
        )
    elif args.command == "reconcile":
        result = reconcile_platform_user(
            PlatformUserRecord(
                external_id=args.external_id,
                email=args.email,
                name=args.name,
                username=args.username,
            ),
            actor=args.actor,
        )
        _emit(
            {
                "success": result.success,
                "userId": str(result.user_id),
                "externalId": result.external_id,
                "outcome": str(result.outcome),
                "message": result.message,
            }
        )
    elif args.command == "deactivate":
        deactivation = deactivate_platform_user(
            args.external_id, reason=args.reason, actor=args.actor
        )
        _emit(
            {
                "userId": str(deactivation.user_id),
                "externalId": deactivation.external_id,
                "deactivatedAt": deactivation.deactivated_at.isoformat(),
                "cancelledBookings": deactivation.cancelled_bookings,
            }
        )
    elif args.command == "runs":
        _emit([_run_summary(run) for run in list_sync_runs(window)])
    elif args.command == "stats":
        _emit({"syncedUsers": synced_user_count()})
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        window = _build_time_window(parsed_args) if parsed_args.command == "runs" else None
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)

    try:
        _check_actor(parsed_args)
        _dispatch(parsed_args, window)
    except (SyncError, ConfigurationError) as exc:
        log.debug("Command %s failed", parsed_args.command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
