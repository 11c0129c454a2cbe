"""Utility script to run a single reconciliation tick against the database."""

from __future__ import annotations

import argparse
import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from tripsync.config import get_settings
from tripsync.infrastructure.database import initialize_database
from tripsync.main import build_container
from tripsync.utils import ensure_app_timezone, now_in_app_timezone


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for the tick."""

    parser = argparse.ArgumentParser(
        description="Dispatch due scheduled notifications and close expired polls once.",
    )
    parser.add_argument(
        "--at",
        type=datetime.fromisoformat,
        default=None,
        help="ISO 8601 timestamp to use as the current time (default: now)",
    )
    return parser.parse_args()


def main() -> None:
    """Run one tick and print what it did."""

    args = parse_args()
    logging.basicConfig(level=logging.INFO)

    settings = get_settings()
    container = build_container(settings)
    now = ensure_app_timezone(args.at) if args.at else now_in_app_timezone()
    try:
        initialize_database(container.engine)
        report = container.tick.run(now)
    except SQLAlchemyError as exc:
        raise SystemExit(f"Database error while running the tick: {exc}") from exc
    finally:
        container.engine.dispose()

    if report is None:
        raise SystemExit("Another tick is already running.")
    print(
        "Reconciliation tick finished:\n"
        f"  At: {report.now.isoformat()}\n"
        f"  Notifications dispatched: {report.dispatched}\n"
        f"  Polls closed: {len(report.closure.closed)}\n"
        f"  Polls skipped: {len(report.closure.skipped)}\n"
        f"  Polls failed: {len(report.closure.failed)}"
    )


if __name__ == "__main__":
    main()
