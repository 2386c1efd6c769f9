#!/usr/bin/env python3
"""
Create upcoming-event and birthday notifications.

Meant to run once a day from cron. Notifications that already exist unread
are not duplicated, so repeated runs are harmless.

Usage:
  python scripts/scan_notifications.py [--days N] [--date YYYY-MM-DD]
"""
from __future__ import annotations

import argparse
import logging
import sys
from contextlib import suppress
from datetime import date

from dotenv import load_dotenv

load_dotenv()

from tourcrm.db import database  # noqa: E402
from tourcrm.services.notification_service import NotificationService  # noqa: E402


logger = logging.getLogger("tourcrm.scripts.scan_notifications")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create upcoming event and birthday notifications")
    parser.add_argument(
        "--days",
        type=int,
        default=7,
        help="Look-ahead window in days (default: 7)",
    )
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Reference date (default: today)",
    )
    return parser.parse_args(argv)


def scan(today: date, days: int) -> int:
    session = database.SessionLocal()
    try:
        created = NotificationService(session).scan_upcoming(today, days=days)
        print(f"Created {created} notification(s) for {today.isoformat()} (+{days} days).")
        logger.info("Notification scan finished", extra={"created": created, "days": days})
        return 0
    finally:
        with suppress(Exception):
            session.close()


def main(argv: list[str] | None = None) -> int:
    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    args = parse_args(argv)
    if args.days < 1:
        print("--days must be positive", file=sys.stderr)
        return 1
    return scan(args.date or date.today(), args.days)


if __name__ == "__main__":  # pragma: no cover - manual execution path
    sys.exit(main())
