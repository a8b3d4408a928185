"""Delete old notifications and finished delivery tasks."""

from __future__ import annotations

import argparse

from sqlalchemy.exc import SQLAlchemyError

from notifier.application.use_cases.maintenance import purge_old_records
from notifier.config import get_settings
from notifier.infrastructure.database import SessionLocal, initialize_database
from notifier.utils import configure_logging


def parse_args() -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Purge notifications past their retention.")
    parser.add_argument(
        "--read-days",
        type=int,
        default=settings.purge_read_after_days,
        help=f"Age in days after which read notifications go (default: {settings.purge_read_after_days})",
    )
    parser.add_argument(
        "--unread-days",
        type=int,
        default=settings.purge_unread_after_days,
        help=f"Age in days after which unread notifications go (default: {settings.purge_unread_after_days})",
    )
    parser.add_argument(
        "--terminal-days",
        type=int,
        default=settings.purge_terminal_after_days,
        help=f"Age in days after which sent or failed tasks go (default: {settings.purge_terminal_after_days})",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    configure_logging(get_settings().log_level)
    initialize_database()

    session = SessionLocal()
    try:
        result = purge_old_records(
            session,
            read_after_days=args.read_days,
            unread_after_days=args.unread_days,
            terminal_after_days=args.terminal_days,
        )
    except SQLAlchemyError as exc:
        session.rollback()
        raise SystemExit(f"Purge failed: {exc}") from exc
    else:
        print(
            "Purge finished:\n"
            f"  Notifications: {result.notifications}\n"
            f"  Email tasks: {result.email_tasks}\n"
            f"  Push tasks: {result.push_tasks}"
        )
    finally:
        session.close()


if __name__ == "__main__":
    main()
