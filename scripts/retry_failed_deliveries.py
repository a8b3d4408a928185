"""Move failed email and push deliveries back to the pending queue."""

from __future__ import annotations

import argparse

from sqlalchemy.exc import SQLAlchemyError

from notifier.application.use_cases.maintenance import retry_failed_tasks
from notifier.config import get_settings
from notifier.infrastructure.database import SessionLocal, initialize_database
from notifier.utils import configure_logging


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Re-queue failed deliveries with a fresh retry budget.",
    )
    parser.add_argument(
        "--max-retries",
        type=int,
        default=get_settings().max_retries,
        help="Skip tasks that used more retries than this (default: MAX_RETRIES)",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    configure_logging(get_settings().log_level)
    initialize_database()

    session = SessionLocal()
    try:
        result = retry_failed_tasks(session, max_retries=args.max_retries)
    except SQLAlchemyError as exc:
        session.rollback()
        raise SystemExit(f"Could not re-queue deliveries: {exc}") from exc
    else:
        print(
            "Deliveries re-queued:\n"
            f"  Email: {result.email_tasks}\n"
            f"  Push: {result.push_tasks}"
        )
    finally:
        session.close()


if __name__ == "__main__":
    main()
