"""Run the email and push delivery workers outside the API process."""

from __future__ import annotations

import argparse
import signal
import threading

from notifier.application.delivery import build_delivery_scheduler
from notifier.config import get_settings
from notifier.infrastructure.database import SessionLocal, initialize_database
from notifier.utils import configure_logging


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Drain the delivery queues.")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Drain every queue a single time and exit.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    settings = get_settings()
    configure_logging(settings.log_level)
    initialize_database()

    scheduler = build_delivery_scheduler(settings, SessionLocal)
    if args.once:
        try:
            results = scheduler.drain_now()
        finally:
            scheduler.shutdown()
        for name, result in results.items():
            print(
                f"{name}: claimed={result.claimed} sent={result.sent} "
                f"retried={result.retried} failed={result.failed} parked={result.parked}"
            )
        return

    stop = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop.set())
    signal.signal(signal.SIGTERM, lambda *_: stop.set())

    scheduler.start()
    try:
        stop.wait()
    finally:
        scheduler.shutdown()


if __name__ == "__main__":
    main()
