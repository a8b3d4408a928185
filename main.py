import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from notifier.application.delivery import build_delivery_scheduler
from notifier.config import get_settings
from notifier.infrastructure.database import SessionLocal, engine, initialize_database
from notifier.infrastructure.notifications import notification_manager
from notifier.interfaces.api import register_routes
from notifier.utils import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Prepare the schema and start the delivery workers; stop them on shutdown."""

    settings = get_settings()
    configure_logging(settings.log_level)
    initialize_database()

    scheduler = None
    if settings.scheduler_enabled:
        scheduler = build_delivery_scheduler(settings, SessionLocal)
        scheduler.start()
    else:
        logger.info("Delivery scheduler disabled; run scripts/run_delivery_workers.py instead")

    yield

    await notification_manager.close_all()
    if scheduler is not None:
        scheduler.shutdown()
    engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(title="Notifier", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[get_settings().app_base_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app


app = create_app()
