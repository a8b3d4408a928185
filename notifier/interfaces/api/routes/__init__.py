"""API route registration."""

from fastapi import FastAPI

from .devices import router as devices_router
from .notifications import router as notifications_router
from .preferences import router as preferences_router


def register_routes(app: FastAPI) -> None:
    """Attach every API router to ``app``."""

    app.include_router(notifications_router)
    app.include_router(preferences_router)
    app.include_router(devices_router)


__all__ = ["register_routes"]
