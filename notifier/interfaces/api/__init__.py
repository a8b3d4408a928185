"""HTTP and websocket API."""

from .routes import register_routes

__all__ = ["register_routes"]
