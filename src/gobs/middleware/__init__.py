"""Middleware registration."""

from fastapi import FastAPI

from gobs.config import Settings
from gobs.middleware.cors import setup_cors
from gobs.middleware.error_handler import setup_error_handlers
from gobs.middleware.logging import setup_logging
from gobs.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware in the correct order.

    Starlette runs middleware in reverse-add order, so CORS is added last to
    wrap error responses from everything inside it.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
