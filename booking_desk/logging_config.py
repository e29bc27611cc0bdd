"""Logging setup and HTTP audit middleware."""

from __future__ import annotations

import logging
from time import perf_counter

from fastapi import FastAPI, Request

from booking_desk.config import Settings

logger = logging.getLogger("booking_desk.http")


def configure_logging(settings: Settings) -> None:
    """Attach a console handler to the ``booking_desk`` logger tree once."""
    app_logger = logging.getLogger("booking_desk")
    app_logger.setLevel(settings.log_level.upper())
    if app_logger.handlers:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(settings.log_format, datefmt="%Y-%m-%d %H:%M:%S"))
    app_logger.addHandler(handler)


def add_audit_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def audit_requests(request: Request, call_next):
        start = perf_counter()
        response = await call_next(request)
        duration_ms = (perf_counter() - start) * 1000
        logger.info(
            "%s %s | status=%s | duration=%.2fms",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        return response
