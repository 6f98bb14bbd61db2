"""
Main FastAPI application file for nutbridge.
"""
from contextlib import asynccontextmanager
import logging
import time
from typing import Optional

from fastapi import FastAPI, Request

from nutbridge import __version__
from nutbridge.api import messages, states
from nutbridge.config import Settings, get_settings
from nutbridge.nut.adapter import ClientFactory, NUTAdapter
from nutbridge.nut.client import NUTClient
from nutbridge.store.base import StateStore
from nutbridge.store.memory import MemoryStateStore
from nutbridge.utils.logging import setup_logging

logger = logging.getLogger("nutbridge.app")


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[StateStore] = None,
    client_factory: ClientFactory = NUTClient,
) -> FastAPI:
    """Build the HTTP service around one adapter instance."""
    settings = settings or get_settings()
    adapter = NUTAdapter(settings, store or MemoryStateStore(), client_factory=client_factory)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(level=settings.LOG_LEVEL, fmt=settings.LOG_FORMAT)
        logger.info(
            "App settings: ups=%s host=%s port=%s poll_interval=%s login=%s",
            settings.UPS_NAME,
            settings.HOST_IP,
            settings.HOST_PORT,
            settings.poll_interval,
            settings.has_credentials,
        )
        await adapter.ready()
        yield
        logger.info("Shutting down nutbridge...")
        await adapter.unload()

    app = FastAPI(
        title="nutbridge API",
        description="Mirrors a Network UPS Tools (NUT) UPS into a state tree",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.adapter = adapter

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.monotonic()
        path = request.url.path
        method = request.method
        try:
            response = await call_next(request)
            duration_ms = int((time.monotonic() - start) * 1000)
            logger.info("%s %s -> %s in %dms", method, path, response.status_code, duration_ms)
            return response
        except Exception as e:
            duration_ms = int((time.monotonic() - start) * 1000)
            logger.exception("%s %s -> 500 in %dms (error: %s)", method, path, duration_ms, e)
            raise

    app.include_router(states.router, prefix="/api", tags=["States"])
    app.include_router(messages.router, prefix="/api", tags=["Messages"])
    return app
