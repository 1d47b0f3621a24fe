"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import customers, health, outlets, queue
from .config import Settings, settings
from .persistence import build_repository
from .persistence.base import QueueRepository
from .services.queue.service import QueueService

logger = logging.getLogger(__name__)


def create_app(
    config: Settings | None = None,
    repository: Optional[QueueRepository] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    """Build the application.

    When ``repository`` is given the caller owns it; otherwise one is acquired
    from ``config`` at startup and released at shutdown.
    """
    config = config or settings
    logging.basicConfig(level=config.log_level.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if repository is not None:
            yield
            return
        owned = build_repository(config)
        app.state.queue_service = QueueService(owned, config, clock)
        try:
            yield
        finally:
            owned.close()
            logger.info("Queue repository released")

    app = FastAPI(title=config.app_name, root_path="", lifespan=lifespan)
    if repository is not None:
        app.state.queue_service = QueueService(repository, config, clock)

    if config.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(config.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/")
    def root():
        return {
            "service": config.app_name,
            "status": "running",
            "api_prefix": config.api_prefix,
            "health": f"{config.api_prefix}/health",
            "docs": "/docs",
        }

    app.include_router(health.router, prefix=config.api_prefix)
    app.include_router(outlets.router, prefix=config.api_prefix)
    app.include_router(customers.router, prefix=config.api_prefix)
    app.include_router(queue.router, prefix=config.api_prefix)
    return app


app = create_app()
