"""FastAPI application serving the DeepDive store API."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .api import API_PREFIX, get_api_router
from .api.middleware import ErrorHandlingMiddleware, request_validation_handler
from .config import Settings, get_settings
from .core.logging import configure_logging
from .store import PersistentStore, create_store

logger = structlog.get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[PersistentStore] = None,
) -> FastAPI:
    """Build the API application.

    A ``store`` passed in is used as is and left open on shutdown; otherwise
    one is created from ``settings`` at startup and closed on shutdown.
    """
    settings = settings or get_settings()
    owns_store = store is None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level, json_output=settings.log_json)
        if app.state.store is None:
            app.state.store = create_store(settings)
        logger.info(
            "Starting DeepDive store API",
            env=settings.environment,
            backend=app.state.store.backend_name,
        )
        await app.state.store.initialize()
        yield
        logger.info("Shutting down DeepDive store API")
        if owns_store:
            await app.state.store.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="Persistent store for trading journals, analysis reports and chat transcripts.",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store

    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(get_api_router(), prefix=API_PREFIX)
    return app
