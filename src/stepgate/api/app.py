"""FastAPI application with lifespan and router mounting."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from stepgate import __version__
from stepgate.api.routes import admin, health
from stepgate.core.config import AppSettings
from stepgate.core.logging import configure_logging
from stepgate.persistence import create_persistence


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialize and tear down application resources."""
    settings = AppSettings()
    configure_logging(settings.log_level)
    object_store, locker = create_persistence(settings)
    app.state.settings = settings
    app.state.object_store = object_store
    app.state.locker = locker
    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Stepgate Release Deployer",
        version=__version__,
        lifespan=lifespan,
    )
    app.include_router(health.router)
    app.include_router(admin.router, prefix="/admin")
    return app
