"""
FastAPI application for the Taskboard backend.

`create_app()` builds a fully wired app around a storage provider; the
module-level `app` is the one uvicorn serves:

    uvicorn taskboard.api.app:app --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskboard.api import notifications, projects, tasks, users
from taskboard.api.errors import install_error_handlers
from taskboard.auth import routes as auth_routes
from taskboard.config import Settings, get_settings
from taskboard.core.events import EventBus
from taskboard.integrations.sentry import init_sentry
from taskboard.services import ProjectService, TaskNotifier, TaskService, UserService
from taskboard.storage import StorageProvider, create_local_storage

logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup app resources."""
    settings: Settings = app.state.settings

    if init_sentry(settings):
        logger.info("Sentry error tracking enabled")

    logger.info("Taskboard API starting in %s mode", settings.environment)

    yield

    await app.state.notifier.shutdown()
    logger.info("Taskboard API shutting down")


# =============================================================================
# App Setup
# =============================================================================


def create_app(
    storage: StorageProvider | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """
    Build the API.

    Args:
        storage: Storage backend (in-memory when omitted)
        settings: Settings override (environment settings when omitted)
    """
    settings = settings or get_settings()
    storage = storage or create_local_storage()

    app = FastAPI(
        title="Taskboard API",
        description="Projects, tasks and the people assigned to them",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Shared state: one bus, one notifier, one handler set per app
    bus = EventBus()
    notifier = TaskNotifier()
    notifier.register(bus)

    app.state.settings = settings
    app.state.storage = storage
    app.state.bus = bus
    app.state.notifier = notifier
    app.state.users = UserService(storage, bus, settings)
    app.state.projects = ProjectService(storage, bus, settings)
    app.state.tasks = TaskService(storage, bus, settings)

    # Must sit inside CORS: 500s carry CORS headers too
    install_error_handlers(app)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(auth_routes.router)
    app.include_router(users.router)
    app.include_router(projects.router)
    app.include_router(tasks.router)
    app.include_router(notifications.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "taskboard-api"}

    return app


app = create_app()
