"""FastAPI application setup."""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..app import Application
from ..logging_config import get_logger
from .routes import control, snapshots, sql

logger = get_logger(__name__)


def _seed_demo_enabled() -> bool:
    return os.getenv("SNAPINSPECT_SEED_DEMO", "").strip().lower() in ("1", "true", "yes")


# Global application instance
_app: Application | None = None


def get_app() -> Application:
    """Get the global application instance."""
    global _app
    if not _app:
        _app = Application()
    return _app


def create_fastapi_app(application: Application | None = None) -> FastAPI:
    """Create and configure FastAPI application."""
    application = application or get_app()

    @asynccontextmanager
    async def lifespan(fastapi_app: FastAPI):
        """Manage application lifespan."""
        await application.start()
        sim_instance = control.get_sim_instance()
        if sim_instance and _seed_demo_enabled():
            snapshot_id = await sim_instance.seed(application.store)
            logger.info(f"Seeded demo snapshot {snapshot_id}")
        yield
        await application.stop()

    fastapi_app = FastAPI(
        title="Snapinspect API",
        description="Reconciled views over captured runtime snapshots",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Enable CORS
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:5174"],  # Vite default
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    fastapi_app.include_router(sql.create_sql_router(application))
    fastapi_app.include_router(snapshots.create_snapshots_router(application))
    fastapi_app.include_router(control.create_control_router(application))

    return fastapi_app
