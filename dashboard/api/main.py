"""FastAPI application for the dashboard access-control service."""

from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dashboard import __version__
from dashboard.api.middleware.request_context import RequestContextMiddleware
from dashboard.api.routers import audit, health, roles, users
from dashboard.common.logger import get_logger, setup_logger
from dashboard.core.config import Settings, get_settings
from dashboard.core.exceptions import DashboardError
from dashboard.core.rbac import UserDirectory
from dashboard.db.session import Database
from dashboard.services.audit import AuditRecorder

logger = get_logger(__name__)


async def dashboard_exception_handler(request: Request, exc: DashboardError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, **exc.payload()},
    )


def _attach_database(app: FastAPI, database: Database) -> None:
    app.state.database = database
    app.state.directory = UserDirectory(database)
    app.state.audit_recorder = AuditRecorder(database)


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to use (defaults to environment settings)
        database: Pre-built database client; when omitted one is created
            from ``settings`` at start-up and disposed at shutdown
    """
    settings = settings or get_settings()

    setup_logger(
        log_dir=settings.log_dir,
        level=settings.log_level,
        file_logging=settings.log_to_file,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_database = database is None
        if owns_database:
            _attach_database(app, Database.from_settings(settings))
        logger.info("Starting %s %s", settings.app_name, __version__)

        yield

        logger.info("Shutting down %s", settings.app_name)
        if owns_database:
            app.state.database.dispose()

    app = FastAPI(
        title=settings.app_name,
        description="Role-based access control and audit trail for the municipal dashboard",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.settings = settings

    # Available before start-up too (e.g. TestClient without a context manager)
    if database is not None:
        _attach_database(app, database)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)

    app.add_exception_handler(DashboardError, dashboard_exception_handler)

    app.include_router(health.router)
    app.include_router(users.router, prefix="/api")
    app.include_router(roles.router, prefix="/api")
    app.include_router(audit.router, prefix="/api")

    @app.get("/")
    def root():
        return {
            "name": settings.app_name,
            "version": __version__,
            "docs": "/docs" if settings.debug else None,
        }

    return app


app = create_app()


def serve() -> None:
    """Run the API with uvicorn using the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "dashboard.api.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=settings.debug,
    )


if __name__ == "__main__":
    serve()
