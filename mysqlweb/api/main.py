"""
FastAPI Application Entry Point.

This module creates and configures the FastAPI application instance.
It handles:
1. Application initialization (registry, query service, bookmark store)
2. Router registration
3. Middleware configuration (audit logging, security headers)
4. Exception handlers (every core error becomes a 400 JSON body)
5. Shutdown (closing every open session)

Run with: uvicorn mysqlweb.api.main:app
"""
from contextlib import asynccontextmanager
from datetime import datetime
from functools import partial
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mysqlweb import __version__
from mysqlweb.api.routes import (
    bookmarks_router,
    connection_router,
    database_router,
    health_router,
    query_router,
    static_router,
)
from mysqlweb.core.audit import ERROR_CODE_HEADER, AuditMiddleware, SecurityHeadersMiddleware
from mysqlweb.core.config import Settings, get_settings
from mysqlweb.core.exceptions import MySQLWebException, ValidationError
from mysqlweb.core.logging_config import get_logger, setup_logging
from mysqlweb.database.connection_manager import SessionRegistry, create_mysql_engine
from mysqlweb.database.validator import QueryGuard
from mysqlweb.services.bookmark_service import BookmarkStore
from mysqlweb.services.query_service import QueryService

logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    registry: Optional[SessionRegistry] = None,
    bookmark_store: Optional[BookmarkStore] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Configuration, defaults to get_settings()
        registry: Session registry, defaults to one creating MySQL engines
        bookmark_store: Bookmark store, defaults to settings.bookmark_dir
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_dir)

    if registry is None:
        registry = SessionRegistry(
            engine_factory=partial(
                create_mysql_engine,
                connect_timeout=settings.connect_timeout_seconds,
            ),
            history_limit=settings.query_history_limit,
        )
    if bookmark_store is None:
        bookmark_store = BookmarkStore(settings.bookmark_dir)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.

        - Startup: Log configuration
        - Shutdown: Close every open session
        """
        logger.info(f"Starting {settings.app_name} {__version__} in {settings.app_env} mode")
        logger.info(f"Bookmarks: {settings.bookmark_dir}")
        logger.info(f"Where-clause guard: {settings.enforce_where_clause}")

        yield  # Application runs here

        logger.info(f"Shutting down {settings.app_name}")
        registry.close_all()

    app = FastAPI(
        title="mysqlweb",
        description="""
        Browser-based MySQL administration.

        ## Features

        - **Sessions**: Connect with a URL, reuse the connection id in `X-CONN-ID`
        - **Schema browsing**: Databases, tables, views, routines, indexes
        - **SQL console**: JSON or CSV results, per-session history
        - **Safety**: UPDATE/DELETE require a WHERE clause
        - **Bookmarks**: Saved connection profiles
        """,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = settings
    app.state.registry = registry
    app.state.query_service = QueryService(
        registry,
        QueryGuard(enforce_where=settings.enforce_where_clause),
    )
    app.state.bookmark_store = bookmark_store

    # ============================================================
    # Middleware Configuration (Order matters!)
    # ============================================================

    app.add_middleware(SecurityHeadersMiddleware)

    if settings.enable_audit_logging:
        app.add_middleware(AuditMiddleware)
        logger.info("Audit logging middleware enabled")

    # ============================================================
    # Exception Handlers
    # ============================================================

    @app.exception_handler(MySQLWebException)
    async def mysqlweb_exception_handler(request: Request, exc: MySQLWebException):
        """Handle all application exceptions."""
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(),
            headers={ERROR_CODE_HEADER: exc.error_code},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """Report malformed requests with the same body as other errors."""
        errors = exc.errors()
        field = ".".join(str(p) for p in errors[0]["loc"]) if errors else None
        error = ValidationError(
            errors[0]["msg"] if errors else "Invalid request",
            field=field,
        )
        return JSONResponse(
            status_code=error.status_code,
            content=error.to_dict(),
            headers={ERROR_CODE_HEADER: error.error_code},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Handle uncaught exceptions globally.

        Detailed error information is only included in development mode.
        """
        logger.exception(f"Unhandled exception: {exc}")

        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_error",
                "message": "An unexpected error occurred",
                "details": str(exc) if settings.is_development() else None,
                "timestamp": datetime.utcnow().isoformat()
            }
        )

    # ============================================================
    # Routers
    # ============================================================

    app.include_router(health_router)
    app.include_router(connection_router)
    app.include_router(database_router)
    app.include_router(query_router)
    app.include_router(bookmarks_router)
    app.include_router(static_router)

    return app


app = create_app()
