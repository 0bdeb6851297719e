"""
Real Estate API - FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance
       with its own Settings and Database stored on `app.state`.
Who:   uvicorn imports `realestate.main:app`; tests call create_app() with
       their own settings and database.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌────────────┐ ┌────────────┐ ┌──────┐ ┌──────┐         │
    │  │ Request ID │→│ Access Log │→│ GZip │→│ CORS │         │
    │  └────────────┘ └────────────┘ └──────┘ └──────┘         │
    │                                                          │
    │  Routes:                                                 │
    │  /api/auth/login   /api/owners   /api/properties         │
    │  /health           / (redirects to /docs)                │
    │                                                          │
    │  Exception Handlers:                                     │
    │  Validation→400 │ Unauthorized→401 │ NotFound→404        │
    │  DuplicateKey→409 │ Concurrency→409 │ Database→500       │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Warn about development-only configuration
    2. Create tables when DB_AUTO_CREATE is set
    Shutdown:
    1. Dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from realestate import __version__
from realestate.config import Settings
from realestate.database import Database
from realestate.exceptions import (
    ConcurrencyConflictError,
    DatabaseError,
    DuplicateKeyError,
    NotFoundError,
    RealEstateError,
    UnauthorizedError,
    ValidationError,
)
from realestate.middleware import RequestIDMiddleware, RequestLoggingMiddleware, request_id_var
from realestate.routes import auth, health, owners, properties

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(settings: Settings) -> None:
    """
    Configure the root logger once per process.

    Format: 2024-01-15T12:00:00 [INFO] realestate.access: GET /api/properties 200 ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-request noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    if settings.log_level != "DEBUG":
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings
    database: Database = app.state.database

    logger.info("=" * 60)
    logger.info("Real Estate API %s starting up...", __version__)

    # The server still starts so /health can report; fix and restart
    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.warning("Configuration warning: %s", str(e))

    if settings.db_auto_create:
        await database.create_all()

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Real Estate API shutting down...")
    await database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    content = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and the shared error body.

    Handler hierarchy:
        ValidationError / OutOfRangeError  → 400 validation_error
        RequestValidationError (pydantic)  → 400 validation_error
        UnauthorizedError                  → 401 unauthorized
        NotFoundError                      → 404 not_found
        DuplicateKeyError                  → 409 duplicate_key
        ConcurrencyConflictError           → 409 concurrency_conflict
        DatabaseError                      → 500 server_error
        RealEstateError (base)             → 500 server_error
        Exception (fallback)               → 500 internal_server_error

    Stack traces and SQL never reach the response body; they are logged
    server-side with the request ID.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = jsonable_encoder(exc.errors())
        logger.warning("[%s] Request validation failed: %d error(s)", request_id_var.get(""), len(errors))
        return _error_response(
            400,
            "validation_error",
            "Request validation failed.",
            {"errors": errors},
        )

    @app.exception_handler(UnauthorizedError)
    async def handle_unauthorized(request: Request, exc: UnauthorizedError):
        return _error_response(
            401,
            "unauthorized",
            exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc.message)

    @app.exception_handler(DuplicateKeyError)
    async def handle_duplicate_key(request: Request, exc: DuplicateKeyError):
        return _error_response(409, "duplicate_key", exc.message, exc.context)

    @app.exception_handler(ConcurrencyConflictError)
    async def handle_concurrency_conflict(request: Request, exc: ConcurrencyConflictError):
        logger.info("[%s] Concurrency conflict: %s", request_id_var.get(""), exc.context)
        return _error_response(409, "concurrency_conflict", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return _error_response(
            500,
            "server_error",
            "An internal error occurred. Please try again later.",
        )

    @app.exception_handler(RealEstateError)
    async def handle_application_error(request: Request, exc: RealEstateError):
        logger.error("[%s] Unhandled application error: %s", request_id_var.get(""), exc.message)
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: configuration; read from the environment when omitted
        database: engine/session owner; built from `settings` when omitted

    Returns:
        Fully configured FastAPI instance ready to receive requests.
    """
    settings = settings or Settings()
    setup_logging(settings)

    app = FastAPI(
        title="Real Estate API",
        description=(
            "Manage properties, owners, images and price history. "
            "Write operations require a bearer token from /api/auth/login."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database or Database(settings)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count", "Location"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(owners.router)
    app.include_router(properties.router)
    app.include_router(health.router)

    @app.get("/", include_in_schema=False)
    async def root() -> RedirectResponse:
        return RedirectResponse(url="/docs")

    return app


# uvicorn realestate.main:app
app = create_app()
