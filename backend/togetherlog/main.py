"""
TogetherLog Backend - FastAPI Application Factory
==================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, exception handlers and routers;
       lifespan() configures logging on startup and releases the database
       pool and the geocoder's HTTP client on shutdown.
Who:   Started by uvicorn (`uvicorn togetherlog.main:app`).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware:  Request ID → Access Log → GZip → CORS      │
    │                                                          │
    │  Routes:                                                 │
    │    /workers/compute-smart-page   /workers/reverse-geocode│
    │    /workers/compute-colors       /workers/process-photo  │
    │    /api/logs  /api/entries  /api/tags  /health           │
    │                                                          │
    │  Exception Handlers → {"error": ..., "request_id": ...}  │
    │    Validation 400 │ Auth 401 │ NotFound 404 │ else 500   │
    └──────────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from togetherlog import __version__
from togetherlog.config import settings
from togetherlog.database import dispose_engine
from togetherlog.exceptions import (
    AuthenticationError,
    NotFoundError,
    PersistenceError,
    ProviderError,
    TogetherLogError,
    ValidationError,
)
from togetherlog.middleware.logging import RequestLoggingMiddleware
from togetherlog.middleware.request_id import request_id_var, RequestIDMiddleware
from togetherlog.routes import entries, health, logs, workers
from togetherlog.services.geocoding_service import reverse_geocoder

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """Configure the root logger once, at startup. Docker captures stdout."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-request noise; the access log covers it
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("TogetherLog Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving so /health can report; geocoding will be rejected upstream
        logger.error("Configuration error: %s", str(e))

    logger.info(
        "Reverse geocoding via %s (min interval %dms, cache %d)",
        settings.nominatim_url, settings.geocode_min_interval_ms, settings.geocode_cache_size,
    )
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("TogetherLog Backend shutting down...")
    await reverse_geocoder.aclose()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or request_id_var.get("")


def error_response(request: Request, status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "request_id": _request_id(request)},
    )


def format_validation_errors(exc: RequestValidationError) -> str:
    """
    First schema error as one readable sentence.

    Example:
        [{"type": "missing", "loc": ("body", "entry_id"), ...}] → "entry_id is required"
    """
    errors = exc.errors()
    if not errors:
        return "Validation failed"

    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    kind = first.get("type", "")
    message = str(first.get("msg", "Validation failed"))

    if kind == "json_invalid":
        return "Invalid JSON body"
    if kind == "missing":
        return f"{field} is required" if field else "Request body is required"
    # Errors raised by our own validators carry the sentence already
    if message.startswith("Value error, "):
        return message[len("Value error, "):]
    return f"{field}: {message}" if field else message


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the exception hierarchy onto HTTP statuses.

        ValidationError / InvalidCoordinates → 400
        RequestValidationError (schemas)     → 400
        AuthenticationError                  → 401
        NotFoundError                        → 404
        ProviderError / PersistenceError     → 500
        TogetherLogError / Exception         → 500

    5xx bodies never carry internal details; those go to the server log.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", _request_id(request), exc.message)
        return error_response(request, 400, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        message = format_validation_errors(exc)
        logger.warning("[%s] Invalid request: %s", _request_id(request), message)
        return error_response(request, 400, message)

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return error_response(request, 401, exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(request, 404, exc.message)

    @app.exception_handler(ProviderError)
    async def handle_provider_error(request: Request, exc: ProviderError):
        logger.error(
            "[%s] Geocoding provider error: %s | Context: %s",
            _request_id(request), exc.message, exc.context,
        )
        return error_response(request, 500, exc.message)

    @app.exception_handler(PersistenceError)
    async def handle_persistence_error(request: Request, exc: PersistenceError):
        logger.error(
            "[%s] Persistence error: %s | Context: %s",
            _request_id(request), exc.message, exc.context,
        )
        return error_response(request, 500, exc.message)

    @app.exception_handler(TogetherLogError)
    async def handle_application_error(request: Request, exc: TogetherLogError):
        logger.error("[%s] Application error: %s", _request_id(request), exc.message)
        return error_response(request, 500, exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", _request_id(request), str(exc), exc_info=True)
        return error_response(request, 500, "Internal server error")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="TogetherLog API",
        description=(
            "Memory-journal backend: logs, entries, tags and the background workers "
            "that lay out Smart Pages and reverse-geocode entry locations."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Executed in reverse order of addition: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(workers.router)
    app.include_router(logs.router)
    app.include_router(entries.router)
    app.include_router(health.router)

    return app


app = create_app()
