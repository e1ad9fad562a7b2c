"""
RecipeBox Backend - FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes app configuration, middleware registration, route mounting,
       dependency wiring and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn app.main:app).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware:  Request ID → Logging → GZip → CORS    │
    │                                                     │
    │  Routes:      /recipes (CRUD + search)   /health    │
    │                        │                            │
    │               RecipeRepository (app.state)          │
    │                 │                  │                │
    │         SQLRecipeStore      RedisRecipeCache        │
    │                                                     │
    │  Exception Handlers:                                │
    │    ValidationError→400 │ NotFound→404 │ Store→500   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Build store, cache and repository; attach the repository to app.state
    3. Wait for the store (tenacity backoff)
    4. Optionally create tables and load the seed file
    5. Probe the cache (a dead cache only degrades the service)

    Shutdown:
    1. Close the Redis connection pool
    2. Dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.config import settings
from app.database import async_session_factory, create_tables, dispose_engine
from app.exceptions import (
    NotFoundError,
    RecipeBoxError,
    StoreError,
    ValidationError,
)
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.routes import health, recipes
from app.services.bootstrap import seed_store, wait_for_store
from app.services.cache import RedisRecipeCache
from app.services.circuit_breaker import CircuitBreaker
from app.services.recipe_repository import RecipeRepository
from app.services.sql_store import SQLRecipeStore

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),  # Docker captures stdout
        ],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("redis").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Dependency Wiring
# ══════════════════════════════════════════════════════════════════════════

def build_repository() -> RecipeRepository:
    """Construct the repository with the SQL store and the Redis cache from settings."""
    store = SQLRecipeStore(async_session_factory)
    cache = RedisRecipeCache.from_url(
        settings.redis_url,
        socket_timeout=settings.cache_socket_timeout_seconds,
        circuit_breaker=CircuitBreaker(
            failure_threshold=settings.cache_cb_failure_threshold,
            recovery_timeout=settings.cache_cb_recovery_timeout,
            name="cache",
        ),
    )
    return RecipeRepository(
        store=store,
        cache=cache,
        cache_key=settings.recipes_cache_key,
        cache_ttl=settings.recipes_cache_ttl_seconds,
    )


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("RecipeBox Backend %s starting up...", __version__)

    repository = build_repository()
    app.state.recipe_repository = repository

    await wait_for_store(repository.store)

    if settings.create_tables_on_startup:
        await create_tables()
        logger.info("Database tables ensured")

    if settings.seed_file:
        await seed_store(repository, Path(settings.seed_file))

    if await repository.cache.ping():
        logger.info("Cache reachable, list snapshot key '%s'", repository.cache_key)
    else:
        logger.warning("Cache unreachable at startup; list reads will be served from the store")

    if settings.recipes_cache_ttl_seconds:
        logger.info("List snapshot expires after %ds", settings.recipes_cache_ttl_seconds)

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("RecipeBox Backend shutting down...")
    await repository.cache.close()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and response bodies.

    Handler hierarchy:
        ValidationError         → 400 Bad Request
        RequestValidationError  → 400 Bad Request (FastAPI would answer 422)
        NotFoundError           → 404 Not Found
        StoreError              → 500 Internal Server Error (generic message)
        RecipeBoxError (base)   → 500 Internal Server Error
        Exception (fallback)    → 500 Internal Server Error

    5xx responses never expose driver details; those are logged server-side.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        """Unparsable JSON, missing/blank fields, malformed ids."""
        rid = request_id_var.get("")
        errors = [
            {
                "loc": [str(part) for part in err.get("loc", ())],
                "msg": err.get("msg", ""),
                "type": err.get("type", ""),
            }
            for err in exc.errors()
        ]
        message = "Invalid request"
        if errors:
            message = f"Invalid request: {'.'.join(errors[0]['loc'])}: {errors[0]['msg']}"
        logger.warning("[%s] %s", rid, message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": message,
                "details": {"errors": errors},
                "request_id": rid,
            },
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError):
        rid = request_id_var.get("")
        logger.error("[%s] Store error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(RecipeBoxError)
    async def handle_app_error(request: Request, exc: RecipeBoxError):
        rid = request_id_var.get("")
        logger.error("[%s] Application error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: stack trace logged server-side only."""
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again or contact support.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    No I/O happens here; connections are opened by the lifespan. Tests
    build an app and override get_recipe_repository without running it.
    """
    app = FastAPI(
        title="RecipeBox API",
        description=(
            "Recipe management service with a cache-aside recipe list. "
            "List reads are served from Redis; writes go to the store and "
            "invalidate the cached list."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → GZip → CORS
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

    app.include_router(recipes.router)
    app.include_router(health.router)

    return app


app = create_app()
