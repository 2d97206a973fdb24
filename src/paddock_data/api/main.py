"""
FastAPI application for Paddock Data API.

Serves denormalized championship data from the Redis record store with:
- Bounded store round trips per request (pipelined batch reads)
- msgspec JSON serialization
- Request timing header and access log line
- Uniform error envelope (404 not found, 400 invalid input, 503 store down)
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

import msgspec
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from ..core.config import Settings, get_settings
from ..core.types import InvalidIdentifierError
from ..store.base import RecordStore, StoreUnavailableError
from ..store.redis_store import RedisStore
from .errors import APIError, api_error_handler, invalid_identifier_handler, store_unavailable_handler
from .routers import cache, clubs

logger = logging.getLogger(__name__)


class MSGSpecResponse(Response):
    """Custom response class using msgspec for ultra-fast JSON serialization."""

    media_type = "application/json"

    def render(self, content: Any) -> bytes:
        """
        Serialize content using msgspec (4-5x faster than stdlib json).

        Args:
            content: Content to serialize

        Returns:
            Serialized JSON bytes
        """
        if content is None:
            return b""
        return msgspec.json.encode(content)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle.

    Startup:
    - Build the pooled Redis store unless one was injected
    - Check store liveness (logged, never fatal)

    Shutdown:
    - Close the store if this lifespan created it
    """
    logger.info(f"Starting {app.state.settings.app_name}...")
    app.state.started_at = time.monotonic()

    owns_store = app.state.store is None
    if owns_store:
        app.state.store = RedisStore.from_settings(app.state.settings)

    if await app.state.store.ping():
        logger.info("Record store reachable")
    else:
        # Don't fail startup, let requests surface store errors
        logger.error("Record store not reachable at startup")

    yield

    logger.info(f"Shutting down {app.state.settings.app_name}...")
    if owns_store:
        try:
            await app.state.store.close()
        except Exception as e:
            logger.warning(f"Error closing record store: {e}")


def create_app(settings: Settings | None = None, store: RecordStore | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use (defaults to get_settings())
        store: Pre-built record store; when omitted, one is built from settings at startup

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Read-only JSON API over denormalized championship data",
        version=settings.app_version,
        default_response_class=MSGSpecResponse,
        docs_url=settings.api_docs_url,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.started_at = time.monotonic()

    # CORS middleware - allows web clients to access the API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        allow_credentials=settings.cors_allow_credentials,
        expose_headers=settings.cors_expose_headers,
    )

    # GZip compression middleware - compresses responses > 1KB
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    @app.middleware("http")
    async def add_performance_headers(request: Request, call_next):
        """Add timing header and log one line per request."""
        start_time = time.perf_counter()
        response = await call_next(request)
        process_time = (time.perf_counter() - start_time) * 1000  # Convert to ms
        response.headers["X-Process-Time"] = f"{process_time:.2f}ms"
        logger.info(f"{request.method} {request.url.path} - {response.status_code} - {process_time:.2f}ms")
        return response

    # Register custom API error handlers for consistent error responses
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(InvalidIdentifierError, invalid_identifier_handler)
    app.add_exception_handler(StoreUnavailableError, store_unavailable_handler)

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions with consistent format."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        # Never leak exception details in production, regardless of DEBUG flag
        show_detail = settings.debug and settings.environment != "production"
        return JSONResponse(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An internal error occurred",
                    "detail": str(exc) if show_detail else None,
                }
            },
        )

    @app.get(f"{settings.api_prefix}/health", tags=["health"])
    async def health_check(request: Request):
        """Health information about the API and its record store."""
        store_ok = await request.app.state.store.ping()
        return {
            "status": "ok",
            "timestamp": datetime.now(tz=timezone.utc).isoformat(),
            "uptime": int(time.monotonic() - request.app.state.started_at),
            "redis": "connected" if store_ok else "disconnected",
            "version": settings.app_version,
            "environment": settings.environment,
        }

    @app.get("/", tags=["root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "status": "running",
            "docs": settings.api_docs_url,
        }

    # Include routers
    app.include_router(cache.router, prefix=f"{settings.api_prefix}/cache", tags=["cache"])
    app.include_router(clubs.router, prefix=f"{settings.api_prefix}/clubs", tags=["clubs"])

    return app
