"""FastAPI application entry point.

Album Charts API - album lookup, likes and the most-liked chart.
"""

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from albumcharts.errors import (
    AlbumNotFoundError,
    AlbumStoreError,
    ConflictError,
    ProtocolError,
    StoreError,
)
from albumcharts.routes import api_router
from albumcharts.schemas import ErrorResponse
from albumcharts.settings import get_settings
from albumcharts.stores.redis import RedisAlbumStore, create_pool

logger = logging.getLogger("uvicorn.error")

# (status, code) per store error; first match wins.
STORE_ERROR_STATUS: list[tuple[type[AlbumStoreError], int, str]] = [
    (AlbumNotFoundError, 404, "ALBUM_NOT_FOUND"),
    (ConflictError, 503, "READ_CONFLICT"),
    (StoreError, 503, "STORE_UNAVAILABLE"),
    (ProtocolError, 500, "STORE_PROTOCOL"),
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Creates the Redis connection pool and the album store on startup,
    and releases the pool on shutdown.
    """
    settings = get_settings()
    pool = create_pool(settings)
    store = RedisAlbumStore.from_settings(pool, settings)
    app.state.album_store = store

    # Keep serving if Redis is down at startup; requests will get 503.
    try:
        await store.ping()
        logger.info(f"Redis connected (max {settings.redis_max_connections} connections)")
    except StoreError:
        logger.exception("Redis ping failed")

    yield

    app.state.album_store = None
    await pool.disconnect()


def _store_error_response(exc: AlbumStoreError) -> JSONResponse:
    for exc_type, status_code, code in STORE_ERROR_STATUS:
        if isinstance(exc, exc_type):
            break
    else:
        status_code, code = 500, "INTERNAL_ERROR"

    detail = {"album_id": exc.album_id} if isinstance(exc, AlbumNotFoundError) else None
    if status_code >= 500:
        logger.error(f"{type(exc).__name__}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse.build(code, str(exc), detail),
    )


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Album lookup, likes and the most-liked chart",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    @app.exception_handler(AlbumStoreError)
    async def store_exception_handler(request: Request, exc: AlbumStoreError) -> JSONResponse:
        """Map store errors to structured error responses."""
        return _store_error_response(exc)

    # Exception handler for structured error format
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler returning structured error format."""
        logger.exception("Unhandled error")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse.build(
                "INTERNAL_ERROR",
                str(exc) if settings.debug else "Internal server error",
            ),
        )

    # Health check endpoint
    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, bool]:
        """Health check endpoint."""
        return {"ok": True}

    # Include API routes
    app.include_router(api_router)

    return app


# Application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "albumcharts.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
