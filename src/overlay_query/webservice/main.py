"""FastAPI entrypoint for the Overlay Query webservice."""

import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from overlay_query import __version__
from overlay_query.commons.errors import NotFound, OverlayQueryError
from overlay_query.commons.overlay_logger import OverlayLogger
from overlay_query.configs import Settings, load_settings
from overlay_query.query.statistics import utc_now
from overlay_query.store.record_store import RecordStore
from overlay_query.webservice.routers.admin import router as admin_router
from overlay_query.webservice.routers.mainpage import router as mainpage_router
from overlay_query.webservice.routers.user import router as user_router

SERVICE_NAME = "Fractionalize BSV Overlay API"


def _error_response(error: OverlayQueryError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def _install_error_handlers(app: FastAPI) -> None:
    logger = OverlayLogger()

    @app.exception_handler(OverlayQueryError)
    async def overlay_error_handler(_: Request, exc: OverlayQueryError) -> JSONResponse:
        return _error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return _error_response(NotFound())
        return JSONResponse(
            status_code=exc.status_code,
            content={"status": "error", "message": str(exc.detail), "code": f"HTTP_{exc.status_code}"},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"status": "error", "message": "Invalid request", "code": "INVALID_REQUEST"},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return _error_response(OverlayQueryError())


def _install_request_logging(app: FastAPI) -> None:
    logger = OverlayLogger()

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(f"{request.method} {request.url.path} -> {status_code} ({elapsed_ms:.1f} ms)")


def create_app(
    settings: Settings | None = None,
    store: RecordStore | None = None,
    clock: Callable[[], datetime] | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application.

    Parameters
    ----------
    settings : Settings, optional
        Service settings. Loaded from the environment when omitted, which
        fails with ``ConfigurationError`` if required values are missing.
    store : RecordStore, optional
        Record store to serve from. Built from ``settings`` when omitted.
    clock : callable, optional
        Returns the current aware UTC datetime. Defaults to the system clock.
    """
    if settings is None:
        settings = load_settings()
    if store is None:
        store = RecordStore.from_settings(settings)
    logger = OverlayLogger()
    OverlayLogger.set_level(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Environment: {settings.environment}")
        logger.info(f"Network: {settings.network}")
        if not store.ping():
            logger.error(f"Could not reach record store {settings.mongo_db_name}.{settings.mongo_collection}")
            store.close()
            raise OverlayQueryError("Record store is unreachable at startup")
        logger.info(f"Connected to record store {settings.mongo_db_name}.{settings.mongo_collection}")
        yield
        logger.info("Shutting down gracefully...")
        store.close()

    app = FastAPI(
        title=SERVICE_NAME,
        version=__version__,
        description=(
            "Read-only REST API for overlay records. "
            "Provides dashboard, record query, and admin statistics endpoints."
        ),
        openapi_url="/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.record_store = store
    app.state.clock = clock or utc_now

    _install_request_logging(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )
    _install_error_handlers(app)

    @app.get("/", tags=["root"])
    def root() -> dict:
        return {
            "status": "success",
            "message": SERVICE_NAME,
            "version": __version__,
            "endpoints": {
                "mainpage": "/api/mainpage",
                "user": "/api/user/records",
                "admin": "/api/admin/stats",
                "health": "/api/admin/health",
            },
        }

    app.include_router(mainpage_router, prefix="/api")
    app.include_router(user_router, prefix="/api")
    app.include_router(admin_router, prefix="/api")

    return app


def main() -> None:
    """Load settings and serve the API with uvicorn."""
    settings = load_settings()
    uvicorn.run(create_app(settings), host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
