"""
FastAPI application factory: the main entrypoint for the book catalog service.

Features:
- GET /books listing with pagination, genre filter and price sorting
- Structured JSON logging
- Prometheus metrics endpoint
- Health / readiness / liveness probes
- Fail-fast startup when the database is missing or unreachable
"""

from __future__ import annotations

import sys
import time
from contextlib import asynccontextmanager
from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from prometheus_client import generate_latest
from pydantic import ValidationError

from book_catalog.config import Settings, get_settings
from book_catalog.context import AppContext
from book_catalog.database import create_engine, ping
from book_catalog.errors import BookQueryError
from book_catalog.logging_config import setup_logging
from book_catalog.metrics import REQUEST_COUNT, REQUEST_LATENCY
from book_catalog.routers import books

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database on startup, dispose of it on shutdown."""
    settings: Settings = app.state.settings
    logger.info("book_catalog_starting", environment=settings.environment)

    owns_engine = getattr(app.state, "context", None) is None
    if owns_engine:
        engine = create_engine(settings)
        try:
            await ping(engine)
        except Exception as e:
            logger.error("database_unreachable", error=str(e))
            await engine.dispose()
            raise
        app.state.context = AppContext(settings=settings, engine=engine)
        logger.info("database_connected")

    yield

    logger.info("book_catalog_shutting_down")
    if owns_engine:
        await app.state.context.engine.dispose()


def create_app(settings: Optional[Settings] = None, context: Optional[AppContext] = None) -> FastAPI:
    """
    Build the application.

    When ``context`` is given the app uses its engine as-is and leaves its
    lifecycle to the caller; otherwise the engine is created at startup.
    """
    if settings is None:
        settings = context.settings if context is not None else get_settings()

    app = FastAPI(
        title="Book Catalog",
        description="Read-only book listing API with pagination, genre filter and price sorting",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    if context is not None:
        app.state.context = context

    # ── CORS ──
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
        expose_headers=[books.QUERY_TIME_HEADER],
    )

    # ── Request metrics middleware ──
    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        start = time.time()
        response = await call_next(request)
        duration = time.time() - start

        endpoint = request.url.path
        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=endpoint,
            status=response.status_code,
        ).inc()
        REQUEST_LATENCY.labels(
            method=request.method,
            endpoint=endpoint,
        ).observe(duration)

        return response

    # ── Errors ──
    @app.exception_handler(BookQueryError)
    async def book_query_error_handler(request: Request, exc: BookQueryError):
        return PlainTextResponse(
            exc.message,
            status_code=exc.status_code,
            headers={books.QUERY_TIME_HEADER: f"{exc.elapsed_ms}ms"},
        )

    # ── Routers ──
    app.include_router(books.router)

    # ── Health / Readiness / Liveness ──
    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "healthy", "service": "book_catalog"}

    @app.get("/ready", tags=["Health"])
    async def readiness(request: Request):
        """Readiness probe: checks DB connectivity."""
        checks = {}
        try:
            await ping(request.app.state.context.engine)
            checks["database"] = "ok"
        except Exception as e:
            logger.warning("readiness_check_failed", check="database", error=str(e))
            checks["database"] = "error"

        all_ok = all(v == "ok" for v in checks.values())
        return JSONResponse(
            status_code=200 if all_ok else 503,
            content={"status": "ready" if all_ok else "not_ready", "checks": checks},
        )

    @app.get("/live", tags=["Health"])
    async def liveness():
        return {"status": "alive"}

    # ── Prometheus metrics endpoint ──
    @app.get("/metrics", tags=["Monitoring"])
    async def metrics():
        return Response(content=generate_latest(), media_type="text/plain")

    return app


def run() -> None:
    """Console entrypoint: load settings, configure logging, serve with uvicorn."""
    try:
        settings = get_settings()
    except ValidationError as e:
        logger.error("invalid_configuration", error=str(e), hint="set DATABASE_URL (postgres DSN)")
        sys.exit(1)

    setup_logging(settings.log_level, settings.log_format)
    app = create_app(settings)

    logger.info("listening", address=f"{settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
