"""Dimension search service main application."""

import time
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from .api.routes import create_router
from .runtime.metrics import SERVICE_NAME, create_metrics_collector
from .search.search_manager import SearchManager, create_search_manager
from libs.common.config import SearchConfig
from libs.common.logging import configure_logging
from libs.common.tracing import configure_tracing

logger = structlog.get_logger("search_service")

VERSION = "0.1.0"


def create_app(
    config: Optional[SearchConfig] = None,
    search_manager: Optional[SearchManager] = None
) -> FastAPI:
    """Create the FastAPI application.

    Parameters
    - config: service configuration; read from the environment when omitted
    - search_manager: prebuilt manager (tests); built from ``config`` when omitted
    """
    config = config or SearchConfig()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        # Startup
        configure_logging(SERVICE_NAME, config.log_level, config.log_format)
        logger.info("Starting dimension search service", config=config.safe_dict())

        manager = search_manager or create_search_manager(config, app.state.metrics_collector)
        app.state.search_manager = manager
        await manager.initialize()

        logger.info("Dimension search service started successfully", port=config.search_port)

        yield

        # Shutdown
        logger.info("Shutting down dimension search service")
        await manager.cleanup()
        logger.info("Dimension search service shutdown complete")

    app = FastAPI(
        title="Dimension Search API",
        description="Search the options of a dataset version dimension",
        version=VERSION,
        lifespan=lifespan
    )
    app.state.config = config
    app.state.metrics_collector = create_metrics_collector()

    # Instrumentation adds middleware, so it must happen before startup.
    if config.tracing_enabled:
        tracer = configure_tracing(
            config.otel_service_name,
            config.otel_exporter_otlp_endpoint,
            environment=config.env,
            app=app,
        )
        if tracer:
            logger.info("OpenTelemetry tracing enabled", exporter=config.otel_exporter_otlp_endpoint)
        else:
            logger.warning("Tracing initialization failed")
    else:
        tracer = None
        logger.info("OpenTelemetry tracing disabled via configuration")
    app.state.tracer = tracer

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(create_router(config))

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        """Add processing time header to responses."""
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        return response

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        """Collect metrics for HTTP requests."""
        start_time = time.time()

        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception as e:
            logger.error("Unhandled error", path=request.url.path, error=str(e))
            status_code = 500
            response = JSONResponse(status_code=500, content={"detail": "internal server error"})

        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)
        app.state.metrics_collector.record_http_request(
            method=request.method,
            endpoint=endpoint,
            status=status_code,
            duration=time.time() - start_time
        )

        return response

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        checks = await app.state.search_manager.health_check()
        if all(checks.values()):
            return {"status": "healthy", "service": SERVICE_NAME, "checks": checks}
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "service": SERVICE_NAME, "checks": checks}
        )

    @app.get("/metrics")
    async def metrics():
        """Prometheus metrics endpoint."""
        return Response(content=app.state.metrics_collector.get_metrics(), media_type="text/plain")

    @app.get("/")
    async def root():
        """Root endpoint."""
        endpoints = {
            "health": "/health",
            "metrics": "/metrics",
            "search": "/search/datasets/{id}/editions/{edition}/versions/{version}/dimensions/{name}",
        }
        if config.enable_private_endpoints:
            endpoints["index"] = "/search/instances/{instance_id}/dimensions/{dimension}"
        return {
            "service": SERVICE_NAME,
            "version": VERSION,
            "status": "running",
            "endpoints": endpoints
        }

    return app


app = create_app()


def run() -> None:
    """Run the service with uvicorn."""
    config: SearchConfig = app.state.config
    uvicorn.run(
        app,
        host=config.search_host,
        port=config.search_port,
        timeout_graceful_shutdown=config.graceful_shutdown_timeout,
        log_level=config.log_level.lower()
    )


if __name__ == "__main__":
    run()
