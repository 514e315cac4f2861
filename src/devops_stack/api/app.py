"""FastAPI application factory for the DevOps Stack service."""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware

from devops_stack.api.routes import admin, health, resources, status
from devops_stack.config.settings import Settings
from devops_stack.core.errors import register_exception_handlers
from devops_stack.core.logging import get_logger, setup_logging
from devops_stack.core.metrics import MetricsAggregator
from devops_stack.core.middleware import ObservabilityMiddleware, SecurityHeadersMiddleware
from devops_stack.core.store import InMemoryStore

logger = get_logger(__name__)


def endpoint_index(settings: Settings) -> dict:
    return {
        "name": f"{settings.app_name} API",
        "version": settings.app_version,
        "environment": settings.environment,
        "endpoints": {
            "health": "/health",
            "api": {
                "status": "/api/status",
                "version": "/api/version",
                "metrics": "/api/metrics",
                "metrics_period": "/api/metrics/period",
                "users": "/api/users",
                "data": "/api/data",
            },
            "admin": {"stats": "/admin/api/stats", "clear_cache": "/admin/api/cache/clear"},
            "dashboard": "/dashboard" if settings.dashboard_enabled else None,
        },
        "documentation": "/swagger",
    }


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Wire one aggregator and one store into a fresh application."""
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    metrics = MetricsAggregator(
        enable_periodic_recompute=settings.enable_periodic_recompute,
        recompute_interval_seconds=settings.recompute_interval_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        metrics.start()
        logger.info(
            "Server started",
            extra={
                "extra_fields": {
                    "environment": settings.environment,
                    "port": settings.port,
                    "periodic_recompute": metrics.periodic_recompute_enabled,
                }
            },
        )
        try:
            yield
        finally:
            metrics.shutdown()
            logger.info("Server stopped")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        docs_url="/swagger",
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.metrics = metrics
    app.state.store = InMemoryStore()

    # Last added runs first: CORS, security headers, metrics, then gzip.
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(ObservabilityMiddleware, metrics=metrics)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With", "X-Request-ID"],
    )
    register_exception_handlers(app, expose_errors=not settings.is_production)

    app.include_router(health.router)
    app.include_router(status.router)
    app.include_router(resources.router)
    app.include_router(admin.router)

    @app.get("/docs", include_in_schema=False)
    def docs() -> dict:
        return endpoint_index(settings)

    @app.get("/", include_in_schema=False)
    def root() -> dict:
        return endpoint_index(settings)

    if settings.dashboard_enabled:
        import gradio as gr

        from devops_stack.app.dashboard import build_dashboard

        app = gr.mount_gradio_app(app, build_dashboard(metrics, settings), path="/dashboard")

    return app
