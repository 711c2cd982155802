import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from registry_auth.api.exception_handlers import (
    base_api_exception_handler,
    general_exception_handler,
    validation_exception_handler,
)
from registry_auth.api.routes import auth, health
from registry_auth.core.config import Settings, get_settings
from registry_auth.core.exceptions import BaseAPIException
from registry_auth.infrastructure.logging import get_logger, setup_logging
from registry_auth.infrastructure.middleware.correlation import CorrelationIDMiddleware
from registry_auth.infrastructure.middleware.logging import LoggingMiddleware
from registry_auth.infrastructure.middleware.metrics import MetricsMiddleware
from registry_auth.plugin import PackageAuthPlugin

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    setup_logging(settings)

    owns_plugin = getattr(app.state, "plugin", None) is None
    if owns_plugin:
        # Missing organization/token fails startup here
        app.state.plugin = PackageAuthPlugin(settings.plugin_config())

    logger.info(
        "application_startup",
        app_name=settings.app_name,
        environment=settings.environment,
        organization=app.state.plugin.organization,
    )

    yield

    if owns_plugin:
        await app.state.plugin.aclose()
        app.state.plugin = None

    logger.info("application_shutdown", app_name=settings.app_name)


def create_app(
    settings: Optional[Settings] = None,
    plugin: Optional[PackageAuthPlugin] = None,
) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title="registry-auth",
        description="Package registry authentication backed by organization teams and repositories",
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.plugin = plugin
    app.state.started_at = time.time()

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(CorrelationIDMiddleware)

    app.add_exception_handler(BaseAPIException, base_api_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    @app.get("/", response_model=Dict[str, Any], include_in_schema=False)
    async def root():
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "status": "running",
            "environment": settings.environment,
            "endpoints": {
                "api": settings.api_prefix,
                "docs": "/docs",
                "health": "/health",
                "metrics": "/metrics",
            },
        }

    app.include_router(health.router)
    app.include_router(auth.router, prefix=settings.api_prefix)

    return app
