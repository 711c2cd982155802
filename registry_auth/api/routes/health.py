"""Health and metrics endpoints."""

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request, Response

from registry_auth.api.dependencies import get_plugin, get_settings_dep
from registry_auth.api.models import HealthResponse
from registry_auth.core.config import Settings
from registry_auth.core.exceptions import ForbiddenError
from registry_auth.infrastructure.metrics import get_metrics, get_metrics_content_type
from registry_auth.plugin import PackageAuthPlugin

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health_check(
    request: Request,
    settings: Settings = Depends(get_settings_dep),
    plugin: PackageAuthPlugin = Depends(get_plugin),
) -> HealthResponse:
    return HealthResponse(
        status="healthy",
        service=settings.app_name,
        version=settings.app_version,
        organization=plugin.organization,
        timestamp=datetime.now(timezone.utc),
        uptime_seconds=round(time.time() - request.app.state.started_at, 3),
    )


@router.get("/metrics", summary="Prometheus metrics", include_in_schema=False)
async def metrics(settings: Settings = Depends(get_settings_dep)) -> Response:
    if not settings.metrics_enabled:
        raise ForbiddenError("Metrics endpoint is disabled")

    return Response(content=get_metrics(), media_type=get_metrics_content_type())
