"""
Health check endpoints.
"""

import time

from fastapi import APIRouter, Request

from stockledger.application.dto.responses import HealthResponse
from stockledger.config import Settings

router = APIRouter(prefix="/api/health", tags=["health"])

# Track startup time
_start_time = time.time()


@router.get("", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """
    Basic health check.

    Returns service status, storage backend and uptime.
    """
    settings: Settings = request.app.state.settings
    return HealthResponse(
        status="healthy",
        app_name=settings.app_name,
        version=settings.app_version,
        storage_backend=settings.storage.backend,
        uptime_seconds=time.time() - _start_time,
    )
