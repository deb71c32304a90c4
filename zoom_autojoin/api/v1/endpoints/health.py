"""
Health check endpoint.
"""

from datetime import datetime
from fastapi import APIRouter, Depends
from typing import Dict, Any

from zoom_autojoin.api.v1.schemas.meeting import HealthCheckResponse
from zoom_autojoin.config import settings
from zoom_autojoin.core.dependencies import get_joiner

router = APIRouter()


@router.get("/health", response_model=HealthCheckResponse, tags=["Health"])
async def health_check(joiner=Depends(get_joiner)) -> Dict[str, Any]:
    """
    Health check endpoint.

    Returns:
        Health status with timestamp, version and session count
    """
    return {
        "status": "ok",
        "timestamp": datetime.now(settings.tz_info),
        "version": settings.version,
        "browser_running": joiner.is_running,
        "active_sessions": len(joiner.list_sessions()),
    }
