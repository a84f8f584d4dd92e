from datetime import datetime, timezone
from fastapi import APIRouter
from typing import Dict
from app.core.config import settings

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=Dict[str, str])
async def health_check():
    """
    Basic health check endpoint.

    Returns:
        Dict with status, server time and environment name
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.ENVIRONMENT,
    }
