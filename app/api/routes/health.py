"""
Health check and version endpoints
"""
from fastapi import APIRouter
from app.core.config import settings
from app.core.constants import SERVICE_NAME

router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Health check endpoint (no authentication)
    """
    return {"ok": True, "status": "ok", "service": SERVICE_NAME}


@router.get("/version")
async def get_version():
    """
    Get application version and metadata
    """
    return {
        "service": SERVICE_NAME,
        "version": settings.VERSION or "1.0.0",
        "env": settings.APP_ENV,
    }
