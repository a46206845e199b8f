"""Health check routes."""

from datetime import datetime
from fastapi import APIRouter

router = APIRouter()


@router.get("/api/health")
async def health_check():
    """Simple health check endpoint"""
    return {"status": "ok", "service": "OptionRecon", "timestamp": datetime.now().isoformat()}
