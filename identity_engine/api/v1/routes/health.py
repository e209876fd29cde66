"""
Health Check
"""
from fastapi import APIRouter

from identity_engine.core.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    return {"status": "ok", "environment": settings.environment}
