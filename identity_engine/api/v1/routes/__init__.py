"""
API Routes
All v1 API endpoints
"""
from identity_engine.api.v1.routes.health import router as health_router
from identity_engine.api.v1.routes.auth import router as auth_router
from identity_engine.api.v1.routes.profile import router as profile_router

__all__ = [
    "health_router",
    "auth_router",
    "profile_router",
]
