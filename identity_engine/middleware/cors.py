"""
CORS Configuration
Cross-Origin Resource Sharing settings for the authentication frontend

SECURITY:
- Production: Only HTTPS origins
- Development: Localhost + HTTPS
- NO "null" origin (prevents file:// attacks)
"""
from fastapi.middleware.cors import CORSMiddleware as FastAPICORSMiddleware
from identity_engine.core.config import settings


def get_cors_middleware():
    """Returns CORS middleware class and its environment-based options."""
    if settings.environment == "production":
        allowed_origins = [
            "https://vpdb.io",
        ]
    else:
        allowed_origins = [
            "https://vpdb.io",
            "http://localhost:3000",
            "http://localhost:4000",
            "http://localhost:8080",
        ]

    return FastAPICORSMiddleware, {
        "allow_origins": allowed_origins,
        "allow_credentials": True,
        "allow_methods": ["GET", "POST", "OPTIONS"],
        "allow_headers": [
            "Content-Type",
            "Authorization",
            "X-API-Key",
            "X-Request-ID",
        ],
        "expose_headers": ["X-Request-ID"],
        "max_age": 600,  # Cache preflight requests for 10 minutes
    }
