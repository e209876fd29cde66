"""
Identity Resolution & Account Merge Service
===========================================
FastAPI application resolving OAuth provider profiles and confirmed email
addresses to one canonical account, merging duplicates on the way.

Architecture:
- identity_engine/core/: Configuration, dependencies, security, errors
- identity_engine/middleware/: Error handling, logging, CORS, rate limiting
- identity_engine/models/: Account model, reference table, API schemas
- identity_engine/services/: Document store, identity resolution, merging, notices
- identity_engine/api/v1/routes/: API endpoints
"""
import sys
import logging
import traceback
from contextlib import asynccontextmanager
from fastapi import FastAPI

# Startup error handling
try:
    from identity_engine.core.config import settings
    from identity_engine.core.dependencies import initialize_clients, shutdown_clients

    from identity_engine.middleware.error_handler import register_exception_handlers
    from identity_engine.middleware.logging import RequestLoggingMiddleware
    from identity_engine.middleware.cors import get_cors_middleware

    from identity_engine.api.v1.routes import (
        health_router,
        auth_router,
        profile_router,
    )
except Exception as e:
    print(f"🚨 FATAL STARTUP ERROR: {e}", file=sys.stderr)
    print(f"Traceback:\n{traceback.format_exc()}", file=sys.stderr)
    sys.exit(1)

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.environment == "production" else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# ============================================================================
# SENTRY ERROR TRACKING
# ============================================================================

if settings.sentry_dsn:
    try:
        import sentry_sdk
        from sentry_sdk.integrations.fastapi import FastApiIntegration
        from sentry_sdk.integrations.logging import LoggingIntegration

        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            traces_sample_rate=0.1,
            integrations=[
                FastApiIntegration(),
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)
            ]
        )
        logger.info("✅ Sentry error tracking initialized")
    except Exception as e:
        logger.warning(f"⚠️  Failed to initialize Sentry: {e}")
else:
    logger.info("ℹ️  Sentry not configured (SENTRY_DSN not set)")


# ============================================================================
# LIFECYCLE MANAGEMENT
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown."""
    logger.info("=" * 80)
    logger.info("Starting Identity Resolution & Account Merge Service")
    logger.info("=" * 80)
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Port: {settings.port}")
    logger.info(f"Debug: {settings.debug}")
    logger.info(f"Plans: {' < '.join(settings.plans)} (default: {settings.default_plan})")

    await initialize_clients()

    if settings.mail_relay_url:
        logger.info("✅ Merge notices: delivered through mail relay")
    else:
        logger.info("⚠️ Merge notices: MAIL_RELAY_URL not set, notices are only logged")

    logger.info("=" * 80)
    logger.info("✅ Application started successfully")
    logger.info("=" * 80)

    yield

    logger.info("Shutting down application...")
    await shutdown_clients()
    logger.info("✅ Application shutdown complete")


# ============================================================================
# APP INITIALIZATION
# ============================================================================

app = FastAPI(
    title="Identity Resolution & Account Merge API",
    description="Resolves OAuth profiles and confirmed emails to one canonical account",
    version="1.0.0",
    docs_url="/docs" if settings.debug else None,  # Disable docs in production
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan
)

# ============================================================================
# RATE LIMITING
# ============================================================================

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from identity_engine.middleware.rate_limit import limiter

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
logger.info("✅ Rate limiting enabled")

# ============================================================================
# MIDDLEWARE
# ============================================================================

cors_middleware, cors_config = get_cors_middleware()
app.add_middleware(cors_middleware, **cors_config)

# Request logging
app.add_middleware(RequestLoggingMiddleware)

# Identity errors → JSON
register_exception_handlers(app)

# ============================================================================
# ROUTES
# ============================================================================

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(profile_router)

# ============================================================================
# MAIN
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.debug,
        log_level="info"
    )
