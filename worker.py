"""
Dramatiq Background Worker
Delivers account notices queued by the identity service

Run with:
    dramatiq worker -p 2 -t 2

Environment: same as the main app (REDIS_URL, MAIL_RELAY_URL, SENTRY_DSN)
"""
import logging

from identity_engine.core.config import settings

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Initialize Sentry for error tracking (if configured)
if settings.sentry_dsn:
    try:
        import sentry_sdk
        from sentry_sdk.integrations.logging import LoggingIntegration

        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            traces_sample_rate=0.1,
            integrations=[
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)
            ]
        )
        logger.info("✅ Sentry initialized in worker")
    except Exception as e:
        logger.warning(f"⚠️  Failed to initialize Sentry in worker: {e}")
else:
    logger.info("ℹ️  Sentry not configured (SENTRY_DSN not set)")

# Import broker and tasks (this registers them with Dramatiq)
from identity_engine.services.background import broker  # noqa: E402,F401
from identity_engine.services.background.tasks import deliver_account_merged_notice  # noqa: E402,F401

logger.info("🚀 Dramatiq worker initialized")
logger.info(f"   Redis: {(settings.redis_url or 'NOT_SET')[:30]}...")
logger.info("   Registered tasks: deliver_account_merged_notice")
logger.info("   Waiting for jobs...")
