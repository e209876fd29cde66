"""
Dramatiq Broker Configuration
Redis broker for account notices; stub broker when Redis is not configured
"""
import logging
import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.brokers.stub import StubBroker

from identity_engine.core.config import settings

logger = logging.getLogger(__name__)

if not settings.redis_url:
    logger.warning("⚠️  REDIS_URL not set - background jobs are queued in memory only")
    broker = StubBroker()
else:
    broker = RedisBroker(url=settings.redis_url)
    logger.info(f"✅ Redis broker initialized: {settings.redis_url[:20]}...")

dramatiq.set_broker(broker)
