"""
Request Logging Middleware
One log line per request with status and duration
"""
import logging
import time
from uuid import uuid4
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid4().hex[:12]
        start = time.time()

        response = await call_next(request)

        elapsed_ms = (time.time() - start) * 1000
        logger.info(
            f"[{request_id}] {request.method} {request.url.path} → {response.status_code} ({elapsed_ms:.0f}ms)"
        )
        response.headers["X-Request-ID"] = request_id
        return response
