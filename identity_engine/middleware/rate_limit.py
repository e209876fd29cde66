"""
Rate Limiting Middleware
Throttles authentication callbacks and confirmation lookups per client
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

# Uses client IP address as key for rate limiting
limiter = Limiter(key_func=get_remote_address)
