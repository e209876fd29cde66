"""
Security and Authentication
Handles API key authentication and the optional bearer caller

SECURITY FEATURES:
- API key authentication with timing-safe comparison
- Bearer tokens validated via Supabase auth
- Production-first security (no dev mode bypasses in production)
"""
import logging
import hmac
from typing import Optional
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer, APIKeyHeader
from supabase import Client

from identity_engine.core.config import settings
from identity_engine.core.dependencies import get_identity_service, get_supabase
from identity_engine.models.account import Account
from identity_engine.services.identity import IdentityService

logger = logging.getLogger(__name__)

# Security schemes
optional_bearer_scheme = HTTPBearer(auto_error=False)
api_key_scheme = APIKeyHeader(name="X-API-Key", auto_error=False)


# ============================================================================
# API KEY AUTHENTICATION
# ============================================================================

async def verify_api_key(api_key: str = Depends(api_key_scheme)) -> str:
    """
    Verify API key of the authentication frontend.

    Raises:
        HTTPException: If API key is invalid or missing
    """
    if not api_key:
        raise HTTPException(
            status_code=401,
            detail="Missing API key in X-API-Key header"
        )

    if not settings.identity_api_key:
        if settings.environment == "production":
            logger.error("CRITICAL: IDENTITY_API_KEY not configured in production!")
            raise HTTPException(
                status_code=500,
                detail="Server misconfiguration - contact administrator"
            )
        logger.warning("DEV MODE: IDENTITY_API_KEY not configured - authentication bypassed")
        return api_key

    # hmac.compare_digest runs in constant time regardless of where strings differ
    if not hmac.compare_digest(api_key, settings.identity_api_key):
        logger.warning("Invalid API key attempt from client")
        raise HTTPException(
            status_code=401,
            detail="Invalid API key"
        )

    return api_key


# ============================================================================
# BEARER CALLER (Supabase)
# ============================================================================

async def get_optional_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_bearer_scheme),
    supabase: Client = Depends(get_supabase),
    service: IdentityService = Depends(get_identity_service)
) -> Optional[Account]:
    """
    Account the request is authenticated as, None for anonymous requests.

    The Supabase auth user id is the account id.
    """
    if not credentials:
        return None

    try:
        response = supabase.auth.get_user(credentials.credentials)
    except Exception as e:
        logger.error(f"Authentication failed: {e}")
        raise HTTPException(status_code=401, detail="Authentication failed")

    if not response or not response.user:
        raise HTTPException(status_code=401, detail="Invalid authentication token")

    account = service.accounts.get(response.user.id)
    if account is None:
        logger.warning(f"No account for authenticated user {response.user.id[:8]}...")
        raise HTTPException(status_code=401, detail="Unknown user")

    logger.info(f"✅ Authenticated caller: {account.id[:8]}...")
    return account
