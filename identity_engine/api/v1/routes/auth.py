"""
Authentication API
Called by the authentication frontend once the OAuth handshake with a
provider has completed.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request

from identity_engine.core.dependencies import get_identity_service
from identity_engine.core.security import get_optional_caller, verify_api_key
from identity_engine.middleware.rate_limit import limiter
from identity_engine.models.account import Account
from identity_engine.models.schemas import AccountSummary, ConflictResponse, ProviderProfileRequest
from identity_engine.services.identity import IdentityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/authenticate", tags=["authentication"])


@router.post(
    "/{provider}/profile",
    response_model=AccountSummary,
    responses={409: {"model": ConflictResponse}},
)
@limiter.limit("30/minute")
async def authenticate_profile(
    request: Request,
    provider: str,
    body: ProviderProfileRequest,
    merged_user_id: Optional[str] = Query(None, description="Account to keep after a 409 conflict"),
    api_key: str = Depends(verify_api_key),
    caller: Optional[Account] = Depends(get_optional_caller),
    service: IdentityService = Depends(get_identity_service)
):
    """
    Resolve a provider profile to a single account.

    **Conflicts**: when several accounts match and none can be picked
    automatically, responds 409 with the candidate accounts. Resubmit with
    `merged_user_id` set to the account that should survive.
    """
    account = await service.resolve_oauth_profile(provider, body.profile, caller, merged_user_id)
    return AccountSummary.from_account(account)
