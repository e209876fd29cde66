"""
Profile API
Email confirmation
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request

from identity_engine.core.dependencies import get_identity_service
from identity_engine.middleware.rate_limit import limiter
from identity_engine.models.schemas import AccountSummary, ConfirmationResponse, ConflictResponse
from identity_engine.services.identity import IdentityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/profile", tags=["profile"])


@router.get(
    "/confirm/{token}",
    response_model=ConfirmationResponse,
    responses={409: {"model": ConflictResponse}},
)
@limiter.limit("10/minute")
async def confirm_email(
    request: Request,
    token: str,
    merged_user_id: Optional[str] = Query(None, description="Account to keep after a 409 conflict"),
    service: IdentityService = Depends(get_identity_service)
):
    result = await service.confirm_email(token, merged_user_id)
    return ConfirmationResponse(
        message=result.message,
        previous_code=result.previous_code.value,
        deleted_users=result.deleted_count,
        merged_users=result.merged_count,
        user=AccountSummary.from_account(result.account),
    )
