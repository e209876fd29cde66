"""
Authentication Schemas
Flat summaries of resolved accounts, no internals
"""
from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from identity_engine.models.account import Account


class ProviderProfileRequest(BaseModel):
    """Profile payload as received from the provider after the OAuth handshake"""
    profile: Dict[str, Any] = Field(..., description="Raw provider profile")


class AccountSummary(BaseModel):
    """Resolved account"""
    id: str
    name: str
    email: str
    emails: List[str] = []
    providers: List[str] = []
    roles: List[str] = []
    plan: str
    is_active: bool
    thumb: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_account(cls, account: Account) -> "AccountSummary":
        return cls(
            id=account.id,
            name=account.name,
            email=account.email,
            emails=account.emails,
            providers=sorted(account.providers),
            roles=account.roles,
            plan=account.plan,
            is_active=account.is_active,
            thumb=account.thumb,
            created_at=account.created_at,
        )


class ConfirmationResponse(BaseModel):
    """Outcome of an email confirmation"""
    message: str
    previous_code: str
    deleted_users: int
    merged_users: int
    user: AccountSummary


class ConflictResponse(BaseModel):
    """Several accounts match; resubmit with `merged_user_id`"""
    error: str
    explanation: str
    candidates: List[AccountSummary]
