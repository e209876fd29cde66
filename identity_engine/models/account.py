"""
Account Model
Canonical user identity and the provider identities linked to it
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive timestamps are taken as UTC."""
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def unique(values) -> List[str]:
    """Drops duplicates and empty values, keeping first-seen order."""
    seen = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


class EmailStatusCode(str, Enum):
    """Where the account's primary email stands"""
    CONFIRMED = "confirmed"
    PENDING_REGISTRATION = "pending_registration"
    PENDING_UPDATE = "pending_update"


class EmailStatus(BaseModel):
    code: EmailStatusCode = EmailStatusCode.CONFIRMED
    token: Optional[str] = None
    expires_at: Optional[datetime] = None
    value: Optional[str] = None

    @property
    def is_pending_registration(self) -> bool:
        return self.code == EmailStatusCode.PENDING_REGISTRATION


class AccountCounter(BaseModel):
    """Aggregate counters, summed when accounts are merged"""
    comments: int = 0
    downloads: int = 0
    stars: int = 0

    def __add__(self, other: "AccountCounter") -> "AccountCounter":
        return AccountCounter(**{
            name: getattr(self, name) + getattr(other, name)
            for name in AccountCounter.model_fields
        })


class LinkedProviderIdentity(BaseModel):
    """Identity of the account at an external provider"""
    id: str
    name: Optional[str] = None
    emails: List[str] = Field(default_factory=list)
    profile: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)
    modified_at: datetime = Field(default_factory=utc_now)


class Account(BaseModel):
    """
    Canonical user identity.

    `email` is the primary address; it is only proven once `email_status`
    is confirmed. `emails` collects addresses received from providers,
    `validated_emails` those the user proved by confirmation.
    """
    id: str
    name: str
    email: str
    emails: List[str] = Field(default_factory=list)
    validated_emails: List[str] = Field(default_factory=list)
    email_status: EmailStatus = Field(default_factory=EmailStatus)
    providers: Dict[str, LinkedProviderIdentity] = Field(default_factory=dict)
    is_active: bool = False
    is_local: bool = False
    password_hash: Optional[str] = None
    password_salt: Optional[str] = None
    location: Optional[str] = None
    thumb: Optional[str] = None
    roles: List[str] = Field(default_factory=list)
    plan: str
    credits: int = 0
    counter: AccountCounter = Field(default_factory=AccountCounter)
    # ids of accounts already merged into this one
    merged_ids: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def has_absorbed(self, account_id: str) -> bool:
        return account_id in self.merged_ids

    def provider_id(self, provider: str) -> Optional[str]:
        link = self.providers.get(provider)
        return link.id if link else None

    def to_document(self) -> Dict[str, Any]:
        """JSON-ready document as stored in the accounts collection."""
        return self.model_dump(mode="json")

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Account":
        return cls.model_validate(document)

    def __str__(self) -> str:
        return f"{self.name} <{self.email}> ({self.id})"
