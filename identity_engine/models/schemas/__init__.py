"""
API Schemas
Request and response models of the HTTP routes
"""
from identity_engine.models.schemas.auth import (
    AccountSummary,
    ConfirmationResponse,
    ConflictResponse,
    ProviderProfileRequest,
)

__all__ = [
    "AccountSummary",
    "ConfirmationResponse",
    "ConflictResponse",
    "ProviderProfileRequest",
]
