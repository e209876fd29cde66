"""
Identity Resolution
Maps provider profiles and confirmed emails to one canonical account
"""
from identity_engine.services.identity.normalizer import NormalizedProfile, normalize_profile
from identity_engine.services.identity.confirmation import ConfirmationResult, EmailConfirmation
from identity_engine.services.identity.resolver import OAuthResolver
from identity_engine.services.identity.service import IdentityService

__all__ = [
    "NormalizedProfile",
    "normalize_profile",
    "ConfirmationResult",
    "EmailConfirmation",
    "OAuthResolver",
    "IdentityService",
]
