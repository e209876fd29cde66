"""
OAuth Identity Resolution
Maps a provider profile to exactly one canonical account.

Algorithm:
1. Normalize the provider payload
2. Delete pending registrations holding one of the profile's emails
3. Find accounts sharing the provider id or an email
4. Let the arbiter boil them down to one (merge, update, escalate)
5. Create a new account if nothing matched, otherwise write the provider link
"""
import logging
from typing import Any, Dict, Optional

from identity_engine.models.account import Account, unique, utc_now
from identity_engine.services.accounts import AccountAuditLog, AccountRepository
from identity_engine.services.identity.arbiter import MergeArbiter
from identity_engine.services.identity.candidates import CandidateFinder
from identity_engine.services.identity.materializer import AccountMaterializer, link_from_profile
from identity_engine.services.identity.normalizer import NormalizedProfile, normalize_profile
from identity_engine.services.identity.reaper import PendingRegistrationReaper

logger = logging.getLogger(__name__)


def apply_provider_link(account: Account, profile: NormalizedProfile) -> Account:
    """
    Writes the provider link onto a copy of `account`.

    An existing link of the same provider is refreshed, otherwise a new one
    is attached. Collected emails only grow.
    """
    updated = account.model_copy(deep=True)
    existing = updated.providers.get(profile.provider)

    if existing is None:
        updated.providers[profile.provider] = link_from_profile(profile)
    else:
        existing.id = profile.provider_id
        existing.name = profile.display_name
        existing.emails = list(profile.emails)
        existing.profile = profile.raw_payload
        existing.modified_at = utc_now()

    updated.emails = unique([updated.email, *updated.emails, *profile.emails])

    if not updated.thumb and profile.avatar_url:
        updated.thumb = profile.avatar_url

    return updated


class OAuthResolver:

    def __init__(
        self,
        accounts: AccountRepository,
        reaper: PendingRegistrationReaper,
        finder: CandidateFinder,
        arbiter: MergeArbiter,
        materializer: AccountMaterializer,
        audit: AccountAuditLog
    ):
        self.accounts = accounts
        self.reaper = reaper
        self.finder = finder
        self.arbiter = arbiter
        self.materializer = materializer
        self.audit = audit

    async def resolve(
        self,
        provider: str,
        raw_profile: Optional[Dict[str, Any]],
        caller: Optional[Account] = None,
        keep_id: Optional[str] = None
    ) -> Account:
        """
        Resolve a provider profile to a canonical account.

        Args:
            provider: Provider name
            raw_profile: Payload as received from the provider
            caller: Account the request is authenticated as, if any
            keep_id: Survivor chosen by the caller after a MergeConflict

        Returns:
            The single account now linked to the provider identity

        Raises:
            ProfileIncomplete, ProviderIdentityConflict, MergeConflict,
            InvalidMergeSelection, ReferenceMigrationFailure
        """
        profile = normalize_profile(provider, raw_profile, caller)

        self.reaper.reap(profile.emails, exclude_id=caller.id if caller else None)

        candidates = self.finder.find(profile.provider, profile.provider_id, profile.emails)

        account = await self.arbiter.settle(caller, candidates, keep_id)
        if account is None:
            return await self.materializer.create(profile)

        return self.link(account, profile)

    def link(self, account: Account, profile: NormalizedProfile) -> Account:
        """Persists the provider link on an existing account."""
        logger.info(f"Adding profile from {profile.provider} to user {account}.")
        account = self.accounts.save(apply_provider_link(account, profile))
        self.audit.success(account, "authenticate", {"provider": profile.provider})
        logger.info(f"✅ User <{account.email}> updated from {profile.provider}.")
        return account
