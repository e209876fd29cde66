"""
Identity Service
Entry point for OAuth identity resolution and email confirmation.
"""
import logging
from typing import Any, Dict, Optional

from identity_engine.core.config import Settings, settings as default_settings
from identity_engine.models.account import Account
from identity_engine.models.references import (
    NESTED_REFERENCES,
    OWNED_UNIQUE_REFERENCES,
    TOP_LEVEL_REFERENCES,
)
from identity_engine.services.accounts import AccessControl, AccountAuditLog, AccountRepository
from identity_engine.services.identity.arbiter import MergeArbiter
from identity_engine.services.identity.candidates import CandidateFinder
from identity_engine.services.identity.confirmation import ConfirmationResult, EmailConfirmation
from identity_engine.services.identity.escalator import ConflictEscalator
from identity_engine.services.identity.materializer import AccountMaterializer
from identity_engine.services.identity.reaper import PendingRegistrationReaper
from identity_engine.services.identity.resolver import OAuthResolver
from identity_engine.services.merge import AccountMergeEngine, ReferenceMigrator
from identity_engine.services.notifications import NotificationService
from identity_engine.services.store import DocumentStore

logger = logging.getLogger(__name__)


class IdentityService:

    def __init__(
        self,
        accounts: AccountRepository,
        engine: AccountMergeEngine,
        resolver: OAuthResolver,
        confirmation: EmailConfirmation
    ):
        self.accounts = accounts
        self.engine = engine
        self.resolver = resolver
        self.confirmation = confirmation

    @classmethod
    def from_store(
        cls,
        store: DocumentStore,
        notifications: Optional[NotificationService] = None,
        settings: Settings = default_settings
    ) -> "IdentityService":
        """Wires all components on top of one document store."""
        accounts = AccountRepository(store, settings.accounts_table)
        acl = AccessControl(store)
        audit = AccountAuditLog(store)

        migrator = ReferenceMigrator(store, TOP_LEVEL_REFERENCES, NESTED_REFERENCES, OWNED_UNIQUE_REFERENCES)
        engine = AccountMergeEngine(
            accounts, migrator, acl, notifications or NotificationService(), audit, settings
        )
        escalator = ConflictEscalator(engine)
        reaper = PendingRegistrationReaper(accounts, acl)
        finder = CandidateFinder(accounts)

        resolver = OAuthResolver(
            accounts=accounts,
            reaper=reaper,
            finder=finder,
            arbiter=MergeArbiter(engine, escalator),
            materializer=AccountMaterializer(accounts, acl, audit, settings),
            audit=audit,
        )
        confirmation = EmailConfirmation(accounts, finder, reaper, engine, escalator, audit)
        return cls(accounts, engine, resolver, confirmation)

    async def resolve_oauth_profile(
        self,
        provider: str,
        raw_profile: Optional[Dict[str, Any]],
        caller: Optional[Account] = None,
        keep_id: Optional[str] = None
    ) -> Account:
        return await self.resolver.resolve(provider, raw_profile, caller, keep_id)

    async def confirm_email(self, token: str, keep_id: Optional[str] = None) -> ConfirmationResult:
        return await self.confirmation.confirm(token, keep_id)

    async def merge_accounts(self, keep_id: str, discard_id: str, explanation: Optional[str] = None) -> Account:
        """
        Merges two accounts by id (admin use).

        Raises:
            LookupError: One of the accounts does not exist
        """
        keep = self.accounts.get(keep_id)
        discard = self.accounts.get(discard_id)
        if keep is None or discard is None:
            missing = keep_id if keep is None else discard_id
            raise LookupError(f"No account with ID {missing}.")
        return await self.engine.merge(keep, discard, explanation)
