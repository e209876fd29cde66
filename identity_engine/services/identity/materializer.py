"""
Account Materializer
Creates a new account from a normalized profile when nothing matched.

Concurrent first logins of the same new identity can both get here. After
inserting, the materializer looks for other accounts created for the same
provider id; the oldest one wins and younger duplicates are removed again.
"""
import logging
import random
import re
import unicodedata

from identity_engine.core.config import Settings, settings as default_settings
from identity_engine.models.account import (
    Account,
    EmailStatus,
    EmailStatusCode,
    LinkedProviderIdentity,
    utc_now,
)
from identity_engine.services.accounts import AccessControl, AccountAuditLog, AccountRepository
from identity_engine.services.identity.candidates import sort_by_age
from identity_engine.services.identity.normalizer import NormalizedProfile, email_local_part
from identity_engine.services.store import Eq, Query

logger = logging.getLogger(__name__)


def remove_diacritics(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def sanitize_name(name: str) -> str:
    """Keeps letters, digits and spaces: "Jérôme_B." → "JeromeB"."""
    return re.sub(r"[^0-9a-z ]+", "", remove_diacritics(name or ""), flags=re.IGNORECASE).strip()


def link_from_profile(profile: NormalizedProfile) -> LinkedProviderIdentity:
    now = utc_now()
    return LinkedProviderIdentity(
        id=profile.provider_id,
        name=profile.display_name,
        emails=list(profile.emails),
        profile=profile.raw_payload,
        created_at=now,
        modified_at=now,
    )


class AccountMaterializer:

    def __init__(
        self,
        accounts: AccountRepository,
        acl: AccessControl,
        audit: AccountAuditLog,
        settings: Settings = default_settings
    ):
        self.accounts = accounts
        self.acl = acl
        self.audit = audit
        self.settings = settings

    def derive_name(self, profile: NormalizedProfile) -> str:
        name = sanitize_name(profile.display_name or profile.username or "")
        if not name:
            logger.warning(f"Profile data does contain neither display name nor username: {profile.raw_payload}")
            name = sanitize_name(email_local_part(profile.primary_email)) or "user"

        if not self.accounts.find_by_name(name):
            return name
        for _ in range(self.settings.name_suffix_attempts):
            candidate = f"{name}{random.randint(0, 999)}"
            if not self.accounts.find_by_name(candidate):
                return candidate
        # give up on uniqueness, names are display-only
        return f"{name}{random.randint(0, 999)}"

    async def create(self, profile: NormalizedProfile) -> Account:
        first_account = self.accounts.count() == 0
        account = Account(
            id=self.accounts.new_id(),
            name=self.derive_name(profile),
            email=profile.primary_email,
            emails=list(profile.emails),
            validated_emails=[profile.primary_email],
            email_status=EmailStatus(code=EmailStatusCode.CONFIRMED),
            providers={profile.provider: link_from_profile(profile)},
            is_active=True,
            is_local=False,
            thumb=profile.avatar_url,
            roles=[self.settings.root_role if first_account else self.settings.default_role],
            plan=self.settings.default_plan,
        )

        logger.info(f"Creating new user from {profile.provider} profile.")
        account = self.accounts.create(account)
        self.acl.add_user_roles(account.id, account.roles)

        winner = self._settle_concurrent_creation(account, profile)
        if winner.id != account.id:
            return winner

        self.audit.success(account, "registration", {"provider": profile.provider, "email": account.email})
        logger.info(
            f"{'Root user' if first_account else 'User'} <{account.email}> successfully created "
            f"with ID \"{account.id}\" and plan \"{account.plan}\"."
        )
        return account

    def _settle_concurrent_creation(self, account: Account, profile: NormalizedProfile) -> Account:
        twins = sort_by_age(self.accounts.find(
            Query(where=(Eq(f"providers.{profile.provider}.id", profile.provider_id),))
        ))
        if len(twins) < 2:
            return account

        winner = twins[0]
        if winner.id == account.id:
            return account

        logger.warning(
            f"Concurrent creation for {profile.provider} ID {profile.provider_id}: "
            f"keeping {winner.id}, removing {account.id}."
        )
        self.accounts.delete(account)
        self.acl.remove_user_roles(account.id, account.roles)
        return winner
