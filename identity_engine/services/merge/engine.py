"""
Account Merge Engine

Consolidates two accounts into one. The account passed as `keep` survives,
`discard` is absorbed and deleted.

Steps (ordered so that an interruption never loses `discard` before it is
fully absorbed):
1. Rewrite top-level references
2. Rewrite nested references
3. Move ratings/stars and collapse duplicates per target
4. Merge fields onto a copy of `keep`
5. Persist `keep`
6. Queue merge notices (only when an explanation is given)
7. Delete `discard`

Steps 1-3 only touch documents still pointing at `discard`. Step 5 records
`discard.id` in `keep.merged_ids`; a re-run that finds it there skips steps
4-6 and only retries the removal, so counters are never summed twice and
notices go out at most once. The caller gets the merged account or an
exception, never a half-merged object.
"""
import logging
from typing import Optional

from identity_engine.core.config import Settings, settings as default_settings
from identity_engine.core.errors import DocumentStoreError, ReferenceMigrationFailure
from identity_engine.models.account import Account, unique
from identity_engine.services.accounts import AccessControl, AccountAuditLog, AccountRepository
from identity_engine.services.merge.migrator import ReferenceMigrator
from identity_engine.services.notifications import NotificationService

logger = logging.getLogger(__name__)


def merge_fields(keep: Account, discard: Account, settings: Settings = default_settings) -> Account:
    """
    Field-level merge. Returns a new Account, `keep` is left untouched.

    Identity evidence (emails, validated emails, roles, provider links) is
    only ever added to.
    """
    merged = keep.model_copy(deep=True)

    if settings.plan_rank(discard.plan) > settings.plan_rank(keep.plan):
        merged.plan = discard.plan

    # both must be active to stay active
    merged.is_active = keep.is_active and discard.is_active

    merged.emails = unique([*keep.emails, *discard.emails])
    merged.validated_emails = unique([*keep.validated_emails, *discard.validated_emails])
    merged.roles = unique([*keep.roles, *discard.roles])

    if discard.has_password and not keep.has_password:
        merged.password_hash = discard.password_hash
        merged.password_salt = discard.password_salt
        merged.is_local = True

    if discard.location and not keep.location:
        merged.location = discard.location

    for provider, link in discard.providers.items():
        if provider not in merged.providers:
            merged.providers[provider] = link.model_copy(deep=True)

    merged.credits = (keep.credits or 0) + (discard.credits or 0)
    merged.counter = keep.counter + discard.counter
    merged.merged_ids = unique([*keep.merged_ids, *discard.merged_ids, discard.id])

    return merged


class AccountMergeEngine:

    def __init__(
        self,
        accounts: AccountRepository,
        migrator: ReferenceMigrator,
        acl: AccessControl,
        notifications: NotificationService,
        audit: AccountAuditLog,
        settings: Settings = default_settings
    ):
        self.accounts = accounts
        self.migrator = migrator
        self.acl = acl
        self.notifications = notifications
        self.audit = audit
        self.settings = settings

    async def merge(self, keep: Account, discard: Account, explanation: Optional[str] = None) -> Account:
        """
        Merges `discard` into `keep` and deletes `discard`.

        Args:
            keep: Account to keep
            discard: Account to absorb and delete
            explanation: Sent to both account owners; no notice is sent when None

        Returns:
            The merged, persisted account

        Raises:
            ValueError: When both are the same account
            ReferenceMigrationFailure: When the store fails mid-merge (safe to retry)
        """
        if keep.id == discard.id:
            raise ValueError(f"Cannot merge account {keep.id} into itself!")

        logger.info(f"Merging {discard} into {keep}...")
        resumed = keep.has_absorbed(discard.id)

        try:
            # 1-3. references
            report = self.migrator.migrate(keep.id, discard.id)

            if resumed:
                # fields were persisted by an earlier run that failed before removal
                logger.info(f"{discard.id} was already merged into {keep.id}, resuming at removal.")
                merged = keep
            else:
                # 4. fields
                merged = merge_fields(keep, discard, self.settings)

                # 5. persist
                merged = self.accounts.save(merged)
                self.audit.success(merged, "merge_users", {"kept": keep.id, "merged": discard.id})
            self.acl.add_user_roles(merged.id, discard.roles)

        except DocumentStoreError as e:
            logger.error(f"❌ Merging {discard.id} into {keep.id} failed: {e}", exc_info=True)
            raise ReferenceMigrationFailure(
                f"Merging {discard.id} into {keep.id} failed: {e}", keep.id, discard.id
            ) from e

        # 6. notify
        if explanation and not resumed:
            self.notifications.send_account_merged_notice(merged, discard, explanation)

        # 7. delete
        logger.info(f"Done merging ({report.summary()}), removing merged account {discard.id}.")
        try:
            self.accounts.delete(discard)
            self.acl.remove_user_roles(discard.id, discard.roles)
        except DocumentStoreError as e:
            logger.error(f"❌ Removing merged account {discard.id} failed: {e}", exc_info=True)
            raise ReferenceMigrationFailure(
                f"Removing merged account {discard.id} failed: {e}", keep.id, discard.id
            ) from e

        return merged
