"""
Pending-Registration Reaper

Local registrations that never confirmed their email hold nothing worth
keeping. When an identity with the same email shows up, they are deleted so
they neither count as merge candidates nor block resolution.

Accounts with a pending *update* are left alone, they are dealt with when
the update gets confirmed.
"""
import logging
from typing import List, Optional

from identity_engine.models.account import Account, EmailStatusCode
from identity_engine.services.accounts import AccessControl, AccountRepository
from identity_engine.services.store import Eq, In, Query

logger = logging.getLogger(__name__)


class PendingRegistrationReaper:

    def __init__(self, accounts: AccountRepository, acl: AccessControl):
        self.accounts = accounts
        self.acl = acl

    def find_pending(self, emails: List[str], exclude_id: Optional[str] = None) -> List[Account]:
        query = Query(where=(
            In("email", tuple(emails)),
            Eq("email_status.code", EmailStatusCode.PENDING_REGISTRATION.value),
        ))
        return [a for a in self.accounts.find(query) if a.id != exclude_id]

    def remove(self, account: Account, reason: str) -> None:
        logger.warning(f"Deleting local user {account} with pending registration ({reason}).")
        self.accounts.delete(account)
        self.acl.remove_user_roles(account.id, account.roles)

    def reap(self, emails: List[str], exclude_id: Optional[str] = None) -> int:
        """
        Deletes every pending-registration account whose primary email is in `emails`.

        Args:
            emails: Normalized email addresses
            exclude_id: Account that must survive (the authenticated caller)

        Returns:
            Number of deleted accounts
        """
        if not emails:
            return 0
        pending = self.find_pending(emails, exclude_id)
        for account in pending:
            self.remove(account, f"match by [ {', '.join(emails)} ]")
        return len(pending)
