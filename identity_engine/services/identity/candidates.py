"""
Candidate Finder
Existing accounts sharing a proven identity signal with a profile.

The primary `email` column is deliberately not searched: once confirmed it
is also present in `validated_emails`, and an unconfirmed one proves nothing.
"""
import logging
from typing import List, Optional

from identity_engine.models.account import Account
from identity_engine.services.accounts import AccountRepository
from identity_engine.services.store import Eq, Query, overlaps

logger = logging.getLogger(__name__)


def sort_by_age(accounts: List[Account]) -> List[Account]:
    """Drops duplicates and orders by creation time, oldest first."""
    by_id = {a.id: a for a in accounts}
    return sorted(by_id.values(), key=lambda a: (a.created_at, a.id))


class CandidateFinder:

    def __init__(self, accounts: AccountRepository):
        self.accounts = accounts

    def find(self, provider: str, provider_id: str, emails: List[str]) -> List[Account]:
        query = Query(any_of=(
            Eq(f"providers.{provider}.id", provider_id),
            overlaps("emails", emails),             # emails from other providers
            overlaps("validated_emails", emails),   # emails confirmed at sign-up or email change
        ))
        logger.info(f"Checking for existing users: {provider} ID {provider_id} or [ {', '.join(emails)} ]")
        return sort_by_age(self.accounts.find(query))

    def find_by_email(self, email: str, exclude_id: Optional[str] = None) -> List[Account]:
        """Accounts holding `email` as primary, collected or validated address."""
        query = Query(any_of=(
            Eq("email", email),
            overlaps("emails", [email]),
            overlaps("validated_emails", [email]),
        ))
        return [a for a in sort_by_age(self.accounts.find(query)) if a.id != exclude_id]
