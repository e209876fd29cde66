"""
Merge Arbiter
Boils the accounts matching a profile down to one (or none).

  caller logged in, any matches    → merge every match into the caller
  anonymous, no match              → create a new account
  anonymous, one match             → update that account in place
  anonymous, several matches       → escalate, never guess
"""
import logging
from enum import Enum
from typing import List, Optional

from identity_engine.models.account import Account
from identity_engine.services.identity.escalator import ConflictEscalator
from identity_engine.services.merge import AccountMergeEngine

logger = logging.getLogger(__name__)

LINKED_PROVIDER_EXPLANATION = (
    "The email address we've received from the OAuth provider you've just linked "
    "to your account was already in our database."
)
ANONYMOUS_LOGIN_EXPLANATION = (
    "The email address we've received from the OAuth provider you've just logged in with "
    "was already in our database. This can happen when you change the email address at "
    "the provider to one you've already used here under a different account."
)


class Resolution(str, Enum):
    LINK_TO_CALLER = "link_to_caller"
    CREATE = "create"
    UPDATE = "update"
    ESCALATE = "escalate"


def decide(caller: Optional[Account], candidates: List[Account]) -> Resolution:
    if caller is not None:
        return Resolution.LINK_TO_CALLER
    if not candidates:
        return Resolution.CREATE
    if len(candidates) == 1:
        return Resolution.UPDATE
    return Resolution.ESCALATE


class MergeArbiter:

    def __init__(self, engine: AccountMergeEngine, escalator: ConflictEscalator):
        self.engine = engine
        self.escalator = escalator

    async def settle(
        self,
        caller: Optional[Account],
        candidates: List[Account],
        keep_id: Optional[str] = None
    ) -> Optional[Account]:
        """
        Returns the account the profile belongs to, None if a new one must be created.

        Raises:
            MergeConflict: Several anonymous matches and no `keep_id`
            InvalidMergeSelection: `keep_id` is not among the matches
        """
        resolution = decide(caller, candidates)

        if resolution == Resolution.LINK_TO_CALLER:
            account = caller
            for other in candidates:
                if other.id == caller.id:
                    continue
                account = await self.engine.merge(account, other, LINKED_PROVIDER_EXPLANATION)
            return account

        if resolution == Resolution.CREATE:
            return None

        if resolution == Resolution.UPDATE:
            return candidates[0]

        logger.info(
            f"Got {len(candidates)} matches: [ {', '.join(a.id for a in candidates)} ]."
        )
        return await self.escalator.resolve(candidates, ANONYMOUS_LOGIN_EXPLANATION, keep_id)
