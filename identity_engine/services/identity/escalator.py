"""
Conflict Escalator
Several accounts match and picking one would be a guess. The caller gets a
MergeConflict listing them and comes back with the id of the account to keep.
"""
import logging
from typing import List, Optional

from identity_engine.core.errors import InvalidMergeSelection, MergeConflict
from identity_engine.models.account import Account
from identity_engine.services.merge import AccountMergeEngine

logger = logging.getLogger(__name__)


class ConflictEscalator:

    def __init__(self, engine: AccountMergeEngine):
        self.engine = engine

    async def resolve(self, candidates: List[Account], explanation: str, keep_id: Optional[str] = None) -> Account:
        """
        Merges all candidates into the one chosen by the caller.

        Raises:
            MergeConflict: No survivor chosen yet
            InvalidMergeSelection: Chosen id is not one of the candidates
        """
        if not keep_id:
            logger.info(f"Conflict between [ {', '.join(a.id for a in candidates)} ], asking caller to resolve.")
            raise MergeConflict(explanation, candidates)

        keep = next((a for a in candidates if a.id == keep_id), None)
        if keep is None:
            raise InvalidMergeSelection("Provided user ID does not match any of the conflicting users.")

        others = [a for a in candidates if a.id != keep_id]
        logger.info(f"Merging users [ {', '.join(a.id for a in others)} ] into {keep.id} as requested.")
        for other in others:
            keep = await self.engine.merge(keep, other, explanation)
        return keep
