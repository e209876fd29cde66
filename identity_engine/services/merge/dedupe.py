"""
Owned-Unique Repair
After owner ids were rewritten, an account may own two ratings or two stars
for the same target. Ratings collapse into one record holding the rounded
mean, stars keep a single record. The oldest record of a group survives.
"""
import logging
import math
from collections import defaultdict
from typing import Any, Dict, List, Tuple

from identity_engine.models.references import OwnedUniqueKind, OwnedUniqueReference
from identity_engine.services.store import DocumentStore, Eq, Query

logger = logging.getLogger(__name__)


def target_key(target: Dict[str, Any]) -> Tuple[Tuple[str, str], ...]:
    """Order-independent key of a target reference like {"release": "abc"}."""
    return tuple(sorted((str(k), str(v)) for k, v in (target or {}).items()))


def rounded_mean(values: List[float]) -> int:
    """Mean rounded half up (6 and 7 give 7, not banker's 6)."""
    return int(math.floor(sum(values) / len(values) + 0.5))


def _age(document: Dict[str, Any]) -> Tuple[str, str]:
    return (str(document.get("created_at") or ""), str(document["id"]))


class OwnedUniqueRepair:

    def __init__(self, store: DocumentStore):
        self.store = store

    def duplicate_groups(self, ref: OwnedUniqueReference, owner_id: str) -> List[List[Dict[str, Any]]]:
        documents = self.store.find(ref.collection, Query(where=(Eq(ref.column, owner_id),)))
        groups: Dict[Tuple, List[Dict[str, Any]]] = defaultdict(list)
        for document in documents:
            groups[target_key(document.get(ref.target_column))].append(document)
        return [sorted(group, key=_age) for group in groups.values() if len(group) > 1]

    def repair(self, ref: OwnedUniqueReference, owner_id: str) -> int:
        """
        Collapses duplicates owned by `owner_id`, returns how many records were removed.

        A collapsed rating lists the ids it absorbed in `merged_ids` before
        any duplicate is removed. Duplicates already listed there only get
        removed, so an interrupted repair can run again without averaging
        the mean a second time.
        """
        removed = 0
        for group in self.duplicate_groups(ref, owner_id):
            survivor, duplicates = group[0], group[1:]

            if ref.kind == OwnedUniqueKind.RATING:
                absorbed = survivor.get("merged_ids") or []
                pending = [d for d in duplicates if d["id"] not in absorbed]
                if pending:
                    value = rounded_mean([survivor["value"], *(d["value"] for d in pending)])
                    survivor["value"] = value
                    survivor["merged_ids"] = [*absorbed, *(d["id"] for d in pending)]
                    self.store.save(ref.collection, survivor)
                    logger.debug(
                        f"Collapsed {len(pending) + 1} ratings on {survivor.get(ref.target_column)} into {value}"
                    )

            for duplicate in duplicates:
                self.store.remove(ref.collection, duplicate["id"])
                removed += 1

        if removed:
            logger.info(f"Removed {removed} duplicate {ref.kind.value}(s) of {owner_id}")
        return removed
