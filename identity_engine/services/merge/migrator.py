"""
Reference Migrator
Moves every owned reference from one account to another.

Order:
1. Top-level columns (one bulk update per column)
2. Nested JSON keys (load, rewrite, save per document)
3. Ratings/stars (bulk update, then collapse duplicates per target)

Every step only matches documents still pointing at the old account, so
running the migration again for the same pair changes nothing.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Sequence

from identity_engine.models.references import (
    NESTED_REFERENCES,
    OWNED_UNIQUE_REFERENCES,
    TOP_LEVEL_REFERENCES,
    NestedReference,
    OwnedUniqueKind,
    OwnedUniqueReference,
    TopLevelReference,
)
from identity_engine.services.merge.dedupe import OwnedUniqueRepair
from identity_engine.services.store import Contains, DocumentStore, Eq, Query

logger = logging.getLogger(__name__)


@dataclass
class MigrationReport:
    moved: Dict[str, int] = field(default_factory=dict)
    nested: Dict[str, int] = field(default_factory=dict)
    ratings_collapsed: int = 0
    stars_removed: int = 0

    @property
    def total_moved(self) -> int:
        return sum(self.moved.values()) + sum(self.nested.values())

    def summary(self) -> str:
        parts = [f"{n} {label}" for label, n in {**self.moved, **self.nested}.items() if n > 0]
        if self.ratings_collapsed:
            parts.append(f"{self.ratings_collapsed} duplicate rating(s) collapsed")
        if self.stars_removed:
            parts.append(f"{self.stars_removed} duplicate star(s) removed")
        return ", ".join(parts) if parts else "nothing to move"


class ReferenceMigrator:

    def __init__(
        self,
        store: DocumentStore,
        top_level: Sequence[TopLevelReference] = TOP_LEVEL_REFERENCES,
        nested: Sequence[NestedReference] = NESTED_REFERENCES,
        owned_unique: Sequence[OwnedUniqueReference] = OWNED_UNIQUE_REFERENCES
    ):
        self.store = store
        self.top_level = tuple(top_level)
        self.nested = tuple(nested)
        self.owned_unique = tuple(owned_unique)
        self.repair = OwnedUniqueRepair(store)

    def migrate(self, keep_id: str, discard_id: str) -> MigrationReport:
        """Points every reference to `discard_id` at `keep_id`."""
        if keep_id == discard_id:
            raise ValueError(f"Cannot migrate references of {keep_id} onto itself")

        report = MigrationReport()

        for ref in self.top_level:
            report.moved[ref.label] = self._migrate_top_level(ref, keep_id, discard_id)

        for ref in self.nested:
            report.nested[ref.label] = self._migrate_nested(ref, keep_id, discard_id)

        for ref in self.owned_unique:
            report.moved[ref.label] = self.store.bulk_update(
                ref.collection,
                Query(where=(Eq(ref.column, discard_id),)),
                {ref.column: keep_id}
            )
            removed = self.repair.repair(ref, keep_id)
            if ref.kind == OwnedUniqueKind.RATING:
                report.ratings_collapsed += removed
            else:
                report.stars_removed += removed

        logger.info(f"Migrated references {discard_id} → {keep_id}: {report.summary()}")
        return report

    def remaining(self, account_id: str) -> Dict[str, int]:
        """Number of references still pointing at `account_id`, per reference label."""
        counts = {}
        for ref in self.top_level + self.owned_unique:
            counts[ref.label] = self.store.count(ref.collection, Query(where=(Eq(ref.column, account_id),)))
        for ref in self.nested:
            counts[ref.label] = self.store.count(ref.collection, self._nested_query(ref, account_id))
        return counts

    def _migrate_top_level(self, ref: TopLevelReference, keep_id: str, discard_id: str) -> int:
        return self.store.bulk_update(
            ref.collection,
            Query(where=(Eq(ref.column, discard_id),)),
            {ref.column: keep_id}
        )

    def _migrate_nested(self, ref: NestedReference, keep_id: str, discard_id: str) -> int:
        rewritten = 0
        for document in self.store.find(ref.collection, self._nested_query(ref, discard_id)):
            count = ref.rewrite(document, discard_id, keep_id)
            if count:
                self.store.save(ref.collection, document)
                rewritten += count
        return rewritten

    @staticmethod
    def _nested_query(ref: NestedReference, account_id: str) -> Query:
        return Query(where=(Contains(ref.column, ref.containment(account_id)),))
