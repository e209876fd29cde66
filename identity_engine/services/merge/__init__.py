"""
Account Merging
Reference migration, duplicate repair and the merge engine
"""
from identity_engine.services.merge.dedupe import OwnedUniqueRepair, rounded_mean
from identity_engine.services.merge.migrator import MigrationReport, ReferenceMigrator
from identity_engine.services.merge.engine import AccountMergeEngine, merge_fields

__all__ = [
    "OwnedUniqueRepair",
    "rounded_mean",
    "MigrationReport",
    "ReferenceMigrator",
    "AccountMergeEngine",
    "merge_fields",
]
