"""
Access Control
Role assignments per account, one row per (user, role) in `acl_user_roles`.
"""
import logging
from typing import Iterable

from identity_engine.services.store import DocumentStore, Eq, In, Query

logger = logging.getLogger(__name__)

ACL_COLLECTION = "acl_user_roles"


class AccessControl:

    def __init__(self, store: DocumentStore, collection: str = ACL_COLLECTION):
        self.store = store
        self.collection = collection

    def user_roles(self, account_id: str) -> list:
        rows = self.store.find(self.collection, Query(where=(Eq("user_id", account_id),)))
        return [row["role"] for row in rows]

    def add_user_roles(self, account_id: str, roles: Iterable[str]) -> None:
        existing = set(self.user_roles(account_id))
        added = []
        for role in roles:
            if role in existing:
                continue
            self.store.insert(self.collection, {"id": f"{account_id}:{role}", "user_id": account_id, "role": role})
            existing.add(role)
            added.append(role)
        if added:
            logger.info(f"ACL: granted [{', '.join(added)}] to {account_id}")

    def remove_user_roles(self, account_id: str, roles: Iterable[str]) -> None:
        roles = list(roles)
        if not roles:
            return
        rows = self.store.find(
            self.collection,
            Query(where=(Eq("user_id", account_id), In("role", tuple(roles)))),
        )
        for row in rows:
            self.store.remove(self.collection, row["id"])
        logger.info(f"ACL: revoked [{', '.join(roles)}] from {account_id}")
