"""
Account Audit Log
Per-account event trail stored in `log_users`
"""
import logging
from typing import Any, Dict, Optional
from uuid import uuid4

from identity_engine.models.account import Account, utc_now
from identity_engine.services.store import DocumentStore

logger = logging.getLogger(__name__)

AUDIT_COLLECTION = "log_users"


class AccountAuditLog:

    def __init__(self, store: DocumentStore, collection: str = AUDIT_COLLECTION):
        self.store = store
        self.collection = collection

    def success(self, account: Account, event: str, payload: Optional[Dict[str, Any]] = None) -> None:
        self.store.insert(self.collection, {
            "id": str(uuid4()),
            "user_id": account.id,
            "actor": account.id,
            "event": event,
            "result": "success",
            "payload": payload or {},
            "created_at": utc_now().isoformat(),
        })
        logger.debug(f"Audit: {event} for {account.id}")
