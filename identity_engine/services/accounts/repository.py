"""
Account Repository
Typed access to the accounts collection on top of a DocumentStore
"""
import logging
from typing import List, Optional
from uuid import uuid4

from identity_engine.core.config import settings
from identity_engine.models.account import Account
from identity_engine.services.store import DocumentStore, Eq, Query

logger = logging.getLogger(__name__)


class AccountRepository:

    def __init__(self, store: DocumentStore, collection: Optional[str] = None):
        self.store = store
        self.collection = collection or settings.accounts_table

    def get(self, account_id: str) -> Optional[Account]:
        document = self.store.find_one(self.collection, Query.by_id(account_id))
        return Account.from_document(document) if document else None

    def find(self, query: Optional[Query] = None) -> List[Account]:
        return [Account.from_document(d) for d in self.store.find(self.collection, query)]

    def find_by_name(self, name: str) -> Optional[Account]:
        document = self.store.find_one(self.collection, Query(where=(Eq("name", name),)))
        return Account.from_document(document) if document else None

    def find_by_email_token(self, token: str) -> Optional[Account]:
        document = self.store.find_one(self.collection, Query(where=(Eq("email_status.token", token),)))
        return Account.from_document(document) if document else None

    def count(self, query: Optional[Query] = None) -> int:
        return self.store.count(self.collection, query)

    def create(self, account: Account) -> Account:
        document = self.store.insert(self.collection, account.to_document())
        return Account.from_document(document)

    def save(self, account: Account) -> Account:
        document = self.store.save(self.collection, account.to_document())
        return Account.from_document(document)

    def delete(self, account: Account) -> None:
        self.store.remove(self.collection, account.id)

    @staticmethod
    def new_id() -> str:
        return str(uuid4())
