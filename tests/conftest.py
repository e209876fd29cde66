"""
Shared fixtures: an in-memory DocumentStore and account factories.
"""
import copy
import itertools
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import Mock

import pytest

from identity_engine.core.config import Settings
from identity_engine.core.errors import DocumentStoreError
from identity_engine.models.account import Account, EmailStatus, EmailStatusCode
from identity_engine.services.identity import IdentityService
from identity_engine.services.notifications import NotificationService
from identity_engine.services.store import Contains, DocumentStore, Eq, In, Ne, Overlaps, Query


# ============================================================================
# IN-MEMORY DOCUMENT STORE
# ============================================================================

def _resolve(document: Dict[str, Any], field: str) -> Any:
    node: Any = document
    for part in field.split("."):
        if not isinstance(node, dict):
            return None
        node = node.get(part)
    return node


def _scalar(value: Any) -> Any:
    # enums compare by value, like they would after JSON serialization
    return getattr(value, "value", value)


def _contains(node: Any, pattern: Any) -> bool:
    """JSON containment as implemented by Postgres' @> operator."""
    if isinstance(pattern, dict):
        return isinstance(node, dict) and all(
            key in node and _contains(node[key], value) for key, value in pattern.items()
        )
    if isinstance(pattern, list):
        return isinstance(node, list) and all(
            any(_contains(item, p) for item in node) for p in pattern
        )
    return node == pattern


def _matches(document: Dict[str, Any], condition) -> bool:
    value = _resolve(document, condition.field)
    if isinstance(condition, Eq):
        return value == _scalar(condition.value)
    if isinstance(condition, Ne):
        return value != _scalar(condition.value)
    if isinstance(condition, In):
        return value in [_scalar(v) for v in condition.values]
    if isinstance(condition, Overlaps):
        return isinstance(value, list) and any(v in value for v in condition.values)
    if isinstance(condition, Contains):
        return _contains(value, condition.value)
    raise ValueError(f"Unsupported condition: {condition!r}")


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed store with the same query semantics as the Supabase one."""

    def __init__(self):
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.fail_on: Optional[str] = None  # operation name that raises DocumentStoreError

    def _table(self, collection: str) -> Dict[str, Dict[str, Any]]:
        return self.collections.setdefault(collection, {})

    def _check(self, operation: str, collection: str) -> None:
        if self.fail_on == operation:
            raise DocumentStoreError(f"{operation} on {collection} failed: simulated", collection)

    def _select(self, collection: str, query: Optional[Query]) -> List[Dict[str, Any]]:
        documents = list(self._table(collection).values())
        if query is None:
            return documents
        return [
            d for d in documents
            if all(_matches(d, c) for c in query.where)
            and (not query.any_of or any(_matches(d, c) for c in query.any_of))
        ]

    def find(self, collection, query=None):
        self._check("find", collection)
        return copy.deepcopy(self._select(collection, query))

    def count(self, collection, query=None):
        return len(self._select(collection, query))

    def insert(self, collection, document):
        self._check("insert", collection)
        if document["id"] in self._table(collection):
            raise DocumentStoreError(f"duplicate key {document['id']} in {collection}", collection)
        self._table(collection)[document["id"]] = copy.deepcopy(document)
        return copy.deepcopy(document)

    def save(self, collection, document):
        self._check("save", collection)
        self._table(collection)[document["id"]] = copy.deepcopy(document)
        return copy.deepcopy(document)

    def bulk_update(self, collection, query, patch):
        self._check("bulk_update", collection)
        matched = self._select(collection, query)
        for document in matched:
            document.update(copy.deepcopy(patch))
        return len(matched)

    def remove(self, collection, document_id):
        self._check("remove", collection)
        self._table(collection).pop(document_id, None)

    # test helpers

    def all(self, collection: str) -> List[Dict[str, Any]]:
        return copy.deepcopy(list(self._table(collection).values()))

    def get(self, collection: str, document_id: str) -> Optional[Dict[str, Any]]:
        document = self._table(collection).get(document_id)
        return copy.deepcopy(document) if document else None


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        environment="test",
        plans=["free", "subscribed", "vip", "unlimited"],
        default_plan="free",
    )


@pytest.fixture
def notifications():
    return Mock(spec=NotificationService)


@pytest.fixture
def service(store, notifications, test_settings):
    return IdentityService.from_store(store, notifications=notifications, settings=test_settings)


@pytest.fixture
def make_account(store, test_settings):
    """
    Inserts an account document and returns the Account.

    Accounts are created one minute apart in call order, so the first one
    created is always the oldest.
    """
    clock = itertools.count()
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _make(
        id: str,
        email: str,
        status: EmailStatusCode = EmailStatusCode.CONFIRMED,
        **fields
    ) -> Account:
        fields.setdefault("name", id)
        fields.setdefault("emails", [email])
        fields.setdefault("validated_emails", [email] if status == EmailStatusCode.CONFIRMED else [])
        fields.setdefault("is_active", status == EmailStatusCode.CONFIRMED)
        fields.setdefault("roles", [test_settings.default_role])
        fields.setdefault("plan", test_settings.default_plan)
        fields.setdefault("created_at", base + timedelta(minutes=next(clock)))
        account = Account(
            id=id,
            email=email,
            email_status=EmailStatus(
                code=status,
                token=fields.pop("token", None),
                expires_at=fields.pop("expires_at", None),
                value=fields.pop("pending_value", None),
            ),
            **fields,
        )
        store.insert(test_settings.accounts_table, account.to_document())
        for role in account.roles:
            store.insert("acl_user_roles", {"id": f"{account.id}:{role}", "user_id": account.id, "role": role})
        return account

    return _make
