"""
Document Store Interface
Generic per-collection CRUD with bulk updates and no transactions.

Queries are plain data so every backend can translate them:
    Query(where=(Eq("email_status.code", "pending_registration"),),
          any_of=(Overlaps("emails", emails), Overlaps("validated_emails", emails)))

`where` conditions are AND-ed, `any_of` conditions are OR-ed, and both
groups must hold. Dotted fields address keys inside JSON columns.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union


@dataclass(frozen=True)
class Eq:
    field: str
    value: Any


@dataclass(frozen=True)
class Ne:
    field: str
    value: Any


@dataclass(frozen=True)
class In:
    field: str
    values: Tuple[Any, ...]


@dataclass(frozen=True)
class Overlaps:
    """Array column shares at least one value with `values`"""
    field: str
    values: Tuple[Any, ...]


@dataclass(frozen=True)
class Contains:
    """JSON column contains `value` (JSON containment semantics)"""
    field: str
    value: Any


Condition = Union[Eq, Ne, In, Overlaps, Contains]


@dataclass(frozen=True)
class Query:
    where: Tuple[Condition, ...] = ()
    any_of: Tuple[Condition, ...] = ()

    @classmethod
    def by_id(cls, document_id: str) -> "Query":
        return cls(where=(Eq("id", document_id),))


def overlaps(field: str, values: Sequence[Any]) -> Overlaps:
    return Overlaps(field, tuple(values))


class DocumentStore(ABC):
    """
    Per-document atomic storage.

    Implementations raise DocumentStoreError on backend failures. Removing a
    document that no longer exists is a no-op.
    """

    @abstractmethod
    def find(self, collection: str, query: Optional[Query] = None) -> List[Dict[str, Any]]:
        ...

    def find_one(self, collection: str, query: Query) -> Optional[Dict[str, Any]]:
        documents = self.find(collection, query)
        return documents[0] if documents else None

    @abstractmethod
    def count(self, collection: str, query: Optional[Query] = None) -> int:
        ...

    @abstractmethod
    def insert(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    def save(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        """Writes the whole document, matched by its `id`."""

    @abstractmethod
    def bulk_update(self, collection: str, query: Query, patch: Dict[str, Any]) -> int:
        """Applies `patch` to every matching document, returns how many matched."""

    @abstractmethod
    def remove(self, collection: str, document_id: str) -> None:
        ...
