"""
Supabase Document Store
DocumentStore backed by Supabase (PostgREST). Collections are tables,
JSON sub-documents live in jsonb columns, email/role sets in text[] columns.

PostgREST writes are atomic per statement only, which matches the
no-transaction contract of DocumentStore.
"""
import json
import logging
from typing import Any, Dict, List, Optional

from supabase import Client

from identity_engine.core.errors import DocumentStoreError
from identity_engine.services.store.base import (
    Condition,
    Contains,
    DocumentStore,
    Eq,
    In,
    Ne,
    Overlaps,
    Query,
)

logger = logging.getLogger(__name__)


def render_field(field: str) -> str:
    """
    Maps a dotted field to a PostgREST column expression.

    providers.github.id → providers->github->>id
    """
    parts = field.split(".")
    if len(parts) == 1:
        return field
    return "->".join(parts[:-1]) + "->>" + parts[-1]


def _quote(value: Any) -> str:
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def _render_scalar(field: str, value: Any) -> Any:
    # JSON paths are compared as text (->> operator)
    if "." in field and value is not None:
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)
    return value


def _render_array(values) -> str:
    return "{" + ",".join(_quote(v) for v in values) + "}"


def _render_or_condition(condition: Condition) -> str:
    column = render_field(condition.field)
    if isinstance(condition, Eq):
        return f"{column}.eq.{_quote(_render_scalar(condition.field, condition.value))}"
    if isinstance(condition, Ne):
        return f"{column}.neq.{_quote(_render_scalar(condition.field, condition.value))}"
    if isinstance(condition, In):
        return f"{column}.in.({','.join(_quote(v) for v in condition.values)})"
    if isinstance(condition, Overlaps):
        return f"{column}.ov.{_render_array(condition.values)}"
    raise ValueError(f"Condition {type(condition).__name__} cannot be part of an OR group")


class SupabaseDocumentStore(DocumentStore):
    """DocumentStore on top of a supabase-py client."""

    def __init__(self, client: Client):
        self.client = client

    # ========================================================================
    # QUERY TRANSLATION
    # ========================================================================

    def _apply(self, builder, query: Optional[Query]):
        if query is None:
            return builder

        for condition in query.where:
            column = render_field(condition.field)
            if isinstance(condition, Eq):
                if condition.value is None:
                    builder = builder.is_(column, "null")
                else:
                    builder = builder.eq(column, _render_scalar(condition.field, condition.value))
            elif isinstance(condition, Ne):
                builder = builder.neq(column, _render_scalar(condition.field, condition.value))
            elif isinstance(condition, In):
                builder = builder.in_(column, list(condition.values))
            elif isinstance(condition, Overlaps):
                builder = builder.filter(column, "ov", _render_array(condition.values))
            elif isinstance(condition, Contains):
                builder = builder.filter(column, "cs", json.dumps(condition.value))
            else:
                raise ValueError(f"Unsupported condition: {condition!r}")

        if query.any_of:
            builder = builder.or_(",".join(_render_or_condition(c) for c in query.any_of))

        return builder

    def _execute(self, collection: str, action: str, builder):
        try:
            return builder.execute()
        except Exception as e:
            logger.error(f"Supabase {action} on '{collection}' failed: {e}")
            raise DocumentStoreError(f"{action} on {collection} failed: {e}", collection) from e

    # ========================================================================
    # DOCUMENT STORE
    # ========================================================================

    def find(self, collection: str, query: Optional[Query] = None) -> List[Dict[str, Any]]:
        builder = self._apply(self.client.table(collection).select("*"), query)
        result = self._execute(collection, "find", builder)
        return result.data or []

    def find_one(self, collection: str, query: Query) -> Optional[Dict[str, Any]]:
        builder = self._apply(self.client.table(collection).select("*"), query).limit(1)
        result = self._execute(collection, "find_one", builder)
        return result.data[0] if result.data else None

    def count(self, collection: str, query: Optional[Query] = None) -> int:
        builder = self._apply(self.client.table(collection).select("id", count="exact"), query)
        result = self._execute(collection, "count", builder)
        return result.count or 0

    def insert(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        result = self._execute(collection, "insert", self.client.table(collection).insert(document))
        return result.data[0] if result.data else document

    def save(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        if not document.get("id"):
            raise DocumentStoreError(f"Cannot save a document without id into {collection}", collection)
        builder = self.client.table(collection).upsert(document, on_conflict="id")
        result = self._execute(collection, "save", builder)
        return result.data[0] if result.data else document

    def bulk_update(self, collection: str, query: Query, patch: Dict[str, Any]) -> int:
        builder = self._apply(self.client.table(collection).update(patch), query)
        result = self._execute(collection, "bulk_update", builder)
        return len(result.data or [])

    def remove(self, collection: str, document_id: str) -> None:
        builder = self.client.table(collection).delete().eq("id", document_id)
        self._execute(collection, "remove", builder)
