"""
Unit tests for SupabaseDocumentStore query translation

The supabase client is mocked; every builder method returns the builder
itself so the calls made on it can be inspected.
"""

from unittest.mock import MagicMock, Mock, call

import pytest

from identity_engine.core.errors import DocumentStoreError
from identity_engine.services.store import Contains, Eq, In, Ne, Overlaps, Query, SupabaseDocumentStore
from identity_engine.services.store.supabase_store import render_field


@pytest.fixture
def builder():
    builder = MagicMock()
    for method in ("select", "eq", "neq", "is_", "in_", "filter", "or_", "limit", "update", "delete",
                   "insert", "upsert"):
        getattr(builder, method).return_value = builder
    builder.execute.return_value = Mock(data=[{"id": "a"}], count=1)
    return builder


@pytest.fixture
def client(builder):
    client = Mock()
    client.table.return_value = builder
    return client


@pytest.fixture
def supabase_store(client):
    return SupabaseDocumentStore(client)


@pytest.mark.parametrize("field,expected", [
    ("email", "email"),
    ("email_status.code", "email_status->>code"),
    ("providers.github.id", "providers->github->>id"),
])
def test_render_field(field, expected):
    assert render_field(field) == expected


def test_where_conditions(supabase_store, client, builder):
    query = Query(where=(
        Eq("email_status.code", "pending_registration"),
        Eq("location", None),
        Ne("id", "x"),
        In("email", ("a@b.c", "d@e.f")),
        Overlaps("emails", ("a@b.c",)),
        Contains("authors", [{"user": "u1"}]),
    ))

    assert supabase_store.find("users", query) == [{"id": "a"}]

    client.table.assert_called_with("users")
    builder.select.assert_called_with("*")
    builder.eq.assert_called_once_with("email_status->>code", "pending_registration")
    builder.is_.assert_called_once_with("location", "null")
    builder.neq.assert_called_once_with("id", "x")
    builder.in_.assert_called_once_with("email", ["a@b.c", "d@e.f"])
    builder.filter.assert_has_calls([
        call("emails", "ov", '{"a@b.c"}'),
        call("authors", "cs", '[{"user": "u1"}]'),
    ])


def test_or_group(supabase_store, builder):
    query = Query(any_of=(
        Eq("providers.github.id", "123"),
        Overlaps("emails", ("a@b.c", "x@y.z")),
        Overlaps("validated_emails", ("a@b.c",)),
    ))

    supabase_store.find("users", query)

    builder.or_.assert_called_once_with(
        'providers->github->>id.eq."123",emails.ov.{"a@b.c","x@y.z"},validated_emails.ov.{"a@b.c"}'
    )


def test_contains_is_not_allowed_in_or_group(supabase_store):
    with pytest.raises(ValueError):
        supabase_store.find("releases", Query(any_of=(Contains("authors", [{"user": "u"}]),)))


def test_count_and_bulk_update(supabase_store, builder):
    assert supabase_store.count("comments", Query(where=(Eq("from_user", "old"),))) == 1
    builder.select.assert_called_with("id", count="exact")

    builder.execute.return_value = Mock(data=[{"id": "c1"}, {"id": "c2"}])
    assert supabase_store.bulk_update("comments", Query(where=(Eq("from_user", "old"),)), {"from_user": "new"}) == 2
    builder.update.assert_called_once_with({"from_user": "new"})


def test_save_upserts_by_id(supabase_store, builder):
    supabase_store.save("users", {"id": "a", "name": "A"})
    builder.upsert.assert_called_once_with({"id": "a", "name": "A"}, on_conflict="id")

    with pytest.raises(DocumentStoreError):
        supabase_store.save("users", {"name": "no id"})


def test_backend_errors_are_wrapped(supabase_store, builder):
    builder.execute.side_effect = RuntimeError("connection reset")

    with pytest.raises(DocumentStoreError) as exc_info:
        supabase_store.remove("users", "a")

    assert exc_info.value.collection == "users"
    assert "connection reset" in str(exc_info.value)
