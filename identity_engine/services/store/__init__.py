"""
Document Store
Storage abstraction used by the identity engine
"""
from identity_engine.services.store.base import (
    Contains,
    DocumentStore,
    Eq,
    In,
    Ne,
    Overlaps,
    Query,
    overlaps,
)
from identity_engine.services.store.supabase_store import SupabaseDocumentStore

__all__ = [
    "Contains",
    "DocumentStore",
    "Eq",
    "In",
    "Ne",
    "Overlaps",
    "Query",
    "overlaps",
    "SupabaseDocumentStore",
]
