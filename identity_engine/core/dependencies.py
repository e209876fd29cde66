"""
Dependency Injection
Provides global clients and services to routes via FastAPI dependencies
"""
from typing import Optional
import logging
from supabase import Client, create_client

from identity_engine.core.config import settings
from identity_engine.services.identity import IdentityService
from identity_engine.services.store import DocumentStore, SupabaseDocumentStore

logger = logging.getLogger(__name__)

# ============================================================================
# GLOBAL CLIENTS (initialized at startup)
# ============================================================================

supabase_client: Optional[Client] = None  # Auth (JWT validation)
supabase_service_client: Optional[Client] = None  # Data access (accounts and references)

document_store: Optional[DocumentStore] = None
identity_service: Optional[IdentityService] = None


# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================

async def get_supabase() -> Client:
    """Get Supabase client used for validating bearer tokens."""
    if not supabase_client:
        raise RuntimeError("Supabase client not initialized")
    return supabase_client


async def get_document_store() -> DocumentStore:
    if not document_store:
        raise RuntimeError("Document store not initialized")
    return document_store


async def get_identity_service() -> IdentityService:
    if not identity_service:
        raise RuntimeError("Identity service not initialized")
    return identity_service


# ============================================================================
# STARTUP/SHUTDOWN
# ============================================================================

async def initialize_clients():
    """Initialize all global clients at startup."""
    global supabase_client, supabase_service_client, document_store, identity_service

    supabase_client = create_client(settings.supabase_url, settings.supabase_anon_key)

    if settings.supabase_service_key:
        supabase_service_client = create_client(settings.supabase_url, settings.supabase_service_key)
    else:
        logger.warning("⚠️  SUPABASE_SERVICE_KEY not set - using anon key for data access")
        supabase_service_client = supabase_client
    logger.info("✅ Supabase connected")

    document_store = SupabaseDocumentStore(supabase_service_client)
    identity_service = IdentityService.from_store(document_store)
    logger.info("✅ Identity service initialized")


async def shutdown_clients():
    """Cleanup clients at shutdown."""
    global supabase_client, supabase_service_client, document_store, identity_service

    # supabase-py clients hold no sockets that need closing
    supabase_client = None
    supabase_service_client = None
    document_store = None
    identity_service = None
    logger.info("✅ Clients released")
