"""Identity infrastructure: document and identity store adapters."""

from custodia.domain.identity.infrastructure.http_identity_store import (
    HttpIdentityStore,
    IdentityStoreSettings,
    get_identity_store_settings,
)
from custodia.domain.identity.infrastructure.in_memory import (
    InMemoryDocumentStore,
    InMemoryIdentityStore,
    StoreCall,
)
from custodia.domain.identity.infrastructure.sql_document_store import (
    SqlDocumentStore,
    build_schema,
)

__all__ = [
    "HttpIdentityStore",
    "IdentityStoreSettings",
    "InMemoryDocumentStore",
    "InMemoryIdentityStore",
    "SqlDocumentStore",
    "StoreCall",
    "build_schema",
    "get_identity_store_settings",
]
