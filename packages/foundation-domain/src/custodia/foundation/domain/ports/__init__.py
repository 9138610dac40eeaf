"""Domain port interfaces for hexagonal architecture.

Ports define abstract interfaces that the domain layer uses to interact
with external services. Implementations (adapters) live in infrastructure.
"""

from custodia.foundation.domain.ports.document_store import DocumentStorePort
from custodia.foundation.domain.ports.identity_store import IdentityStorePort

__all__ = ["DocumentStorePort", "IdentityStorePort"]
