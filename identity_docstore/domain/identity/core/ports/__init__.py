"""Identity domain ports."""

from identity_docstore.domain.identity.core.ports.document_client import (
    DocumentClient,
    DocumentSnapshot,
    DocumentTransaction,
    Filters,
)
from identity_docstore.domain.identity.core.ports.user_store import IUserStore

__all__ = [
    "DocumentClient",
    "DocumentSnapshot",
    "DocumentTransaction",
    "Filters",
    "IUserStore",
]
