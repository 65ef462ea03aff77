"""In-memory document backend."""

from identity_docstore.infrastructure.persistence.in_memory.document_client import (
    InMemoryDocumentClient,
    InMemoryTransaction,
)

__all__ = ["InMemoryDocumentClient", "InMemoryTransaction"]
