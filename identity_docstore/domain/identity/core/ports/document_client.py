"""
Document database port (interface).

The store only needs five primitives from the backing database: key lookup,
key write, key delete, equality-filtered query and an atomic transaction
exposing the same primitives. Anything richer (joins, unique indexes) is
deliberately not part of the contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")

# Equality filters: every (field, value) pair must match exactly.
Filters = Sequence[Tuple[str, Any]]


@dataclass(frozen=True)
class DocumentSnapshot:
    """
    Point-in-time copy of a stored document.

    ``fields`` never contains the backend's own key field; the key is ``id``.
    """

    collection: str
    id: str
    fields: Dict[str, Any] = field(default_factory=dict)

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)


class DocumentTransaction(ABC):
    """
    Read/write primitives scoped to one atomic commit.

    Reads observe the transaction's snapshot; writes become visible to other
    callers only when the transaction function returns without raising.
    """

    @abstractmethod
    async def get_document(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        pass

    @abstractmethod
    async def query(self, collection: str, filters: Filters) -> List[DocumentSnapshot]:
        pass

    @abstractmethod
    async def set_document(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    async def update_document(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    async def delete_document(self, collection: str, doc_id: str) -> None:
        pass

    @abstractmethod
    async def add_document(self, collection: str, fields: Dict[str, Any]) -> str:
        pass


class DocumentClient(ABC):
    """
    Repository-facing document database client.

    Implementations must be safe for concurrent use by many coroutines; a
    single instance is meant to be shared process-wide.

    Examples:
        >>> client = InMemoryDocumentClient()
        >>> await client.set_document("users", "u1", {"user_name": "alice"})
        >>> snapshot = await client.get_document("users", "u1")
        >>> snapshot.get("user_name")
        'alice'
    """

    @abstractmethod
    async def get_document(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        """Return the document or None when absent."""
        pass

    @abstractmethod
    async def set_document(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        """Create or fully overwrite the document."""
        pass

    @abstractmethod
    async def update_document(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        """Merge ``fields`` into an existing document."""
        pass

    @abstractmethod
    async def delete_document(self, collection: str, doc_id: str) -> None:
        """Delete the document; deleting an absent document is a no-op."""
        pass

    @abstractmethod
    async def add_document(self, collection: str, fields: Dict[str, Any]) -> str:
        """Insert under a backend-generated key and return that key."""
        pass

    @abstractmethod
    async def query(self, collection: str, filters: Filters) -> List[DocumentSnapshot]:
        """
        Return every document matching all equality filters.

        An empty filter sequence selects the whole collection. Result order is
        backend-defined.
        """
        pass

    @abstractmethod
    async def run_transaction(
        self, fn: Callable[[DocumentTransaction], Awaitable[T]]
    ) -> T:
        """
        Run ``fn`` inside one atomic transaction and return its result.

        If ``fn`` raises, no write performed through the transaction is
        applied and the exception propagates.
        """
        pass
