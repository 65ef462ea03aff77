"""In-memory DocumentClient for testing and local development."""

from __future__ import annotations

import asyncio
import copy
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

import structlog

from identity_docstore.domain.identity.core.ports.document_client import (
    DocumentClient,
    DocumentSnapshot,
    DocumentTransaction,
    Filters,
)

T = TypeVar("T")

logger = structlog.get_logger(__name__)

# (operation, collection, doc_id, fields)
_Write = Tuple[str, str, str, Optional[Dict[str, Any]]]


class InMemoryTransaction(DocumentTransaction):
    """
    Buffered transaction over an InMemoryDocumentClient.

    Reads see committed data only; writes are applied in order on commit.
    """

    def __init__(self, client: "InMemoryDocumentClient") -> None:
        self._client = client
        self._writes: List[_Write] = []

    async def get_document(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        return self._client._read(collection, doc_id)

    async def query(self, collection: str, filters: Filters) -> List[DocumentSnapshot]:
        return self._client._match(collection, filters)

    async def set_document(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        self._writes.append(("set", collection, doc_id, copy.deepcopy(fields)))

    async def update_document(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        self._writes.append(("update", collection, doc_id, copy.deepcopy(fields)))

    async def delete_document(self, collection: str, doc_id: str) -> None:
        self._writes.append(("delete", collection, doc_id, None))

    async def add_document(self, collection: str, fields: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        self._writes.append(("set", collection, doc_id, copy.deepcopy(fields)))
        return doc_id

    def _commit(self) -> None:
        for operation, collection, doc_id, fields in self._writes:
            self._client._apply(operation, collection, doc_id, fields)


class InMemoryDocumentClient(DocumentClient):
    """
    Dictionary-backed implementation of DocumentClient.

    Transactions are serialized with an asyncio.Lock, which also guards
    single-document writes, so a transaction's read-compare-write sequence is
    never interleaved with another writer. Do not call the client's own
    methods from inside a transaction function; use the transaction object.

    Examples:
        >>> client = InMemoryDocumentClient()
        >>> doc_id = await client.add_document("user_claims", {"user_id": "u1"})
        >>> len(await client.query("user_claims", [("user_id", "u1")]))
        1
    """

    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------
    # DocumentClient
    # ------------------------------------------------------------

    async def get_document(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        return self._read(collection, doc_id)

    async def set_document(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        async with self._lock:
            self._apply("set", collection, doc_id, copy.deepcopy(fields))

    async def update_document(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        async with self._lock:
            self._apply("update", collection, doc_id, copy.deepcopy(fields))

    async def delete_document(self, collection: str, doc_id: str) -> None:
        async with self._lock:
            self._apply("delete", collection, doc_id, None)

    async def add_document(self, collection: str, fields: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        await self.set_document(collection, doc_id, fields)
        return doc_id

    async def query(self, collection: str, filters: Filters) -> List[DocumentSnapshot]:
        return self._match(collection, filters)

    async def run_transaction(
        self, fn: Callable[[DocumentTransaction], Awaitable[T]]
    ) -> T:
        async with self._lock:
            transaction = InMemoryTransaction(self)
            result = await fn(transaction)
            transaction._commit()
            return result

    # ------------------------------------------------------------
    # Test helpers
    # ------------------------------------------------------------

    def clear(self) -> None:
        """Remove every document from every collection."""
        self._collections.clear()

    def count(self, collection: str) -> int:
        """Number of documents in ``collection``."""
        return len(self._collections.get(collection, {}))

    # ------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------

    def _read(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        fields = self._collections.get(collection, {}).get(doc_id)
        if fields is None:
            return None
        return DocumentSnapshot(collection=collection, id=doc_id, fields=copy.deepcopy(fields))

    def _match(self, collection: str, filters: Filters) -> List[DocumentSnapshot]:
        documents = self._collections.get(collection, {})
        return [
            DocumentSnapshot(collection=collection, id=doc_id, fields=copy.deepcopy(fields))
            for doc_id, fields in documents.items()
            if all(name in fields and fields[name] == value for name, value in filters)
        ]

    def _apply(
        self,
        operation: str,
        collection: str,
        doc_id: str,
        fields: Optional[Dict[str, Any]],
    ) -> None:
        documents = self._collections.setdefault(collection, {})
        if operation == "set":
            documents[doc_id] = fields or {}
        elif operation == "update":
            if doc_id in documents:
                documents[doc_id].update(fields or {})
        elif operation == "delete":
            documents.pop(doc_id, None)
        else:
            raise ValueError(f"Unknown write operation: {operation}")
        logger.debug("Document write applied", operation=operation, collection=collection, doc_id=doc_id)
