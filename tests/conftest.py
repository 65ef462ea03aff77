"""
Shared fixtures for identity store tests.

All unit tests run against the in-memory document backend; MongoDB
integration tests live under tests/integration/ and are skipped by default.
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

import pytest

from identity_docstore.domain.identity.core.entities import IdentityUser
from identity_docstore.domain.identity.core.ports.document_client import (
    DocumentClient,
    DocumentSnapshot,
    DocumentTransaction,
    Filters,
)
from identity_docstore.infrastructure.config import TableNamesConfig
from identity_docstore.infrastructure.identity.user_store import DocumentUserStore
from identity_docstore.infrastructure.persistence.in_memory.document_client import (
    InMemoryDocumentClient,
)

T = TypeVar("T")


class CountingDocumentClient(DocumentClient):
    """Delegates to an in-memory client and counts every call."""

    def __init__(self, inner: Optional[InMemoryDocumentClient] = None) -> None:
        self.inner = inner or InMemoryDocumentClient()
        self.calls: Counter[str] = Counter()

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())

    async def get_document(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        self.calls["get_document"] += 1
        return await self.inner.get_document(collection, doc_id)

    async def set_document(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        self.calls["set_document"] += 1
        await self.inner.set_document(collection, doc_id, fields)

    async def update_document(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        self.calls["update_document"] += 1
        await self.inner.update_document(collection, doc_id, fields)

    async def delete_document(self, collection: str, doc_id: str) -> None:
        self.calls["delete_document"] += 1
        await self.inner.delete_document(collection, doc_id)

    async def add_document(self, collection: str, fields: Dict[str, Any]) -> str:
        self.calls["add_document"] += 1
        return await self.inner.add_document(collection, fields)

    async def query(self, collection: str, filters: Filters) -> List[DocumentSnapshot]:
        self.calls["query"] += 1
        return await self.inner.query(collection, filters)

    async def run_transaction(
        self, fn: Callable[[DocumentTransaction], Awaitable[T]]
    ) -> T:
        self.calls["run_transaction"] += 1
        return await self.inner.run_transaction(fn)


class FailingInsertTransaction(DocumentTransaction):
    """Transaction whose n-th add_document raises ConnectionError."""

    def __init__(self, inner: DocumentTransaction, fail_on: int) -> None:
        self.inner = inner
        self.fail_on = fail_on
        self.inserts = 0

    async def get_document(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        return await self.inner.get_document(collection, doc_id)

    async def query(self, collection: str, filters: Filters) -> List[DocumentSnapshot]:
        return await self.inner.query(collection, filters)

    async def set_document(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        await self.inner.set_document(collection, doc_id, fields)

    async def update_document(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        await self.inner.update_document(collection, doc_id, fields)

    async def delete_document(self, collection: str, doc_id: str) -> None:
        await self.inner.delete_document(collection, doc_id)

    async def add_document(self, collection: str, fields: Dict[str, Any]) -> str:
        self.inserts += 1
        if self.inserts == self.fail_on:
            raise ConnectionError("insert failed")
        return await self.inner.add_document(collection, fields)


class FailingInsertClient(CountingDocumentClient):
    """In-memory client whose transactions fail on their second insert."""

    def __init__(self, fail_on: int = 2) -> None:
        super().__init__()
        self.fail_on = fail_on

    async def run_transaction(
        self, fn: Callable[[DocumentTransaction], Awaitable[T]]
    ) -> T:
        self.calls["run_transaction"] += 1

        async def failing(transaction: DocumentTransaction) -> T:
            return await fn(FailingInsertTransaction(transaction, self.fail_on))

        return await self.inner.run_transaction(failing)


# ═══════════════════════════════════════════════════════════
# INFRASTRUCTURE FIXTURES
# ═══════════════════════════════════════════════════════════


@pytest.fixture
def table_names() -> TableNamesConfig:
    """Default collection names."""
    return TableNamesConfig()


@pytest.fixture
def client() -> InMemoryDocumentClient:
    """Fresh in-memory document client."""
    return InMemoryDocumentClient()


@pytest.fixture
def counting_client() -> CountingDocumentClient:
    """Call-counting client over a fresh in-memory backend."""
    return CountingDocumentClient()


@pytest.fixture
def failing_insert_client() -> FailingInsertClient:
    """Client whose transactions fail on their second insert."""
    return FailingInsertClient()


@pytest.fixture
def store(client: InMemoryDocumentClient, table_names: TableNamesConfig) -> DocumentUserStore:
    """User store over the in-memory client."""
    return DocumentUserStore(client, table_names)


# ═══════════════════════════════════════════════════════════
# DOMAIN FIXTURES
# ═══════════════════════════════════════════════════════════


@pytest.fixture
def sample_user() -> IdentityUser:
    """Sample user, not yet persisted."""
    return IdentityUser(
        user_name="alice",
        normalized_user_name="ALICE",
        email="alice@example.com",
        normalized_email="ALICE@EXAMPLE.COM",
        security_stamp="security-stamp-1",
    )


@pytest.fixture
def other_user() -> IdentityUser:
    """Second sample user, not yet persisted."""
    return IdentityUser(
        user_name="bob",
        normalized_user_name="BOB",
        email="bob@example.com",
        normalized_email="BOB@EXAMPLE.COM",
    )
