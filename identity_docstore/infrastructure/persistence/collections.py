"""
Collection references for the identity collections.

Thin, immutable handles over a DocumentClient:

    collections = IdentityCollections(client, TableNamesConfig())
    snapshot = await collections.users.document("u1").get()
    claims = await collections.claims.where_equal_to("user_id", "u1").get()

Every reference can also be used inside a transaction by passing the
transaction object (``ref.get(transaction)``, ``query.get(transaction)``).
Equality filters on denormalized ``user_id`` fields are the only relational
primitive available.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar, Union

from pydantic import BaseModel

from identity_docstore.domain.identity.core.exceptions import ConfigurationError
from identity_docstore.domain.identity.core.ports.document_client import (
    DocumentClient,
    DocumentSnapshot,
    DocumentTransaction,
)
from identity_docstore.infrastructure.config import TableNamesConfig
from identity_docstore.infrastructure.persistence.mapping import EntityMapper

TEntity = TypeVar("TEntity", bound=BaseModel)

Executor = Union[DocumentClient, DocumentTransaction]


class DocumentReference:
    """Handle on one document addressed by collection + id."""

    def __init__(self, client: DocumentClient, collection: str, doc_id: str) -> None:
        self._client = client
        self.collection = collection
        self.id = doc_id

    def _executor(self, transaction: Optional[DocumentTransaction]) -> Executor:
        return transaction if transaction is not None else self._client

    async def get(self, transaction: Optional[DocumentTransaction] = None) -> Optional[DocumentSnapshot]:
        return await self._executor(transaction).get_document(self.collection, self.id)

    async def set(
        self, fields: Dict[str, Any], transaction: Optional[DocumentTransaction] = None
    ) -> None:
        await self._executor(transaction).set_document(self.collection, self.id, fields)

    async def update(
        self, fields: Dict[str, Any], transaction: Optional[DocumentTransaction] = None
    ) -> None:
        await self._executor(transaction).update_document(self.collection, self.id, fields)

    async def delete(self, transaction: Optional[DocumentTransaction] = None) -> None:
        await self._executor(transaction).delete_document(self.collection, self.id)

    def __repr__(self) -> str:
        return f"DocumentReference('{self.collection}/{self.id}')"


class Query:
    """Conjunction of equality filters over one collection."""

    def __init__(
        self,
        client: DocumentClient,
        collection: str,
        filters: Tuple[Tuple[str, Any], ...] = (),
    ) -> None:
        self._client = client
        self.collection = collection
        self.filters = filters

    def where_equal_to(self, field: str, value: Any) -> "Query":
        """Return a new query with one more equality filter."""
        return Query(self._client, self.collection, self.filters + ((field, value),))

    async def get(self, transaction: Optional[DocumentTransaction] = None) -> List[DocumentSnapshot]:
        executor: Executor = transaction if transaction is not None else self._client
        return await executor.query(self.collection, self.filters)

    async def first(self, transaction: Optional[DocumentTransaction] = None) -> Optional[DocumentSnapshot]:
        """First returned match; ties are broken by backend order."""
        snapshots = await self.get(transaction)
        return snapshots[0] if snapshots else None

    def __repr__(self) -> str:
        return f"Query('{self.collection}', filters={list(self.filters)})"


class CollectionReference(Query):
    """
    Named collection: a filterless query plus key-addressed access.

    Example:
        >>> users = CollectionReference(client, "users")
        >>> ref = users.document("u1")
        >>> await ref.set({"user_name": "alice"})
        >>> await users.where_equal_to("user_name", "alice").first()
    """

    def __init__(self, client: DocumentClient, name: str) -> None:
        if not name:
            raise ConfigurationError("collection", "collection name must be a non-empty string")
        super().__init__(client, name)
        self.name = name

    def document(self, doc_id: str) -> DocumentReference:
        return DocumentReference(self._client, self.name, doc_id)

    async def add(
        self, fields: Dict[str, Any], transaction: Optional[DocumentTransaction] = None
    ) -> DocumentReference:
        """Insert under a backend-generated id."""
        executor: Executor = transaction if transaction is not None else self._client
        doc_id = await executor.add_document(self.name, fields)
        return self.document(doc_id)

    async def stream(self) -> List[DocumentSnapshot]:
        """Every document in the collection."""
        return await self.get()

    def __repr__(self) -> str:
        return f"CollectionReference('{self.name}')"


class IdentityCollections:
    """
    Resolves the four identity collections from configuration.

    Attributes:
        users: one document per user, keyed by user id
        logins: external logins, filtered by ``user_id``
        claims: user claims, filtered by ``user_id``
        tokens: user tokens, filtered by ``user_id``
    """

    def __init__(self, client: DocumentClient, table_names: TableNamesConfig) -> None:
        if client is None:
            raise ConfigurationError("client", "a DocumentClient is required")
        if table_names is None:
            raise ConfigurationError("table_names", "a TableNamesConfig is required")

        self.client = client
        self.table_names = table_names
        self.users = CollectionReference(client, table_names.users)
        self.logins = CollectionReference(client, table_names.user_logins)
        self.claims = CollectionReference(client, table_names.user_claims)
        self.tokens = CollectionReference(client, table_names.user_tokens)

    @staticmethod
    def to_entity(entity_type: Type[TEntity], snapshot: DocumentSnapshot) -> TEntity:
        """Map a retrieved document onto ``entity_type``."""
        return EntityMapper.from_document(entity_type, snapshot.fields)

    @classmethod
    def to_entities(
        cls, entity_type: Type[TEntity], snapshots: List[DocumentSnapshot]
    ) -> List[TEntity]:
        return [cls.to_entity(entity_type, s) for s in snapshots]
