"""
MongoDB DocumentClient implementation.

Maps the document port onto Motor:
- document id -> ``_id``
- equality filters -> ``find(filter_dict)``
- transactions -> client session + ``with_transaction``

Multi-document transactions require a replica set or sharded cluster; a
standalone mongod rejects them.

Driver errors are logged and re-raised unchanged; retry policy belongs to the
driver (``with_transaction`` retries transient transaction errors itself).
"""

from __future__ import annotations

import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

import structlog
from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorClientSession,
    AsyncIOMotorDatabase,
)

from identity_docstore.domain.identity.core.exceptions import ConfigurationError
from identity_docstore.domain.identity.core.ports.document_client import (
    DocumentClient,
    DocumentSnapshot,
    DocumentTransaction,
    Filters,
)
from identity_docstore.infrastructure.config import get_mongodb_database, get_mongodb_uri

T = TypeVar("T")

logger = structlog.get_logger(__name__)

ID_FIELD = "_id"


def _to_snapshot(collection: str, document: Dict[str, Any]) -> DocumentSnapshot:
    fields = dict(document)
    doc_id = fields.pop(ID_FIELD)
    return DocumentSnapshot(collection=collection, id=str(doc_id), fields=fields)


def _strip_id(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in fields.items() if k != ID_FIELD}


class _MongoOperations:
    """Document primitives shared by the client and its transactions."""

    def __init__(
        self,
        db: AsyncIOMotorDatabase[Dict[str, Any]],
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> None:
        self._db = db
        self._session = session

    async def get_document(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        try:
            document = await self._db[collection].find_one({ID_FIELD: doc_id}, session=self._session)
        except Exception as e:
            logger.error("find_one failed", collection=collection, doc_id=doc_id, error=str(e))
            raise
        if document is None:
            return None
        return _to_snapshot(collection, document)

    async def query(self, collection: str, filters: Filters) -> List[DocumentSnapshot]:
        filter_dict = dict(filters)
        try:
            cursor = self._db[collection].find(filter_dict, session=self._session)
            documents = await cursor.to_list(length=None)
        except Exception as e:
            logger.error("find failed", collection=collection, filter=filter_dict, error=str(e))
            raise
        return [_to_snapshot(collection, d) for d in documents]

    async def set_document(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        try:
            await self._db[collection].replace_one(
                {ID_FIELD: doc_id}, _strip_id(fields), upsert=True, session=self._session
            )
        except Exception as e:
            logger.error("replace_one failed", collection=collection, doc_id=doc_id, error=str(e))
            raise

    async def update_document(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        try:
            await self._db[collection].update_one(
                {ID_FIELD: doc_id}, {"$set": _strip_id(fields)}, session=self._session
            )
        except Exception as e:
            logger.error("update_one failed", collection=collection, doc_id=doc_id, error=str(e))
            raise

    async def delete_document(self, collection: str, doc_id: str) -> None:
        try:
            await self._db[collection].delete_one({ID_FIELD: doc_id}, session=self._session)
        except Exception as e:
            logger.error("delete_one failed", collection=collection, doc_id=doc_id, error=str(e))
            raise

    async def add_document(self, collection: str, fields: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        document = {**_strip_id(fields), ID_FIELD: doc_id}
        try:
            await self._db[collection].insert_one(document, session=self._session)
        except Exception as e:
            logger.error("insert_one failed", collection=collection, error=str(e))
            raise
        return doc_id


class MongoTransaction(_MongoOperations, DocumentTransaction):
    """Document primitives bound to one client session inside a transaction."""

    def __init__(
        self,
        db: AsyncIOMotorDatabase[Dict[str, Any]],
        session: AsyncIOMotorClientSession,
    ) -> None:
        super().__init__(db, session)


class MongoDocumentClient(_MongoOperations, DocumentClient):
    """
    Motor-backed DocumentClient.

    Example:
        >>> from motor.motor_asyncio import AsyncIOMotorClient
        >>> motor_client = AsyncIOMotorClient("mongodb://localhost:27017/?replicaSet=rs0")
        >>> client = MongoDocumentClient(motor_client, database_name="identity")
        >>> await client.set_document("users", "u1", {"user_name": "alice"})
    """

    def __init__(
        self,
        client: Optional[AsyncIOMotorClient[Dict[str, Any]]] = None,
        database_name: Optional[str] = None,
    ) -> None:
        """
        Initialize with an optional Motor client.

        Args:
            client: Motor client (if None, creates one from MONGODB_URI)
            database_name: Database name (defaults to MONGODB_DATABASE)

        Raises:
            ConfigurationError: If no client is given and MONGODB_URI is unset
        """
        if client is None:
            uri = get_mongodb_uri()
            if not uri:
                raise ConfigurationError(
                    "MONGODB_URI",
                    "not configured; set MONGODB_URI, MONGODB_USER and MONGODB_PASSWORD",
                )
            client = AsyncIOMotorClient(uri)

        self._client: AsyncIOMotorClient[Dict[str, Any]] = client
        self.database_name = database_name or get_mongodb_database()
        super().__init__(self._client[self.database_name])

        logger.info("MongoDocumentClient initialized", database=self.database_name)

    async def run_transaction(
        self, fn: Callable[[DocumentTransaction], Awaitable[T]]
    ) -> T:
        async def callback(session: AsyncIOMotorClientSession) -> T:
            return await fn(MongoTransaction(self._db, session))

        async with await self._client.start_session() as session:
            try:
                return await session.with_transaction(callback)
            except Exception as e:
                logger.warning("Transaction aborted", database=self.database_name, error=str(e))
                raise

    def close(self) -> None:
        """Close the underlying Motor client."""
        self._client.close()
        logger.info("MongoDocumentClient closed", database=self.database_name)
