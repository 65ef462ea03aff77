"""Document client factory for environment-based selection.

This factory creates the appropriate DocumentClient implementation based on
the IDENTITY_STORE_BACKEND environment variable:
- "inmemory": InMemoryDocumentClient (for testing)
- "mongodb": MongoDocumentClient (for production)

Default: inmemory

Usage:
    from identity_docstore.infrastructure.persistence.factory import (
        create_user_store,
    )

    store = create_user_store()  # shared client, collections from env
"""

from __future__ import annotations

from typing import Optional

import structlog

from identity_docstore.domain.identity.core.exceptions import ConfigurationError
from identity_docstore.domain.identity.core.ports.document_client import DocumentClient
from identity_docstore.domain.identity.core.services import IdentityErrorDescriber
from identity_docstore.infrastructure.config import (
    StoreOptions,
    TableNamesConfig,
    get_mongodb_uri,
    get_store_backend,
)
from identity_docstore.infrastructure.identity.user_store import DocumentUserStore
from identity_docstore.infrastructure.persistence.in_memory.document_client import (
    InMemoryDocumentClient,
)
from identity_docstore.infrastructure.persistence.mongodb.document_client import (
    MongoDocumentClient,
)

logger = structlog.get_logger(__name__)


def create_document_client() -> DocumentClient:
    """Create document client based on environment configuration.

    Returns:
        DocumentClient: The configured implementation

    Raises:
        ConfigurationError: If the backend name is unknown, or mongodb is
            selected without MONGODB_URI

    Environment Variables:
        IDENTITY_STORE_BACKEND: "inmemory" | "mongodb" (default: inmemory)
        MONGODB_URI: MongoDB connection string (required for mongodb)
        MONGODB_DATABASE: Database name (default: identity)
    """
    backend = get_store_backend()

    if backend == "mongodb":
        if not get_mongodb_uri():
            raise ConfigurationError(
                "MONGODB_URI",
                "IDENTITY_STORE_BACKEND=mongodb but MONGODB_URI not set",
            )
        logger.info("Creating document client", backend=backend)
        return MongoDocumentClient()

    if backend == "inmemory":
        logger.info("Creating document client", backend=backend)
        return InMemoryDocumentClient()

    raise ConfigurationError(
        "IDENTITY_STORE_BACKEND",
        f"invalid value '{backend}', expected 'inmemory' or 'mongodb'",
    )


# Singleton instance
_document_client: Optional[DocumentClient] = None


def get_document_client() -> DocumentClient:
    """Get the process-wide document client.

    Returns:
        DocumentClient: The singleton client
    """
    global _document_client

    if _document_client is None:
        _document_client = create_document_client()

    return _document_client


def reset_document_client() -> None:
    """Reset the singleton (for testing purposes)."""
    global _document_client
    _document_client = None


def create_user_store(
    describer: Optional[IdentityErrorDescriber] = None,
    options: Optional[StoreOptions] = None,
) -> DocumentUserStore:
    """Create a user store over the shared client, collections from env."""
    return DocumentUserStore(
        get_document_client(),
        TableNamesConfig.from_env(),
        describer=describer,
        options=options,
    )
