"""Setup MongoDB indexes for the identity collections.

Creates the (non-unique) indexes behind the store's equality-filtered
lookups: normalized name/email on users, user_id / type / value on claims,
user_id and (provider, key) on logins, user_id on tokens.

Usage:
    python scripts/setup_mongodb_indexes.py

Environment Variables:
    MONGODB_URI: MongoDB connection string (required)
    MONGODB_DATABASE: Database name (default: identity)
    IDENTITY_*_COLLECTION: Collection name overrides
"""

import asyncio
import sys
from pathlib import Path

import structlog
from dotenv import load_dotenv
from motor.motor_asyncio import AsyncIOMotorClient

from identity_docstore.infrastructure.config import (
    TableNamesConfig,
    get_mongodb_database,
    get_mongodb_uri,
)
from identity_docstore.infrastructure.logging_config import configure_logging
from identity_docstore.infrastructure.persistence.mongodb.indexes import ensure_indexes

logger = structlog.get_logger(__name__)


async def main() -> int:
    env_path = Path(__file__).parent.parent / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        logger.debug("Loaded environment", path=str(env_path))

    uri = get_mongodb_uri()
    if not uri:
        logger.error("MONGODB_URI not set")
        return 1

    client: AsyncIOMotorClient = AsyncIOMotorClient(uri)  # type: ignore
    try:
        db = client[get_mongodb_database()]
        created = await ensure_indexes(db, TableNamesConfig.from_env())
        logger.info("Index setup completed", count=len(created))
        return 0
    except Exception as e:
        logger.error("Index setup failed", error=str(e))
        return 1
    finally:
        client.close()


if __name__ == "__main__":
    configure_logging()
    sys.exit(asyncio.run(main()))
