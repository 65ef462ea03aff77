"""
MongoDB indexes backing the store's equality-filtered queries.

None of these indexes is unique: duplicate normalized names, emails or
(login_provider, provider_key) pairs are not rejected by the store.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence, Tuple

import structlog
from motor.motor_asyncio import AsyncIOMotorDatabase

from identity_docstore.infrastructure.config import TableNamesConfig

logger = structlog.get_logger(__name__)

IndexSpec = Tuple[str, Sequence[Tuple[str, int]]]


def index_plan(table_names: TableNamesConfig) -> Dict[str, List[IndexSpec]]:
    """Indexes per collection name: (index name, key pattern)."""
    return {
        table_names.users: [
            ("idx_normalized_user_name", [("normalized_user_name", 1)]),
            ("idx_normalized_email", [("normalized_email", 1)]),
        ],
        table_names.user_claims: [
            ("idx_user_claim_type", [("user_id", 1), ("claim_type", 1)]),
            ("idx_claim_type_value", [("claim_type", 1), ("claim_value", 1)]),
        ],
        table_names.user_logins: [
            ("idx_user", [("user_id", 1)]),
            ("idx_provider_key", [("login_provider", 1), ("provider_key", 1)]),
        ],
        table_names.user_tokens: [
            ("idx_user", [("user_id", 1)]),
        ],
    }


async def ensure_indexes(
    db: AsyncIOMotorDatabase[Dict[str, Any]], table_names: TableNamesConfig
) -> List[str]:
    """Create every planned index (idempotent) and return "collection.index" names."""
    created: List[str] = []
    for collection_name, specs in index_plan(table_names).items():
        collection = db[collection_name]
        for name, keys in specs:
            await collection.create_index(list(keys), name=name, background=True)
            created.append(f"{collection_name}.{name}")
            logger.info("Index ensured", collection=collection_name, index=name)
    return created
