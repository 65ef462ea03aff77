"""Unit tests for MongoDB index setup."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from identity_docstore.infrastructure.config import TableNamesConfig
from identity_docstore.infrastructure.persistence.mongodb.indexes import (
    ensure_indexes,
    index_plan,
)


class TestIndexPlan:
    """Test planned indexes."""

    def test_covers_every_collection(self, table_names: TableNamesConfig) -> None:
        plan = index_plan(table_names)

        assert set(plan) == {"users", "user_logins", "user_claims", "user_tokens"}

    def test_follows_custom_names(self) -> None:
        plan = index_plan(TableNamesConfig(users="AspNetUsers"))

        assert "AspNetUsers" in plan
        assert "users" not in plan

    def test_claim_lookup_indexes(self, table_names: TableNamesConfig) -> None:
        keys = {name: list(spec) for name, spec in index_plan(table_names)["user_claims"]}

        assert keys["idx_user_claim_type"] == [("user_id", 1), ("claim_type", 1)]
        assert keys["idx_claim_type_value"] == [("claim_type", 1), ("claim_value", 1)]


class TestEnsureIndexes:
    """Test index creation against mocked Motor."""

    @pytest.mark.asyncio
    async def test_creates_all_non_unique(self, table_names: TableNamesConfig) -> None:
        collection = MagicMock()
        collection.create_index = AsyncMock()
        db = MagicMock()
        db.__getitem__ = MagicMock(return_value=collection)

        created = await ensure_indexes(db, table_names)

        assert len(created) == 7
        assert "users.idx_normalized_email" in created
        assert collection.create_index.await_count == 7
        for call in collection.create_index.await_args_list:
            assert "unique" not in call.kwargs
            assert call.kwargs["background"] is True

    @pytest.mark.asyncio
    async def test_driver_error_propagates(self, table_names: TableNamesConfig) -> None:
        collection = MagicMock()
        collection.create_index = AsyncMock(side_effect=RuntimeError("not authorized"))
        db = MagicMock()
        db.__getitem__ = MagicMock(return_value=collection)

        with pytest.raises(RuntimeError, match="not authorized"):
            await ensure_indexes(db, table_names)
