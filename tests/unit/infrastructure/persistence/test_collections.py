"""Unit tests for collection references over the in-memory client."""

import pytest

from identity_docstore.domain.identity.core.entities import UserClaim
from identity_docstore.domain.identity.core.exceptions import ConfigurationError
from identity_docstore.domain.identity.core.ports import DocumentSnapshot
from identity_docstore.infrastructure.config import TableNamesConfig
from identity_docstore.infrastructure.persistence.collections import (
    CollectionReference,
    IdentityCollections,
    Query,
)
from identity_docstore.infrastructure.persistence.in_memory.document_client import (
    InMemoryDocumentClient,
)


class TestIdentityCollections:
    """Test collection resolution."""

    def test_default_names(self, client: InMemoryDocumentClient) -> None:
        collections = IdentityCollections(client, TableNamesConfig())

        assert collections.users.name == "users"
        assert collections.logins.name == "user_logins"
        assert collections.claims.name == "user_claims"
        assert collections.tokens.name == "user_tokens"

    def test_custom_names(self, client: InMemoryDocumentClient) -> None:
        names = TableNamesConfig(users="AspNetUsers", user_claims="AspNetUserClaims")
        collections = IdentityCollections(client, names)

        assert collections.users.name == "AspNetUsers"
        assert collections.claims.name == "AspNetUserClaims"
        assert collections.logins.name == "user_logins"

    def test_missing_client_raises(self) -> None:
        with pytest.raises(ConfigurationError):
            IdentityCollections(None, TableNamesConfig())  # type: ignore[arg-type]

    def test_missing_table_names_raises(self, client: InMemoryDocumentClient) -> None:
        with pytest.raises(ConfigurationError):
            IdentityCollections(client, None)  # type: ignore[arg-type]

    def test_to_entities(self) -> None:
        snapshots = [
            DocumentSnapshot("user_claims", "c1", {"user_id": "u1", "claim_type": "role"}),
            DocumentSnapshot("user_claims", "c2", {"user_id": "u1", "claim_type": "dept"}),
        ]

        claims = IdentityCollections.to_entities(UserClaim, snapshots)

        assert [c.claim_type for c in claims] == ["role", "dept"]


class TestCollectionReference:
    """Test document and query access."""

    def test_empty_name_raises(self, client: InMemoryDocumentClient) -> None:
        with pytest.raises(ConfigurationError):
            CollectionReference(client, "")

    @pytest.mark.asyncio
    async def test_document_set_get_delete(self, client: InMemoryDocumentClient) -> None:
        users = CollectionReference(client, "users")
        ref = users.document("u1")

        await ref.set({"user_name": "alice"})
        snapshot = await ref.get()
        assert snapshot is not None
        assert snapshot.id == "u1"
        assert snapshot.get("user_name") == "alice"

        await ref.update({"email": "alice@example.com"})
        snapshot = await ref.get()
        assert snapshot is not None
        assert snapshot.fields == {"user_name": "alice", "email": "alice@example.com"}

        await ref.delete()
        assert await ref.get() is None

    @pytest.mark.asyncio
    async def test_add_generates_id(self, client: InMemoryDocumentClient) -> None:
        claims = CollectionReference(client, "user_claims")

        first = await claims.add({"user_id": "u1"})
        second = await claims.add({"user_id": "u1"})

        assert first.id != second.id
        assert len(await claims.stream()) == 2

    @pytest.mark.asyncio
    async def test_where_equal_to_is_conjunctive(self, client: InMemoryDocumentClient) -> None:
        claims = CollectionReference(client, "user_claims")
        await claims.add({"user_id": "u1", "claim_type": "role", "claim_value": "admin"})
        await claims.add({"user_id": "u1", "claim_type": "dept", "claim_value": "it"})
        await claims.add({"user_id": "u2", "claim_type": "role", "claim_value": "admin"})

        matches = await claims.where_equal_to("user_id", "u1").where_equal_to(
            "claim_type", "role"
        ).get()

        assert len(matches) == 1
        assert matches[0].get("claim_value") == "admin"

    def test_where_equal_to_returns_new_query(self, client: InMemoryDocumentClient) -> None:
        """Filtering never mutates the collection reference."""
        claims = CollectionReference(client, "user_claims")

        filtered = claims.where_equal_to("user_id", "u1")

        assert isinstance(filtered, Query)
        assert claims.filters == ()
        assert filtered.filters == (("user_id", "u1"),)

    @pytest.mark.asyncio
    async def test_first_returns_none_without_match(
        self, client: InMemoryDocumentClient
    ) -> None:
        users = CollectionReference(client, "users")

        assert await users.where_equal_to("normalized_email", "NOBODY").first() is None

    @pytest.mark.asyncio
    async def test_references_work_inside_transaction(
        self, client: InMemoryDocumentClient
    ) -> None:
        tokens = CollectionReference(client, "user_tokens")

        async def apply(transaction):  # type: ignore[no-untyped-def]
            ref = await tokens.add({"user_id": "u1", "name": "access"}, transaction)
            assert await tokens.where_equal_to("user_id", "u1").get(transaction) == []
            return ref

        ref = await client.run_transaction(apply)

        assert (await ref.get()) is not None
