"""
Document-database user store.

Implements IUserStore over any DocumentClient (MongoDB, in-memory).

Storage design:
- users: one document per user, ``_id`` = user id
- user_claims / user_logins / user_tokens: independent documents carrying the
  owning ``user_id``; every lookup is an equality filter on it
- update/delete: read-compare-write of ``concurrency_stamp`` inside one
  transaction (optimistic locking, no locks held between calls)
- no document caching: every read is a round trip

Known limitations:
- no uniqueness enforcement on normalized name/email or on
  (login_provider, provider_key); callers check with a prior lookup
- get_users_for_claim is N+1 (one find_by_id per matching claim)
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Iterable, List, Optional, Set

import structlog

from identity_docstore.domain.identity.core.entities import (
    IdentityUser,
    UserClaim,
    UserLogin,
    UserToken,
    new_stamp,
)
from identity_docstore.domain.identity.core.exceptions import (
    ClaimNotFoundError,
    InvalidArgumentError,
    LoginNotFoundError,
    OperationCancelledError,
    StoreDisposedError,
)
from identity_docstore.domain.identity.core.ports.document_client import (
    DocumentClient,
    DocumentTransaction,
)
from identity_docstore.domain.identity.core.ports.user_store import IUserStore
from identity_docstore.domain.identity.core.services import IdentityErrorDescriber
from identity_docstore.domain.identity.core.value_objects import (
    Claim,
    IdentityResult,
    UserLoginInfo,
)
from identity_docstore.infrastructure.config import StoreOptions, TableNamesConfig
from identity_docstore.infrastructure.identity.user_accessors import (
    UserPropertyAccessorsMixin,
)
from identity_docstore.infrastructure.persistence.collections import IdentityCollections
from identity_docstore.infrastructure.persistence.mapping import EntityMapper

logger = structlog.get_logger(__name__)

# Denormalized foreign key carried by claim, login and token documents.
USER_ID_FIELD = "user_id"
CONCURRENCY_STAMP_FIELD = "concurrency_stamp"


class DocumentUserStore(UserPropertyAccessorsMixin, IUserStore):
    """
    User store backed by a schemaless document database.

    Every public operation checks, in order and before any I/O: the caller's
    cancel event, whether the store is closed, and its required arguments.

    Examples:
        >>> client = InMemoryDocumentClient()
        >>> store = DocumentUserStore(client, TableNamesConfig())
        >>> user = IdentityUser(user_name="alice", normalized_user_name="ALICE")
        >>> await store.create(user)
        >>> found = await store.find_by_name("ALICE")
        >>> found.id == user.id
        True
    """

    AUTHENTICATOR_STORE_LOGIN_PROVIDER = "[AspNetUserStore]"
    AUTHENTICATOR_KEY_TOKEN_NAME = "AuthenticatorKey"
    RECOVERY_CODE_TOKEN_NAME = "RecoveryCodes"

    def __init__(
        self,
        client: DocumentClient,
        table_names: TableNamesConfig,
        describer: Optional[IdentityErrorDescriber] = None,
        options: Optional[StoreOptions] = None,
    ) -> None:
        """
        Initialize store.

        Args:
            client: Shared document client (not owned, never closed here)
            table_names: Collection names, validated eagerly
            describer: Error descriptions for failed results
            options: Behaviour switches (cascade delete)

        Raises:
            ConfigurationError: If client or table names are missing
        """
        self._collections = IdentityCollections(client, table_names)
        self._client = client
        self.error_describer = describer or IdentityErrorDescriber()
        self.options = options or StoreOptions()
        self._closed = False

    # ============================================================
    # Lifecycle
    # ============================================================

    def close(self) -> None:
        """Mark the store closed; the shared client stays open."""
        self._closed = True

    async def __aenter__(self) -> "DocumentUserStore":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()

    # ============================================================
    # Guards
    # ============================================================

    def _guard(self, operation: str, cancel_event: Optional[asyncio.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise OperationCancelledError(operation)
        if self._closed:
            raise StoreDisposedError(type(self).__name__)

    @staticmethod
    def _require(value: Any, name: str) -> None:
        if value is None:
            raise InvalidArgumentError(name)

    @staticmethod
    def _require_text(value: Optional[str], name: str) -> None:
        if not value:
            raise InvalidArgumentError(name)

    @classmethod
    def _require_user(cls, user: IdentityUser) -> None:
        cls._require(user, "user")
        cls._require_text(user.id, "user.id")

    @classmethod
    def _require_items(cls, items: Optional[Iterable[Any]], name: str) -> List[Any]:
        cls._require(items, name)
        materialized = list(items)  # type: ignore[arg-type]
        if any(item is None for item in materialized):
            raise InvalidArgumentError(name, "must not contain None")
        return materialized

    def _concurrency_failure(self, operation: str, user: IdentityUser) -> IdentityResult:
        logger.warning("Concurrency failure", operation=operation, user_id=user.id)
        return IdentityResult.failed(self.error_describer.concurrency_failure())

    # ============================================================
    # Users
    # ============================================================

    async def create(
        self, user: IdentityUser, cancel_event: Optional[asyncio.Event] = None
    ) -> IdentityResult:
        """
        Unconditionally upsert the user document at ``users/{id}``.

        No duplicate check on normalized name or email is made here.
        """
        self._guard("create", cancel_event)
        self._require_user(user)

        await self._collections.users.document(user.id).set(EntityMapper.to_document(user))
        logger.info("User created", user_id=user.id)
        return IdentityResult.success()

    async def update(
        self, user: IdentityUser, cancel_event: Optional[asyncio.Event] = None
    ) -> IdentityResult:
        """
        Write every declared field if the stored stamp still equals
        ``user.concurrency_stamp``. Stored fields the entity does not declare
        are left as they are.

        On success the document gets a fresh concurrency stamp, which is also
        set on ``user``. On mismatch (or a missing document) nothing is
        written and a ConcurrencyFailure result is returned.
        """
        self._guard("update", cancel_event)
        self._require_user(user)

        expected_stamp = user.concurrency_stamp
        next_stamp = new_stamp()
        document = EntityMapper.to_document(user)
        document[CONCURRENCY_STAMP_FIELD] = next_stamp
        user_ref = self._collections.users.document(user.id)

        async def apply(transaction: DocumentTransaction) -> bool:
            snapshot = await user_ref.get(transaction)
            if snapshot is None or snapshot.get(CONCURRENCY_STAMP_FIELD) != expected_stamp:
                return False
            await user_ref.update(document, transaction)
            return True

        if not await self._client.run_transaction(apply):
            return self._concurrency_failure("update", user)

        user.concurrency_stamp = next_stamp
        logger.info("User updated", user_id=user.id)
        return IdentityResult.success()

    async def delete(
        self, user: IdentityUser, cancel_event: Optional[asyncio.Event] = None
    ) -> IdentityResult:
        """
        Delete the user if the stored stamp still equals ``user.concurrency_stamp``.

        Claims, logins and tokens are left in place unless the store was
        built with ``StoreOptions(cascade_delete=True)``, in which case they
        are removed in the same transaction.
        """
        self._guard("delete", cancel_event)
        self._require_user(user)

        expected_stamp = user.concurrency_stamp
        user_ref = self._collections.users.document(user.id)
        dependents = (
            [self._collections.claims, self._collections.logins, self._collections.tokens]
            if self.options.cascade_delete
            else []
        )

        async def apply(transaction: DocumentTransaction) -> bool:
            snapshot = await user_ref.get(transaction)
            if snapshot is None or snapshot.get(CONCURRENCY_STAMP_FIELD) != expected_stamp:
                return False
            for collection in dependents:
                owned = await collection.where_equal_to(USER_ID_FIELD, user.id).get(transaction)
                for child in owned:
                    await collection.document(child.id).delete(transaction)
            await user_ref.delete(transaction)
            return True

        if not await self._client.run_transaction(apply):
            return self._concurrency_failure("delete", user)

        logger.info("User deleted", user_id=user.id, cascade=self.options.cascade_delete)
        return IdentityResult.success()

    async def find_by_id(
        self, user_id: str, cancel_event: Optional[asyncio.Event] = None
    ) -> Optional[IdentityUser]:
        self._guard("find_by_id", cancel_event)
        self._require_text(user_id, "user_id")

        snapshot = await self._collections.users.document(user_id).get()
        if snapshot is None:
            logger.debug("User not found", user_id=user_id)
            return None
        return IdentityCollections.to_entity(IdentityUser, snapshot)

    async def find_by_name(
        self, normalized_user_name: str, cancel_event: Optional[asyncio.Event] = None
    ) -> Optional[IdentityUser]:
        """First user whose normalized name matches; ties broken by backend order."""
        self._guard("find_by_name", cancel_event)
        self._require_text(normalized_user_name, "normalized_user_name")

        snapshot = await self._collections.users.where_equal_to(
            "normalized_user_name", normalized_user_name
        ).first()
        if snapshot is None:
            return None
        return IdentityCollections.to_entity(IdentityUser, snapshot)

    async def find_by_email(
        self, normalized_email: str, cancel_event: Optional[asyncio.Event] = None
    ) -> Optional[IdentityUser]:
        """First user whose normalized email matches; ties broken by backend order."""
        self._guard("find_by_email", cancel_event)
        self._require_text(normalized_email, "normalized_email")

        snapshot = await self._collections.users.where_equal_to(
            "normalized_email", normalized_email
        ).first()
        if snapshot is None:
            return None
        return IdentityCollections.to_entity(IdentityUser, snapshot)

    async def list_users(
        self, cancel_event: Optional[asyncio.Event] = None
    ) -> List[IdentityUser]:
        self._guard("list_users", cancel_event)

        snapshots = await self._collections.users.stream()
        return IdentityCollections.to_entities(IdentityUser, snapshots)

    # ============================================================
    # Claims
    # ============================================================

    async def get_claims(
        self, user: IdentityUser, cancel_event: Optional[asyncio.Event] = None
    ) -> List[Claim]:
        self._guard("get_claims", cancel_event)
        self._require_user(user)

        snapshots = await self._collections.claims.where_equal_to(USER_ID_FIELD, user.id).get()
        return [c.to_claim() for c in IdentityCollections.to_entities(UserClaim, snapshots)]

    async def add_claims(
        self,
        user: IdentityUser,
        claims: Iterable[Claim],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        """
        Insert one claim document per claim.

        All inserts share one transaction: either every claim is added or
        none is.
        """
        self._guard("add_claims", cancel_event)
        self._require_user(user)
        items: List[Claim] = self._require_items(claims, "claims")
        if not items:
            return

        documents = [EntityMapper.to_document(UserClaim.from_claim(user.id, c)) for c in items]

        async def apply(transaction: DocumentTransaction) -> None:
            for document in documents:
                await self._collections.claims.add(document, transaction)

        await self._client.run_transaction(apply)
        logger.info("Claims added", user_id=user.id, count=len(documents))

    async def replace_claim(
        self,
        user: IdentityUser,
        claim: Claim,
        new_claim: Claim,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        """
        Rewrite the first claim document of ``claim.type`` with ``new_claim``.

        Raises:
            ClaimNotFoundError: If the user has no claim of that type
        """
        self._guard("replace_claim", cancel_event)
        self._require_user(user)
        self._require(claim, "claim")
        self._require(new_claim, "new_claim")

        document = EntityMapper.to_document(UserClaim.from_claim(user.id, new_claim))
        query = self._collections.claims.where_equal_to(USER_ID_FIELD, user.id).where_equal_to(
            "claim_type", claim.type
        )

        async def apply(transaction: DocumentTransaction) -> None:
            match = await query.first(transaction)
            if match is None:
                raise ClaimNotFoundError(user.id, claim.type)
            await self._collections.claims.document(match.id).set(document, transaction)

        await self._client.run_transaction(apply)
        logger.info("Claim replaced", user_id=user.id, claim_type=claim.type)

    async def remove_claims(
        self,
        user: IdentityUser,
        claims: Iterable[Claim],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        """
        Delete, per claim, the first claim document of the same type.

        Runs as one transaction; if any claim has no remaining match nothing
        is deleted.

        Raises:
            ClaimNotFoundError: If a claim has no matching document
        """
        self._guard("remove_claims", cancel_event)
        self._require_user(user)
        items: List[Claim] = self._require_items(claims, "claims")
        if not items:
            return

        async def apply(transaction: DocumentTransaction) -> None:
            removed: Set[str] = set()
            for claim in items:
                matches = await self._collections.claims.where_equal_to(
                    USER_ID_FIELD, user.id
                ).where_equal_to("claim_type", claim.type).get(transaction)
                match = next((m for m in matches if m.id not in removed), None)
                if match is None:
                    raise ClaimNotFoundError(user.id, claim.type)
                removed.add(match.id)
                await self._collections.claims.document(match.id).delete(transaction)

        await self._client.run_transaction(apply)
        logger.info("Claims removed", user_id=user.id, count=len(items))

    async def get_users_for_claim(
        self, claim: Claim, cancel_event: Optional[asyncio.Event] = None
    ) -> List[IdentityUser]:
        """
        Users holding ``claim`` (type and value).

        One find_by_id per matching claim document (not batched); claims whose
        user no longer exists are skipped.
        """
        self._guard("get_users_for_claim", cancel_event)
        self._require(claim, "claim")

        snapshots = await self._collections.claims.where_equal_to(
            "claim_type", claim.type
        ).where_equal_to("claim_value", claim.value).get()

        users: List[IdentityUser] = []
        for user_claim in IdentityCollections.to_entities(UserClaim, snapshots):
            if not user_claim.user_id:
                continue
            user = await self.find_by_id(user_claim.user_id, cancel_event)
            if user is not None:
                users.append(user)
        return users

    # ============================================================
    # Logins
    # ============================================================

    async def add_login(
        self,
        user: IdentityUser,
        login: UserLoginInfo,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        """Insert a login document. (provider, key) uniqueness is not checked."""
        self._guard("add_login", cancel_event)
        self._require_user(user)
        self._require(login, "login")

        document = EntityMapper.to_document(UserLogin.from_info(user.id, login))
        await self._collections.logins.add(document)
        logger.info("Login added", user_id=user.id, login_provider=login.login_provider)

    async def remove_login(
        self,
        user: IdentityUser,
        login_provider: str,
        provider_key: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        """
        Delete the first login document matching user, provider and key.

        Raises:
            LoginNotFoundError: If no such login exists
        """
        self._guard("remove_login", cancel_event)
        self._require_user(user)
        self._require_text(login_provider, "login_provider")
        self._require_text(provider_key, "provider_key")

        query = (
            self._collections.logins.where_equal_to(USER_ID_FIELD, user.id)
            .where_equal_to("login_provider", login_provider)
            .where_equal_to("provider_key", provider_key)
        )

        async def apply(transaction: DocumentTransaction) -> None:
            match = await query.first(transaction)
            if match is None:
                raise LoginNotFoundError(user.id, login_provider, provider_key)
            await self._collections.logins.document(match.id).delete(transaction)

        await self._client.run_transaction(apply)
        logger.info("Login removed", user_id=user.id, login_provider=login_provider)

    async def get_logins(
        self, user: IdentityUser, cancel_event: Optional[asyncio.Event] = None
    ) -> List[UserLoginInfo]:
        self._guard("get_logins", cancel_event)
        self._require_user(user)

        snapshots = await self._collections.logins.where_equal_to(USER_ID_FIELD, user.id).get()
        return [login.to_info() for login in IdentityCollections.to_entities(UserLogin, snapshots)]

    async def find_by_login(
        self,
        login_provider: str,
        provider_key: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Optional[IdentityUser]:
        """Resolve an external login to its user: login lookup, then find_by_id."""
        self._guard("find_by_login", cancel_event)
        self._require_text(login_provider, "login_provider")
        self._require_text(provider_key, "provider_key")

        login = await self._find_login(login_provider, provider_key, None)
        if login is None or not login.user_id:
            return None
        return await self.find_by_id(login.user_id, cancel_event)

    async def find_user_login(
        self,
        login_provider: str,
        provider_key: str,
        user_id: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Optional[UserLogin]:
        """First login matching provider and key, optionally restricted to one user."""
        self._guard("find_user_login", cancel_event)
        self._require_text(login_provider, "login_provider")
        self._require_text(provider_key, "provider_key")

        return await self._find_login(login_provider, provider_key, user_id)

    async def _find_login(
        self, login_provider: str, provider_key: str, user_id: Optional[str]
    ) -> Optional[UserLogin]:
        query = self._collections.logins
        if user_id is not None:
            query = query.where_equal_to(USER_ID_FIELD, user_id)
        snapshot = await query.where_equal_to("login_provider", login_provider).where_equal_to(
            "provider_key", provider_key
        ).first()
        if snapshot is None:
            return None
        return IdentityCollections.to_entity(UserLogin, snapshot)

    # ============================================================
    # Tokens
    # ============================================================

    async def get_user_tokens(
        self, user: IdentityUser, cancel_event: Optional[asyncio.Event] = None
    ) -> List[UserToken]:
        self._guard("get_user_tokens", cancel_event)
        self._require_user(user)

        snapshots = await self._collections.tokens.where_equal_to(USER_ID_FIELD, user.id).get()
        return IdentityCollections.to_entities(UserToken, snapshots)

    async def save_user_tokens(
        self,
        user: IdentityUser,
        tokens: Iterable[UserToken],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        """
        Replace the user's whole token set.

        Every existing token document of the user is deleted, then ``tokens``
        are inserted, all in one transaction. This is not a merge: tokens
        absent from ``tokens`` are gone afterwards.
        """
        self._guard("save_user_tokens", cancel_event)
        self._require_user(user)
        items: List[UserToken] = self._require_items(tokens, "tokens")

        documents: List[Dict[str, Any]] = []
        for token in items:
            document = EntityMapper.to_document(token)
            document[USER_ID_FIELD] = user.id
            documents.append(document)

        tokens_ref = self._collections.tokens

        async def apply(transaction: DocumentTransaction) -> int:
            existing = await tokens_ref.where_equal_to(USER_ID_FIELD, user.id).get(transaction)
            for snapshot in existing:
                await tokens_ref.document(snapshot.id).delete(transaction)
            for document in documents:
                await tokens_ref.add(document, transaction)
            return len(existing)

        replaced = await self._client.run_transaction(apply)
        logger.info("Tokens replaced", user_id=user.id, removed=replaced, saved=len(documents))

    async def get_token(
        self,
        user: IdentityUser,
        login_provider: str,
        name: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Optional[str]:
        self._guard("get_token", cancel_event)
        self._require_text(login_provider, "login_provider")
        self._require_text(name, "name")

        for token in await self.get_user_tokens(user, cancel_event):
            if token.login_provider == login_provider and token.name == name:
                return token.value
        return None

    async def set_token(
        self,
        user: IdentityUser,
        login_provider: str,
        name: str,
        value: Optional[str],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        """Add or overwrite one token, saving the full set back."""
        self._guard("set_token", cancel_event)
        self._require_text(login_provider, "login_provider")
        self._require_text(name, "name")

        tokens = [
            t
            for t in await self.get_user_tokens(user, cancel_event)
            if not (t.login_provider == login_provider and t.name == name)
        ]
        tokens.append(
            UserToken(user_id=user.id, login_provider=login_provider, name=name, value=value)
        )
        await self.save_user_tokens(user, tokens, cancel_event)

    async def remove_token(
        self,
        user: IdentityUser,
        login_provider: str,
        name: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        self._guard("remove_token", cancel_event)
        self._require_text(login_provider, "login_provider")
        self._require_text(name, "name")

        current = await self.get_user_tokens(user, cancel_event)
        remaining = [
            t for t in current if not (t.login_provider == login_provider and t.name == name)
        ]
        if len(remaining) != len(current):
            await self.save_user_tokens(user, remaining, cancel_event)

    # Authenticator key and recovery codes are stored as ordinary tokens.

    async def get_authenticator_key(
        self, user: IdentityUser, cancel_event: Optional[asyncio.Event] = None
    ) -> Optional[str]:
        return await self.get_token(
            user,
            self.AUTHENTICATOR_STORE_LOGIN_PROVIDER,
            self.AUTHENTICATOR_KEY_TOKEN_NAME,
            cancel_event,
        )

    async def set_authenticator_key(
        self, user: IdentityUser, key: str, cancel_event: Optional[asyncio.Event] = None
    ) -> None:
        await self.set_token(
            user,
            self.AUTHENTICATOR_STORE_LOGIN_PROVIDER,
            self.AUTHENTICATOR_KEY_TOKEN_NAME,
            key,
            cancel_event,
        )

    async def replace_codes(
        self,
        user: IdentityUser,
        recovery_codes: Iterable[str],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        self._guard("replace_codes", cancel_event)
        if isinstance(recovery_codes, str):
            raise InvalidArgumentError("recovery_codes", "must not be a bare string")
        codes: List[str] = self._require_items(recovery_codes, "recovery_codes")
        await self.set_token(
            user,
            self.AUTHENTICATOR_STORE_LOGIN_PROVIDER,
            self.RECOVERY_CODE_TOKEN_NAME,
            ";".join(codes),
            cancel_event,
        )

    async def redeem_code(
        self, user: IdentityUser, code: str, cancel_event: Optional[asyncio.Event] = None
    ) -> bool:
        """Consume one recovery code; False when it is not valid."""
        self._guard("redeem_code", cancel_event)
        self._require_text(code, "code")

        codes = await self._recovery_codes(user, cancel_event)
        if code not in codes:
            return False
        codes.remove(code)
        await self.replace_codes(user, codes, cancel_event)
        return True

    async def count_codes(
        self, user: IdentityUser, cancel_event: Optional[asyncio.Event] = None
    ) -> int:
        return len(await self._recovery_codes(user, cancel_event))

    async def _recovery_codes(
        self, user: IdentityUser, cancel_event: Optional[asyncio.Event]
    ) -> List[str]:
        merged = await self.get_token(
            user,
            self.AUTHENTICATOR_STORE_LOGIN_PROVIDER,
            self.RECOVERY_CODE_TOKEN_NAME,
            cancel_event,
        )
        if not merged:
            return []
        return merged.split(";")
