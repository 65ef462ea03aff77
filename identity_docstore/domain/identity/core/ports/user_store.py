"""User store port (interface) consumed by the identity-management layer."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from identity_docstore.domain.identity.core.entities import (
    IdentityUser,
    UserLogin,
    UserToken,
)
from identity_docstore.domain.identity.core.value_objects import (
    Claim,
    IdentityResult,
    UserLoginInfo,
)


class IUserStore(ABC):
    """
    Persistence contract for users and their claims, logins and tokens.

    Every operation accepts an optional ``cancel_event``; when it is already
    set the operation raises before doing any work.

    Mutations that can lose a race (update, delete) return an
    IdentityResult instead of raising on conflict.
    """

    # ------------------------------------------------------------
    # Users
    # ------------------------------------------------------------

    @abstractmethod
    async def create(
        self, user: IdentityUser, cancel_event: Optional[asyncio.Event] = None
    ) -> IdentityResult:
        pass

    @abstractmethod
    async def update(
        self, user: IdentityUser, cancel_event: Optional[asyncio.Event] = None
    ) -> IdentityResult:
        pass

    @abstractmethod
    async def delete(
        self, user: IdentityUser, cancel_event: Optional[asyncio.Event] = None
    ) -> IdentityResult:
        pass

    @abstractmethod
    async def find_by_id(
        self, user_id: str, cancel_event: Optional[asyncio.Event] = None
    ) -> Optional[IdentityUser]:
        pass

    @abstractmethod
    async def find_by_name(
        self, normalized_user_name: str, cancel_event: Optional[asyncio.Event] = None
    ) -> Optional[IdentityUser]:
        pass

    @abstractmethod
    async def find_by_email(
        self, normalized_email: str, cancel_event: Optional[asyncio.Event] = None
    ) -> Optional[IdentityUser]:
        pass

    @abstractmethod
    async def list_users(
        self, cancel_event: Optional[asyncio.Event] = None
    ) -> List[IdentityUser]:
        pass

    # ------------------------------------------------------------
    # Claims
    # ------------------------------------------------------------

    @abstractmethod
    async def get_claims(
        self, user: IdentityUser, cancel_event: Optional[asyncio.Event] = None
    ) -> List[Claim]:
        pass

    @abstractmethod
    async def add_claims(
        self,
        user: IdentityUser,
        claims: Iterable[Claim],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        pass

    @abstractmethod
    async def replace_claim(
        self,
        user: IdentityUser,
        claim: Claim,
        new_claim: Claim,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        pass

    @abstractmethod
    async def remove_claims(
        self,
        user: IdentityUser,
        claims: Iterable[Claim],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        pass

    @abstractmethod
    async def get_users_for_claim(
        self, claim: Claim, cancel_event: Optional[asyncio.Event] = None
    ) -> List[IdentityUser]:
        pass

    # ------------------------------------------------------------
    # Logins
    # ------------------------------------------------------------

    @abstractmethod
    async def add_login(
        self,
        user: IdentityUser,
        login: UserLoginInfo,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        pass

    @abstractmethod
    async def remove_login(
        self,
        user: IdentityUser,
        login_provider: str,
        provider_key: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        pass

    @abstractmethod
    async def get_logins(
        self, user: IdentityUser, cancel_event: Optional[asyncio.Event] = None
    ) -> List[UserLoginInfo]:
        pass

    @abstractmethod
    async def find_by_login(
        self,
        login_provider: str,
        provider_key: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Optional[IdentityUser]:
        pass

    @abstractmethod
    async def find_user_login(
        self,
        login_provider: str,
        provider_key: str,
        user_id: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Optional[UserLogin]:
        pass

    # ------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------

    @abstractmethod
    async def get_user_tokens(
        self, user: IdentityUser, cancel_event: Optional[asyncio.Event] = None
    ) -> List[UserToken]:
        pass

    @abstractmethod
    async def save_user_tokens(
        self,
        user: IdentityUser,
        tokens: Iterable[UserToken],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        pass
