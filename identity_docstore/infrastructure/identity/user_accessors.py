"""
In-memory property accessors required by the identity-management layer.

None of these touch the database: they read or modify the IdentityUser
instance the caller holds, which is then persisted with ``update``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from identity_docstore.domain.identity.core.entities import IdentityUser
from identity_docstore.domain.identity.core.exceptions import (
    InvalidArgumentError,
    StoreDisposedError,
)


class UserPropertyAccessorsMixin:
    """Getters/setters over IdentityUser fields, argument-checked."""

    _closed: bool

    def _check_user(self, user: IdentityUser) -> IdentityUser:
        if self._closed:
            raise StoreDisposedError(type(self).__name__)
        if user is None:
            raise InvalidArgumentError("user")
        return user

    # Name / id

    def get_user_id(self, user: IdentityUser) -> str:
        return self._check_user(user).id

    def get_user_name(self, user: IdentityUser) -> Optional[str]:
        return self._check_user(user).user_name

    def set_user_name(self, user: IdentityUser, user_name: Optional[str]) -> None:
        self._check_user(user).user_name = user_name

    def get_normalized_user_name(self, user: IdentityUser) -> Optional[str]:
        return self._check_user(user).normalized_user_name

    def set_normalized_user_name(self, user: IdentityUser, normalized_name: Optional[str]) -> None:
        self._check_user(user).normalized_user_name = normalized_name

    # Email

    def get_email(self, user: IdentityUser) -> Optional[str]:
        return self._check_user(user).email

    def set_email(self, user: IdentityUser, email: Optional[str]) -> None:
        self._check_user(user).email = email

    def get_normalized_email(self, user: IdentityUser) -> Optional[str]:
        return self._check_user(user).normalized_email

    def set_normalized_email(self, user: IdentityUser, normalized_email: Optional[str]) -> None:
        self._check_user(user).normalized_email = normalized_email

    def get_email_confirmed(self, user: IdentityUser) -> bool:
        return self._check_user(user).email_confirmed

    def set_email_confirmed(self, user: IdentityUser, confirmed: bool) -> None:
        self._check_user(user).email_confirmed = confirmed

    # Password / security stamp

    def get_password_hash(self, user: IdentityUser) -> Optional[str]:
        return self._check_user(user).password_hash

    def set_password_hash(self, user: IdentityUser, password_hash: Optional[str]) -> None:
        self._check_user(user).password_hash = password_hash

    def has_password(self, user: IdentityUser) -> bool:
        return self._check_user(user).password_hash is not None

    def get_security_stamp(self, user: IdentityUser) -> Optional[str]:
        return self._check_user(user).security_stamp

    def set_security_stamp(self, user: IdentityUser, stamp: str) -> None:
        if stamp is None:
            raise InvalidArgumentError("stamp")
        self._check_user(user).security_stamp = stamp

    # Phone

    def get_phone_number(self, user: IdentityUser) -> Optional[str]:
        return self._check_user(user).phone_number

    def set_phone_number(self, user: IdentityUser, phone_number: Optional[str]) -> None:
        self._check_user(user).phone_number = phone_number

    def get_phone_number_confirmed(self, user: IdentityUser) -> bool:
        return self._check_user(user).phone_number_confirmed

    def set_phone_number_confirmed(self, user: IdentityUser, confirmed: bool) -> None:
        self._check_user(user).phone_number_confirmed = confirmed

    # Two-factor

    def get_two_factor_enabled(self, user: IdentityUser) -> bool:
        return self._check_user(user).two_factor_enabled

    def set_two_factor_enabled(self, user: IdentityUser, enabled: bool) -> None:
        self._check_user(user).two_factor_enabled = enabled

    # Lockout

    def get_lockout_end_date(self, user: IdentityUser) -> Optional[datetime]:
        return self._check_user(user).lockout_end

    def set_lockout_end_date(self, user: IdentityUser, lockout_end: Optional[datetime]) -> None:
        self._check_user(user).lockout_end = lockout_end

    def get_lockout_enabled(self, user: IdentityUser) -> bool:
        return self._check_user(user).lockout_enabled

    def set_lockout_enabled(self, user: IdentityUser, enabled: bool) -> None:
        self._check_user(user).lockout_enabled = enabled

    def get_access_failed_count(self, user: IdentityUser) -> int:
        return self._check_user(user).access_failed_count

    def increment_access_failed_count(self, user: IdentityUser) -> int:
        user = self._check_user(user)
        user.access_failed_count += 1
        return user.access_failed_count

    def reset_access_failed_count(self, user: IdentityUser) -> None:
        self._check_user(user).access_failed_count = 0
