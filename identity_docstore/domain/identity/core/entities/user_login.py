"""UserLogin entity."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from identity_docstore.domain.identity.core.value_objects.user_login_info import (
    UserLoginInfo,
)


class UserLogin(BaseModel):
    """
    External login bound to a user.

    (login_provider, provider_key) is the natural external identity. The
    store does not enforce its uniqueness.
    """

    model_config = ConfigDict(extra="ignore")

    user_id: Optional[str] = None
    login_provider: Optional[str] = None
    provider_key: Optional[str] = None
    provider_display_name: Optional[str] = None

    @classmethod
    def from_info(cls, user_id: str, info: UserLoginInfo) -> "UserLogin":
        return cls(
            user_id=user_id,
            login_provider=info.login_provider,
            provider_key=info.provider_key,
            provider_display_name=info.provider_display_name,
        )

    def to_info(self) -> UserLoginInfo:
        return UserLoginInfo(
            login_provider=self.login_provider or "",
            provider_key=self.provider_key or "",
            provider_display_name=self.provider_display_name,
        )
