"""UserLoginInfo value object."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class UserLoginInfo(BaseModel):
    """External login as seen by the caller (no owning user)."""

    model_config = ConfigDict(frozen=True)

    login_provider: str
    provider_key: str
    provider_display_name: Optional[str] = None
