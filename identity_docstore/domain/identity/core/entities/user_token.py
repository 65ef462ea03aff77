"""UserToken entity."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class UserToken(BaseModel):
    """
    Named authentication token of a user (provider + name + value).

    A user's tokens are always saved as a complete set (replace-all).
    """

    model_config = ConfigDict(extra="ignore")

    user_id: Optional[str] = None
    login_provider: Optional[str] = None
    name: Optional[str] = None
    value: Optional[str] = None
