"""IdentityUser entity - aggregate root of the identity domain."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def new_stamp() -> str:
    """Generate a fresh opaque stamp (concurrency or security)."""
    return str(uuid.uuid4())


class IdentityUser(BaseModel):
    """
    User identity stored as one document per user, keyed by ``id``.

    Invariants:
    - ``id`` is assigned once and never changes
    - ``concurrency_stamp`` changes on every successful update and must match
      the stored value for update/delete to be accepted
    - ``lockout_end`` is always timezone-aware

    Example:
        >>> user = IdentityUser(user_name="alice", normalized_user_name="ALICE")
        >>> len(user.concurrency_stamp) > 0
        True
    """

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    id: str = Field(default_factory=new_stamp)
    user_name: Optional[str] = None
    normalized_user_name: Optional[str] = None
    email: Optional[str] = None
    normalized_email: Optional[str] = None
    email_confirmed: bool = False
    password_hash: Optional[str] = None
    security_stamp: Optional[str] = None
    concurrency_stamp: Optional[str] = Field(default_factory=new_stamp)
    phone_number: Optional[str] = None
    phone_number_confirmed: bool = False
    two_factor_enabled: bool = False
    lockout_end: Optional[datetime] = None
    lockout_enabled: bool = False
    access_failed_count: int = 0

    @field_validator("lockout_end")
    @classmethod
    def ensure_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Naive datetimes are taken as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def __str__(self) -> str:
        return self.user_name or self.id
