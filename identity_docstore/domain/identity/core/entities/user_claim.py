"""UserClaim entity."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from identity_docstore.domain.identity.core.value_objects.claim import Claim


class UserClaim(BaseModel):
    """
    Claim owned by a user.

    Stored in its own collection; ``user_id`` is a denormalized foreign key
    with no referential enforcement.
    """

    model_config = ConfigDict(extra="ignore")

    user_id: Optional[str] = None
    claim_type: Optional[str] = None
    claim_value: Optional[str] = None

    @classmethod
    def from_claim(cls, user_id: str, claim: Claim) -> "UserClaim":
        return cls(user_id=user_id, claim_type=claim.type, claim_value=claim.value)

    def to_claim(self) -> Claim:
        return Claim(type=self.claim_type or "", value=self.claim_value or "")
