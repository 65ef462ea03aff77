"""Claim value object."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Claim(BaseModel):
    """
    Claim type/value pair.

    Example:
        >>> claim = Claim(type="role", value="admin")
        >>> str(claim)
        'role: admin'
    """

    model_config = ConfigDict(frozen=True)

    type: str
    value: str

    def __str__(self) -> str:
        return f"{self.type}: {self.value}"
