"""
Result of a store mutation.

Mutations report domain failures (concurrency conflicts) as data, with a
machine-checkable error code, instead of raising.
"""

from __future__ import annotations

from enum import Enum
from typing import Tuple

from pydantic import BaseModel, ConfigDict


class IdentityErrorCode(str, Enum):
    """Machine-checkable failure reasons."""

    CONCURRENCY_FAILURE = "ConcurrencyFailure"


class IdentityError(BaseModel):
    """Failure reason with a user-facing description."""

    model_config = ConfigDict(frozen=True)

    code: str
    description: str


class IdentityResult(BaseModel):
    """
    Outcome of a store mutation.

    Example:
        >>> IdentityResult.success().succeeded
        True
        >>> error = IdentityError(code="ConcurrencyFailure", description="stale")
        >>> IdentityResult.failed(error).is_concurrency_failure
        True
    """

    model_config = ConfigDict(frozen=True)

    succeeded: bool
    errors: Tuple[IdentityError, ...] = ()

    @classmethod
    def success(cls) -> "IdentityResult":
        return cls(succeeded=True)

    @classmethod
    def failed(cls, *errors: IdentityError) -> "IdentityResult":
        return cls(succeeded=False, errors=tuple(errors))

    @property
    def is_concurrency_failure(self) -> bool:
        return any(e.code == IdentityErrorCode.CONCURRENCY_FAILURE.value for e in self.errors)

    def __str__(self) -> str:
        if self.succeeded:
            return "Succeeded"
        return "Failed : " + ",".join(e.code for e in self.errors)
