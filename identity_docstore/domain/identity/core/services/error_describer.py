"""User-facing descriptions for identity failures."""

from __future__ import annotations

from identity_docstore.domain.identity.core.value_objects.identity_result import (
    IdentityError,
    IdentityErrorCode,
)


class IdentityErrorDescriber:
    """
    Supplies error codes and messages for domain failures.

    Subclass to localize or reword descriptions; the store only relies on the
    codes.
    """

    def concurrency_failure(self) -> IdentityError:
        return IdentityError(
            code=IdentityErrorCode.CONCURRENCY_FAILURE.value,
            description="Optimistic concurrency failure, object has been modified.",
        )
