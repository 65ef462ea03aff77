"""Identity domain services."""

from identity_docstore.domain.identity.core.services.error_describer import (
    IdentityErrorDescriber,
)

__all__ = ["IdentityErrorDescriber"]
