"""Identity store exceptions."""

from identity_docstore.domain.identity.core.exceptions.store_errors import (
    ClaimNotFoundError,
    ConfigurationError,
    IdentityStoreError,
    InvalidArgumentError,
    LoginNotFoundError,
    MappingError,
    OperationCancelledError,
    StoreDisposedError,
)

__all__ = [
    "ClaimNotFoundError",
    "ConfigurationError",
    "IdentityStoreError",
    "InvalidArgumentError",
    "LoginNotFoundError",
    "MappingError",
    "OperationCancelledError",
    "StoreDisposedError",
]
