"""
Identity store over a schemaless document database.

Maps users, claims, external logins and tokens onto document collections,
with optimistic concurrency on user documents.

Structure:
- domain/: entities, value objects, errors and ports
- infrastructure/: configuration, entity mapping, document backends, store
"""

from identity_docstore.domain.identity.core.entities import (
    IdentityUser,
    UserClaim,
    UserLogin,
    UserToken,
)
from identity_docstore.domain.identity.core.services import IdentityErrorDescriber
from identity_docstore.domain.identity.core.value_objects import (
    Claim,
    IdentityError,
    IdentityResult,
    UserLoginInfo,
)
from identity_docstore.infrastructure.config import StoreOptions, TableNamesConfig
from identity_docstore.infrastructure.identity.user_store import DocumentUserStore

__version__ = "1.0.0"

__all__ = [
    "Claim",
    "DocumentUserStore",
    "IdentityError",
    "IdentityErrorDescriber",
    "IdentityResult",
    "IdentityUser",
    "StoreOptions",
    "TableNamesConfig",
    "UserClaim",
    "UserLogin",
    "UserLoginInfo",
    "UserToken",
]
