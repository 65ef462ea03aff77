"""Identity value objects."""

from identity_docstore.domain.identity.core.value_objects.claim import Claim
from identity_docstore.domain.identity.core.value_objects.identity_result import (
    IdentityError,
    IdentityErrorCode,
    IdentityResult,
)
from identity_docstore.domain.identity.core.value_objects.user_login_info import (
    UserLoginInfo,
)

__all__ = [
    "Claim",
    "IdentityError",
    "IdentityErrorCode",
    "IdentityResult",
    "UserLoginInfo",
]
