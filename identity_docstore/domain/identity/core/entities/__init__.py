"""Identity domain entities."""

from identity_docstore.domain.identity.core.entities.identity_user import (
    IdentityUser,
    new_stamp,
)
from identity_docstore.domain.identity.core.entities.user_claim import UserClaim
from identity_docstore.domain.identity.core.entities.user_login import UserLogin
from identity_docstore.domain.identity.core.entities.user_token import UserToken

__all__ = ["IdentityUser", "UserClaim", "UserLogin", "UserToken", "new_stamp"]
