"""
Identity store exceptions.

Typed exceptions for explicit error handling. Concurrency conflicts are NOT
exceptions: they are reported as a failed IdentityResult so callers can tell
"write rejected" from "write failed".
"""

from __future__ import annotations

from typing import Iterable


# ═══════════════════════════════════════════════════════════
# BASE EXCEPTION
# ═══════════════════════════════════════════════════════════


class IdentityStoreError(Exception):
    """
    Base exception for all identity store errors.

    Transport failures raised by the document driver are not wrapped and
    therefore do not inherit from this class.
    """

    pass


# ═══════════════════════════════════════════════════════════
# CALLER ERRORS (raised before any I/O)
# ═══════════════════════════════════════════════════════════


class InvalidArgumentError(IdentityStoreError, ValueError):
    """
    A required argument was None or empty.

    Example:
        >>> raise InvalidArgumentError("user")
    """

    def __init__(self, argument: str, reason: str = "must not be None or empty"):
        self.argument = argument
        self.reason = reason
        super().__init__(f"Invalid argument '{argument}': {reason}")


class ConfigurationError(IdentityStoreError):
    """Collection configuration is missing or invalid."""

    def __init__(self, setting: str, reason: str):
        self.setting = setting
        self.reason = reason
        super().__init__(f"Invalid configuration '{setting}': {reason}")


class StoreDisposedError(IdentityStoreError):
    """Operation attempted on a closed store."""

    def __init__(self, store_name: str):
        self.store_name = store_name
        super().__init__(f"Cannot access a closed store: {store_name}")


class OperationCancelledError(IdentityStoreError):
    """Caller signalled cancellation before the operation started."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Operation cancelled: {operation}")


# ═══════════════════════════════════════════════════════════
# MAPPING ERRORS
# ═══════════════════════════════════════════════════════════


class MappingError(IdentityStoreError):
    """
    Stored document does not fit the target entity schema.

    Raised when a field's stored type is incompatible with the declared type
    of the entity field.

    Example:
        >>> raise MappingError("IdentityUser", ["access_failed_count"])
    """

    def __init__(self, entity_type: str, fields: Iterable[str], detail: str = ""):
        self.entity_type = entity_type
        self.fields = list(fields)
        message = f"Cannot map document to {entity_type}: incompatible fields {self.fields}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


# ═══════════════════════════════════════════════════════════
# LOOKUP ERRORS (replace/remove of a missing dependent document)
# ═══════════════════════════════════════════════════════════


class ClaimNotFoundError(IdentityStoreError, LookupError):
    """No claim document matches the user and claim type."""

    def __init__(self, user_id: str, claim_type: str):
        self.user_id = user_id
        self.claim_type = claim_type
        super().__init__(f"Claim not found: user={user_id}, type={claim_type}")


class LoginNotFoundError(IdentityStoreError, LookupError):
    """No login document matches the user, provider and key."""

    def __init__(self, user_id: str, login_provider: str, provider_key: str):
        self.user_id = user_id
        self.login_provider = login_provider
        self.provider_key = provider_key
        super().__init__(
            f"Login not found: user={user_id}, "
            f"provider={login_provider}, key={provider_key}"
        )
