"""Document-database implementation of the user store."""

from identity_docstore.infrastructure.identity.user_store import DocumentUserStore

__all__ = ["DocumentUserStore"]
