"""
Entity <-> document mapping.

Converts identity entities to flat field-name -> primitive dictionaries and
back. The field list comes from the entity's declared schema (pydantic
``model_fields``), never from whatever attributes an object happens to carry.

Stored value types:
- str, int, bool, None as-is
- datetime as ISO 8601 string in UTC
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Type, TypeVar, get_args

import structlog
from pydantic import BaseModel, ValidationError

from identity_docstore.domain.identity.core.exceptions import MappingError

TEntity = TypeVar("TEntity", bound=BaseModel)

logger = structlog.get_logger(__name__)


def datetime_to_iso(dt: datetime) -> str:
    """
    Convert datetime to ISO string for storage.

    Args:
        dt: Timezone-aware datetime

    Returns:
        ISO 8601 string in UTC
    """
    if dt.tzinfo is None:
        raise ValueError("Datetime must be timezone-aware")
    return dt.astimezone(timezone.utc).isoformat()


def iso_to_datetime(iso_str: str) -> datetime:
    """
    Convert ISO string to timezone-aware datetime.

    Args:
        iso_str: ISO 8601 string

    Returns:
        Timezone-aware datetime (UTC assumed when no offset is stored)
    """
    dt = datetime.fromisoformat(iso_str)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _is_datetime_field(annotation: Any) -> bool:
    if annotation is datetime:
        return True
    return datetime in get_args(annotation)


class EntityMapper:
    """
    Schema-driven, side-effect free entity mapper.

    Example:
        >>> user = IdentityUser(user_name="alice")
        >>> doc = EntityMapper.to_document(user)
        >>> EntityMapper.from_document(IdentityUser, doc) == user
        True
    """

    @staticmethod
    def to_document(entity: BaseModel) -> Dict[str, Any]:
        """Project every declared field of ``entity`` into a flat dict."""
        document: Dict[str, Any] = {}
        for name in type(entity).model_fields:
            value = getattr(entity, name)
            if isinstance(value, datetime):
                value = datetime_to_iso(value)
            document[name] = value
        return document

    @staticmethod
    def from_document(entity_type: Type[TEntity], fields: Mapping[str, Any]) -> TEntity:
        """
        Build ``entity_type`` from stored fields.

        Absent fields take the entity default; unknown fields are ignored.

        Raises:
            MappingError: If a stored value's type does not fit the declared
                field type
        """
        data: Dict[str, Any] = {}
        incompatible: List[str] = []

        for name, info in entity_type.model_fields.items():
            if name not in fields:
                continue
            value = fields[name]

            if value is not None and _is_datetime_field(info.annotation):
                if isinstance(value, str):
                    try:
                        value = iso_to_datetime(value)
                    except ValueError:
                        incompatible.append(name)
                        continue
                elif isinstance(value, datetime):
                    # BSON dates come back naive in UTC
                    if value.tzinfo is None:
                        value = value.replace(tzinfo=timezone.utc)
                else:
                    incompatible.append(name)
                    continue

            data[name] = value

        if incompatible:
            logger.warning(
                "Document mapping failed",
                entity_type=entity_type.__name__,
                fields=incompatible,
            )
            raise MappingError(entity_type.__name__, incompatible)

        try:
            return entity_type.model_validate(data, strict=True)
        except ValidationError as e:
            bad_fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            logger.warning(
                "Document mapping failed",
                entity_type=entity_type.__name__,
                fields=bad_fields,
            )
            raise MappingError(entity_type.__name__, bad_fields, detail=str(e)) from e
