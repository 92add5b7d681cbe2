"""Declarations for fields that reference documents in other collections."""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field

from docmapper.models.enums import RelationKind

RELATION_MARKER = "relation"
FOREIGN_KEY = "foreign_key"


def relation(foreign_key: str | None = None, **kwargs: Any) -> Any:
    """Declare a relation field.

    Relation fields are filled by preloading and are never persisted. For a
    single reference, ``foreign_key`` names the field on the same document
    that stores the related identifier. On the back-reference of a
    collection relation, it names the field on this document that stores
    the owner's identifier.
    """
    extra: dict[str, Any] = {RELATION_MARKER: True}
    if foreign_key:
        extra[FOREIGN_KEY] = foreign_key
    return Field(default=None, exclude=True, json_schema_extra=extra, **kwargs)


@dataclass(frozen=True)
class RelationDescriptor:
    """Resolved shape of one relation on an owning model.

    ``foreign_key`` is an attribute name: on the owner for ``ONE`` relations,
    on the related model for ``MANY`` relations. ``key_field`` is the
    persisted field name the secondary query filters on.
    """

    owner: type[BaseModel]
    field_name: str
    related: type[BaseModel]
    kind: RelationKind
    foreign_key: str
    key_field: str
    collection: str
