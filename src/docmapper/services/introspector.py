"""Runtime inspection of document models.

Derives collection names from model types and resolves named fields with
the relation metadata declared on them. Lookups never raise for unknown
input; callers get ``None`` and decide how to report it.
"""

import types
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Union, get_args, get_origin

from pydantic import BaseModel

from docmapper.models.relations import FOREIGN_KEY, RELATION_MARKER

_SEQUENCE_ORIGINS = (list, tuple, set, frozenset, Sequence)

_collection_names: dict[type, str] = {}


def register_collection(model: type, name: str) -> None:
    """Pin the collection name for a model, bypassing pluralization."""
    if not name:
        raise ValueError("collection name cannot be empty")
    _collection_names[model] = name


def unregister_collection(model: type) -> None:
    _collection_names.pop(model, None)


@dataclass(frozen=True)
class FieldHandle:
    """A model field together with what the mapper needs to know about it."""

    name: str
    persisted_name: str
    annotation: Any
    target: type | None
    is_sequence: bool
    is_relation: bool
    foreign_key: str | None

    def get(self, document: BaseModel) -> Any:
        return getattr(document, self.name)

    def set(self, document: BaseModel, value: Any) -> None:
        setattr(document, self.name, value)


def document_type_for(value: Any) -> type | None:
    """Unwrap an instance, class, sequence, or ``list[Model]`` alias to its element type."""
    if isinstance(value, type):
        return value
    origin = get_origin(value)
    if origin is not None:
        if origin in _SEQUENCE_ORIGINS:
            args = get_args(value)
            return args[0] if args and isinstance(args[0], type) else None
        return None
    if isinstance(value, (list, tuple)):
        if not value:
            return None
        return document_type_for(value[0])
    if value is None:
        return None
    return type(value)


def collection_name_for(value: Any) -> str | None:
    """Return the collection for a document value.

    Explicit registrations win, then a ``COLLECTION_NAME`` class variable,
    then the lower-cased type name with an ``s`` appended. That last rule is
    naive: irregular plurals such as ``Person`` need one of the explicit
    forms.
    """
    model = document_type_for(value)
    if model is None:
        return None
    if model in _collection_names:
        return _collection_names[model]
    explicit = getattr(model, "COLLECTION_NAME", None)
    if explicit:
        return explicit
    return f"{model.__name__.lower()}s"


def unwrap_annotation(annotation: Any) -> tuple[type | None, bool]:
    """Return ``(element type, is_sequence)`` for a field annotation.

    Optional wrappers are stripped; unions of several concrete types yield
    no element type.
    """
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) != 1:
            return None, False
        return unwrap_annotation(args[0])
    if origin in _SEQUENCE_ORIGINS:
        args = get_args(annotation)
        if not args:
            return None, True
        element, _ = unwrap_annotation(args[0])
        return element, True
    if isinstance(annotation, type):
        return annotation, False
    return None, False


def field_by_name(value: Any, name: str) -> FieldHandle | None:
    """Resolve a field by attribute name, persisted name, or case-insensitively."""
    model = document_type_for(value)
    if model is None or not isinstance(model, type) or not issubclass(model, BaseModel):
        return None
    fields = model.model_fields
    field_name = _match_field_name(fields, name)
    if field_name is None:
        return None

    info = fields[field_name]
    target, is_sequence = unwrap_annotation(info.annotation)
    extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
    return FieldHandle(
        name=field_name,
        persisted_name=info.alias or field_name,
        annotation=info.annotation,
        target=target,
        is_sequence=is_sequence,
        is_relation=bool(extra.get(RELATION_MARKER)),
        foreign_key=extra.get(FOREIGN_KEY),
    )


def fields_of(value: Any) -> list[FieldHandle]:
    model = document_type_for(value)
    if model is None or not isinstance(model, type) or not issubclass(model, BaseModel):
        return []
    handles = (field_by_name(model, name) for name in model.model_fields)
    return [handle for handle in handles if handle is not None]


def _match_field_name(fields: dict[str, Any], name: str) -> str | None:
    if not isinstance(name, str) or not name:
        return None
    if name in fields:
        return name
    for field_name, info in fields.items():
        if info.alias == name:
            return field_name
    lowered = name.lower()
    for field_name in fields:
        if field_name.lower() == lowered:
            return field_name
    return None
