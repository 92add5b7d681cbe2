"""Conversion between raw store documents and model instances."""

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from docmapper.errors import DecodeError
from docmapper.services.introspector import fields_of

T = TypeVar("T", bound=BaseModel)


def decode_document(model: type[T], raw: Mapping[str, Any]) -> T:
    """Validate a raw document into ``model``.

    Raises:
        DecodeError: If the stored shape does not fit the model.
    """
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise DecodeError(f"cannot decode document into {model.__name__}: {exc}") from exc


def encode_document(document: BaseModel) -> dict[str, Any]:
    to_document = getattr(document, "to_document", None)
    if callable(to_document):
        return to_document()
    return document.model_dump(by_alias=True, exclude_none=True)


def assign_fields(target: BaseModel, source: BaseModel, keep_relations: bool = True) -> None:
    """Copy every field of ``source`` onto ``target`` in place.

    Stored documents omit unset values, so plain fields are always copied,
    including the ones left at their defaults. Relation fields are never
    stored; with ``keep_relations`` the target keeps its current relation
    values, otherwise they are reset from ``source``.
    """
    for handle in fields_of(source):
        if handle.is_relation and keep_relations:
            continue
        handle.set(target, handle.get(source))
