"""Relation descriptors, registered explicitly or derived from field metadata.

Explicit registration validates the relation immediately, so a typo in a
field or foreign-key name fails at startup instead of producing an empty
preload later.
"""

import structlog
from pydantic import BaseModel

from docmapper.errors import RelationError
from docmapper.models.enums import RelationKind
from docmapper.models.relations import RelationDescriptor
from docmapper.services.filters import ID_FIELD
from docmapper.services.introspector import (
    FieldHandle,
    collection_name_for,
    field_by_name,
    fields_of,
)


class RelationRegistry:
    """Holds typed relation descriptors keyed by (owner model, field name)."""

    def __init__(self, logger: structlog.stdlib.BoundLogger | None = None) -> None:
        self._descriptors: dict[tuple[type, str], RelationDescriptor] = {}
        self._logger = logger or structlog.get_logger(__name__)

    def register(
        self,
        owner: type[BaseModel],
        field_name: str,
        related: type[BaseModel],
        foreign_key: str,
    ) -> RelationDescriptor:
        """Register and validate a relation.

        Args:
            owner: Model that carries the relation field.
            field_name: Name of the relation field on ``owner``.
            related: Model stored in the related collection.
            foreign_key: For a single reference, the field on ``owner``
                holding the related identifier. For a collection, the field
                on ``related`` holding the owner's identifier.

        Returns:
            The registered descriptor.

        Raises:
            RelationError: If any part of the relation does not exist.
        """
        handle = self._require_field(owner, field_name)
        if handle.target is None or not issubclass(related, handle.target):
            raise RelationError(
                f"{owner.__name__}.{handle.name} does not hold {related.__name__} documents"
            )
        if handle.is_sequence:
            descriptor = self._many(owner, handle, related, foreign_key)
        else:
            descriptor = self._one(owner, handle, related, foreign_key)
        self._descriptors[(owner, handle.name)] = descriptor
        self._logger.debug(
            "relation_registered",
            owner=owner.__name__,
            field=handle.name,
            related=related.__name__,
            kind=descriptor.kind.value,
        )
        return descriptor

    def get(self, owner: type, field_name: str) -> RelationDescriptor | None:
        handle = field_by_name(owner, field_name)
        if handle is None:
            return None
        return self._descriptors.get((owner, handle.name))

    def describe(self, owner: type[BaseModel], field_name: str) -> RelationDescriptor:
        """Return the registered descriptor, or derive one from field metadata.

        Raises:
            RelationError: If the field is missing or its metadata is incomplete.
        """
        registered = self.get(owner, field_name)
        if registered is not None:
            return registered

        handle = self._require_field(owner, field_name)
        related = handle.target
        if related is None or not issubclass(related, BaseModel):
            raise RelationError(f"{owner.__name__}.{handle.name} is not a document reference")

        if handle.is_sequence:
            back_reference = self._back_reference(owner, related)
            if back_reference is None or not back_reference.foreign_key:
                raise RelationError(
                    f"{related.__name__} has no {owner.__name__} reference declaring a foreign key"
                )
            return self._many(owner, handle, related, back_reference.foreign_key)

        if not handle.foreign_key:
            raise RelationError(f"{owner.__name__}.{handle.name} declares no foreign key")
        return self._one(owner, handle, related, handle.foreign_key)

    def clear(self) -> None:
        self._descriptors.clear()

    def _require_field(self, owner: type, field_name: str) -> FieldHandle:
        handle = field_by_name(owner, field_name)
        if handle is None:
            raise RelationError(f"{getattr(owner, '__name__', owner)} has no field '{field_name}'")
        return handle

    def _one(
        self,
        owner: type[BaseModel],
        handle: FieldHandle,
        related: type[BaseModel],
        foreign_key: str,
    ) -> RelationDescriptor:
        local_key = field_by_name(owner, foreign_key)
        if local_key is None:
            raise RelationError(f"{owner.__name__} has no foreign key field '{foreign_key}'")
        return RelationDescriptor(
            owner=owner,
            field_name=handle.name,
            related=related,
            kind=RelationKind.ONE,
            foreign_key=local_key.name,
            key_field=ID_FIELD,
            collection=collection_name_for(related),
        )

    def _many(
        self,
        owner: type[BaseModel],
        handle: FieldHandle,
        related: type[BaseModel],
        foreign_key: str,
    ) -> RelationDescriptor:
        remote_key = field_by_name(related, foreign_key)
        if remote_key is None:
            raise RelationError(f"{related.__name__} has no foreign key field '{foreign_key}'")
        return RelationDescriptor(
            owner=owner,
            field_name=handle.name,
            related=related,
            kind=RelationKind.MANY,
            foreign_key=remote_key.name,
            key_field=remote_key.persisted_name,
            collection=collection_name_for(related),
        )

    @staticmethod
    def _back_reference(owner: type, related: type) -> FieldHandle | None:
        # Matched by the owner's type name first, then by declared type.
        by_name = field_by_name(related, owner.__name__)
        if by_name is not None and by_name.is_relation:
            return by_name
        for handle in fields_of(related):
            if handle.is_relation and handle.target is owner and not handle.is_sequence:
                return handle
        return None


default_registry = RelationRegistry()
