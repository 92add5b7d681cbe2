"""Resolves requested relations on fetched documents with secondary queries."""

from typing import Any

import structlog
from pydantic import BaseModel
from pymongo.database import Database

from docmapper.errors import DocumentNotFoundError, RelationError
from docmapper.models.enums import RelationKind
from docmapper.models.identifiers import ensure_object_id
from docmapper.models.relations import RelationDescriptor
from docmapper.services.decoding import decode_document
from docmapper.services.registry import RelationRegistry


class RelationResolver:
    """Fills relation fields on a document, one relation name at a time.

    In lenient mode, unknown or misconfigured relations are skipped. In
    strict mode they raise ``RelationError``. Store and decode failures
    always raise and stop processing of the remaining relations.
    """

    def __init__(
        self,
        registry: RelationRegistry,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._registry = registry
        self._logger = logger or structlog.get_logger(__name__)

    def resolve(
        self,
        database: Database,
        document: BaseModel,
        relations: list[str],
        *,
        strict: bool = False,
        options: dict[str, Any] | None = None,
    ) -> None:
        """Resolve ``relations`` on ``document`` in order.

        Args:
            database: Database the related collections live in.
            document: Fetched owning document, updated in place.
            relations: Relation (field) names to resolve.
            strict: Raise instead of skipping unknown or misconfigured relations.
            options: Extra keyword arguments for each store call.

        Raises:
            RelationError: In strict mode, for an unusable relation name.
            DocumentNotFoundError: If a single reference points nowhere.
            DecodeError: If a related document does not fit its model.
            PyMongoError: Passed through from the driver.
        """
        options = options or {}
        owner = type(document)
        for name in relations:
            try:
                descriptor = self._registry.describe(owner, name)
            except RelationError as exc:
                if strict:
                    raise
                self._logger.debug("preload_skipped", owner=owner.__name__, relation=name, reason=str(exc))
                continue

            collection = database[descriptor.collection]
            if descriptor.kind is RelationKind.MANY:
                self._resolve_many(collection, document, descriptor, options)
            else:
                self._resolve_one(collection, document, descriptor, options)

    def _resolve_many(
        self,
        collection: Any,
        document: BaseModel,
        descriptor: RelationDescriptor,
        options: dict[str, Any],
    ) -> None:
        owner_id = getattr(document, "id", None)
        if owner_id is None:
            setattr(document, descriptor.field_name, [])
            return
        cursor = collection.find({descriptor.key_field: owner_id}, **options)
        related = [decode_document(descriptor.related, raw) for raw in cursor]
        setattr(document, descriptor.field_name, related)
        self._logger.debug(
            "preload_resolved",
            owner=descriptor.owner.__name__,
            relation=descriptor.field_name,
            collection=descriptor.collection,
            count=len(related),
        )

    def _resolve_one(
        self,
        collection: Any,
        document: BaseModel,
        descriptor: RelationDescriptor,
        options: dict[str, Any],
    ) -> None:
        related_id = ensure_object_id(getattr(document, descriptor.foreign_key))
        if related_id is None:
            return
        raw = collection.find_one({descriptor.key_field: related_id}, **options)
        if raw is None:
            raise DocumentNotFoundError(
                f"no {descriptor.related.__name__} with id {related_id} in '{descriptor.collection}'"
            )
        setattr(document, descriptor.field_name, decode_document(descriptor.related, raw))
        self._logger.debug(
            "preload_resolved",
            owner=descriptor.owner.__name__,
            relation=descriptor.field_name,
            collection=descriptor.collection,
            count=1,
        )
