"""Chainable session that maps typed documents onto MongoDB collections.

A ``Session`` accumulates a filter, a field selection and relation names
through chained calls, then a terminal call (``first``, ``find``,
``create``, ``save``, ``delete``, ``updates``) runs against the store.
Outcomes are recorded on the session rather than raised: ``error``,
``rows_affected``, ``update_result`` and ``result``. Once ``error`` is set,
every later call except ``rollback`` returns without touching the store.

A session is a single-owner builder mutated in place; it is not safe to
share between threads. The ``MongoClient`` it borrows is.
"""

from collections.abc import Mapping
from contextlib import AbstractContextManager
from typing import Any

import pymongo
import structlog
from bson import ObjectId
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError
from pymongo.results import UpdateResult

from docmapper.errors import (
    CastError,
    DocMapperError,
    DocumentNotFoundError,
    DocumentValidationError,
    FilterExpressionError,
    StoreError,
)
from docmapper.models.context import OperationContext
from docmapper.models.enums import LifecycleEvent
from docmapper.models.identifiers import is_zero
from docmapper.services import hooks
from docmapper.services.decoding import assign_fields, decode_document, encode_document
from docmapper.services.filters import (
    ID_FIELD,
    filter_from_document,
    filter_from_expression,
    filter_from_id,
    filter_from_value,
)
from docmapper.services.introspector import collection_name_for, document_type_for, field_by_name
from docmapper.services.preload import RelationResolver
from docmapper.services.registry import RelationRegistry, default_registry
from docmapper.services.transactions import TransactionController
from docmapper.settings import MapperSettings


class Session:
    """Accumulator for one logical unit of work against a database."""

    def __init__(
        self,
        client: MongoClient | None,
        database: str,
        settings: MapperSettings | None = None,
        registry: RelationRegistry | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._client = client
        self._database_name = database
        self._settings = settings or MapperSettings(database=database)
        self._logger = logger or structlog.get_logger(__name__)
        self._resolver = RelationResolver(registry=registry or default_registry, logger=self._logger)
        self._transactions = TransactionController(client, logger=self._logger)
        self._context = OperationContext()
        self._filter: dict[str, Any] | None = None
        self._fields: list[str] | None = None
        self._model: type[BaseModel] | None = None

        self.strict = self._settings.strict
        self.error: Exception | None = None
        self.rows_affected = 0
        self.update_result: UpdateResult | None = None
        self.result: Any = None
        self.preload_relations: list[str] = []

    @property
    def database(self) -> str:
        return self._database_name

    @property
    def in_transaction(self) -> bool:
        return self._transactions.active

    @property
    def pending_filter(self) -> dict[str, Any] | None:
        return self._filter

    @property
    def selected_fields(self) -> list[str] | None:
        return self._fields

    # Chainable declarations

    def where(self, expression: str | Mapping[str, Any], *args: Any) -> "Session":
        """Set the pending filter.

        Accepts a filter mapping, or the expression ``"id = ?"`` with the
        identifier as its argument. Other expressions are ignored, or
        recorded as ``FilterExpressionError`` in strict mode.
        """
        if self.error is not None:
            return self
        try:
            if isinstance(expression, Mapping):
                self._filter = filter_from_value(expression)
                return self
            condition = filter_from_expression(expression, *args)
        except DocMapperError as exc:
            return self._record(exc, "where")
        if condition is None:
            if self.strict:
                return self._record(FilterExpressionError(f"unsupported expression '{expression}'"), "where")
            self._logger.debug("where_expression_ignored", expression=expression)
            return self
        self._filter = condition
        return self

    def model(self, value: Any) -> "Session":
        """Bind the document type used by ``find`` and ``updates``."""
        if self.error is not None:
            return self
        model = document_type_for(value)
        if model is None or not issubclass(model, BaseModel):
            return self._record(DocumentValidationError(f"cannot map {value!r} to a document model"), "model")
        self._model = model
        return self

    def select(self, *fields: str) -> "Session":
        if self.error is not None:
            return self
        self._fields = list(fields)
        return self

    def preload(self, relation: str) -> "Session":
        if self.error is not None:
            return self
        self.preload_relations.append(relation)
        return self

    def with_context(self, context: OperationContext | None) -> "Session":
        if self.error is not None:
            return self
        self._context = context or OperationContext()
        return self

    def set_strict(self, strict: bool = True) -> "Session":
        self.strict = strict
        return self

    # Transactions

    def begin(self) -> "Session":
        if self.error is not None:
            return self
        try:
            self._transactions.begin()
        except (DocMapperError, PyMongoError) as exc:
            return self._record(exc, "begin")
        return self

    def commit(self) -> "Session":
        """Commit the active transaction, or abort it if an error is recorded."""
        if not self._transactions.active:
            return self
        if self.error is not None:
            self._logger.warning("commit_aborted", error=str(self.error))
            return self.rollback()
        try:
            self._transactions.commit()
        except PyMongoError as exc:
            return self._record(exc, "commit")
        return self

    def rollback(self) -> "Session":
        try:
            self._transactions.rollback()
        except PyMongoError as exc:
            return self._record(exc, "rollback")
        return self

    # Terminal operations

    def first(self, out: BaseModel | type[BaseModel], id: str | ObjectId | None = None) -> "Session":
        """Fetch one document by ``id`` or the pending filter.

        ``out`` is either an instance, decoded in place, or a model class, in
        which case a new instance is built. Either way the document is left
        on ``result``.
        """
        if self.error is not None:
            return self
        model = out if isinstance(out, type) else type(out)
        try:
            condition = self._take_filter(id)
            collection = self._collection(model)
            with self._timeout():
                raw = collection.find_one(condition, **self._options())
            if raw is None:
                raise DocumentNotFoundError(f"no {model.__name__} matches {condition}")
            decoded = decode_document(model, raw)
        except (DocMapperError, PyMongoError) as exc:
            return self._record(exc, "first")

        if isinstance(out, type):
            document = decoded
        else:
            assign_fields(out, decoded, keep_relations=False)
            document = out
        self.result = document
        self._logger.debug("document_fetched", collection=collection.name, id=str(getattr(document, "id", None)))
        self._apply_preloads([document])
        return self

    def find(
        self,
        out: list,
        filter: Mapping[str, Any] | None = None,
        *,
        model: type[BaseModel] | None = None,
    ) -> "Session":
        """Fetch every matching document into ``out``, replacing its contents.

        The document type comes from ``model``, then ``Session.model``, then
        the first element already in ``out``. ``filter`` takes precedence
        over the pending filter; with neither, all documents match.
        """
        if self.error is not None:
            return self
        if not isinstance(out, list):
            self._filter = None
            return self._record(DocumentValidationError("find expects a list to fill"), "find")
        target = model or self._model or document_type_for(out)
        if target is None or not issubclass(target, BaseModel):
            self._filter = None
            return self._record(DocumentValidationError("cannot determine the document type for find"), "find")
        try:
            pending = self._take_filter()
            condition = filter_from_value(filter) if filter is not None else pending
            collection = self._collection(target)
            with self._timeout():
                cursor = collection.find(condition, **self._options())
                documents = [decode_document(target, raw) for raw in cursor]
        except (DocMapperError, PyMongoError) as exc:
            return self._record(exc, "find")

        out[:] = documents
        self.result = out
        self._logger.debug("documents_fetched", collection=collection.name, count=len(documents))
        self._apply_preloads(documents)
        return self

    def create(self, document: BaseModel) -> "Session":
        """Insert ``document`` and reload it so server-side values are visible."""
        if self.error is not None:
            return self
        self._filter = None
        if not isinstance(document, BaseModel):
            return self._record(DocumentValidationError("create expects a document instance"), "create")
        hooks.dispatch(document, LifecycleEvent.CREATE)
        try:
            collection = self._collection(type(document))
            with self._timeout():
                inserted = collection.insert_one(encode_document(document), **self._options())
            inserted_id = inserted.inserted_id
            if not isinstance(inserted_id, ObjectId):
                raise CastError(f"inserted id {inserted_id!r} is not an ObjectId")
            with self._timeout():
                raw = collection.find_one({ID_FIELD: inserted_id}, **self._options())
            if raw is None:
                raise DocumentNotFoundError(f"inserted document {inserted_id} could not be reloaded")
            assign_fields(document, decode_document(type(document), raw))
        except (DocMapperError, PyMongoError) as exc:
            return self._record(exc, "create")

        self.rows_affected = 1
        self.result = document
        self._logger.debug("document_created", collection=collection.name, id=str(inserted_id))
        return self

    def save(self, document: BaseModel) -> "Session":
        """Replace the stored document with ``document`` by identifier."""
        if self.error is not None:
            return self
        self._filter = None
        identifier = getattr(document, "id", None)
        if not isinstance(identifier, ObjectId) or is_zero(identifier):
            return self._record(
                DocumentValidationError("document must have a valid ObjectId identifier to be saved"),
                "save",
            )
        hooks.dispatch(document, LifecycleEvent.SAVE)
        try:
            collection = self._collection(type(document))
            with self._timeout():
                outcome = collection.replace_one({ID_FIELD: identifier}, encode_document(document), **self._options())
        except (DocMapperError, PyMongoError) as exc:
            return self._record(exc, "save")

        self.update_result = outcome
        self.rows_affected = outcome.matched_count
        self.result = document
        self._logger.debug("document_saved", collection=collection.name, id=str(identifier))
        return self

    def delete(self, document: BaseModel | type[BaseModel], id: str | ObjectId | None = None) -> "Session":
        """Delete one document.

        The filter comes from ``id``, then the pending filter, then the
        document's own identifier. ``document`` may be a model class when an
        id or filter is given.
        """
        if self.error is not None:
            return self
        model = document if isinstance(document, type) else type(document)
        try:
            if id is not None and id != "":
                condition = filter_from_id(id)
            elif self._filter is not None:
                condition = self._filter
            else:
                condition = filter_from_document(document)
            self._filter = None
            if not isinstance(document, type):
                hooks.dispatch(document, LifecycleEvent.DELETE)
            collection = self._collection(model)
            with self._timeout():
                outcome = collection.delete_one(condition, **self._options())
        except (DocMapperError, PyMongoError) as exc:
            self._filter = None
            return self._record(exc, "delete")

        self.rows_affected = outcome.deleted_count
        self._logger.debug("document_deleted", collection=collection.name, deleted=outcome.deleted_count)
        return self

    def updates(self, document: BaseModel) -> "Session":
        """Apply ``$set`` for the selected fields, or every field, by identifier.

        A full overwrite runs the save hook so the update timestamp advances;
        a field selection writes only what was selected.
        """
        if self.error is not None:
            return self
        self._filter = None
        identifier = getattr(document, "id", None)
        if not isinstance(identifier, ObjectId) or is_zero(identifier):
            self._fields = None
            return self._record(
                DocumentValidationError("document must have a valid ObjectId identifier to be updated"),
                "updates",
            )
        fields, self._fields = self._fields, None
        if fields is None:
            hooks.dispatch(document, LifecycleEvent.SAVE)
        changes = self._changes(document, fields)
        if not changes:
            self.rows_affected = 0
            self._logger.debug("update_skipped", reason="no fields to set")
            return self
        try:
            collection = self._collection(self._model or type(document))
            with self._timeout():
                outcome = collection.update_one({ID_FIELD: identifier}, {"$set": changes}, **self._options())
        except (DocMapperError, PyMongoError) as exc:
            return self._record(exc, "updates")

        self.update_result = outcome
        self.rows_affected = outcome.modified_count
        self._logger.debug(
            "document_updated",
            collection=collection.name,
            id=str(identifier),
            fields=sorted(changes),
        )
        return self

    # Outcome helpers

    def raise_for_error(self) -> "Session":
        if self.error is not None:
            raise self.error
        return self

    def reset(self) -> "Session":
        """Clear recorded outcomes and pending state; an open transaction stays open."""
        self.error = None
        self.rows_affected = 0
        self.update_result = None
        self.result = None
        self.preload_relations = []
        self._filter = None
        self._fields = None
        return self

    # Internals

    def _record(self, error: Exception, operation: str) -> "Session":
        if self.error is None:
            self.error = error
            self._logger.warning(
                "operation_failed",
                operation=operation,
                error_type=type(error).__name__,
                error=str(error),
            )
        return self

    def _database(self) -> Database:
        if self._client is None:
            raise StoreError("session has no store client")
        return self._client[self._database_name]

    def _collection(self, model: type) -> Any:
        name = collection_name_for(model)
        if name is None:
            raise DocumentValidationError(f"cannot derive a collection name for {model!r}")
        return self._database()[name]

    def _options(self) -> dict[str, Any]:
        options: dict[str, Any] = {}
        if self._transactions.handle is not None:
            options["session"] = self._transactions.handle
        if self._context.comment is not None:
            options["comment"] = self._context.comment
        return options

    def _timeout(self) -> AbstractContextManager:
        seconds = self._context.timeout or self._settings.operation_timeout
        return pymongo.timeout(seconds)

    def _take_filter(self, id: str | ObjectId | None = None) -> dict[str, Any]:
        pending, self._filter = self._filter, None
        if id is not None and id != "":
            return filter_from_id(id)
        return pending if pending is not None else {}

    def _changes(self, document: BaseModel, fields: list[str] | None) -> dict[str, Any]:
        if fields is None:
            changes = encode_document(document)
        else:
            selected = set()
            for name in fields:
                handle = field_by_name(document, name)
                if handle is None or handle.is_relation:
                    continue
                selected.add(handle.name)
            changes = document.model_dump(include=selected, by_alias=True) if selected else {}
        changes.pop(ID_FIELD, None)
        return changes

    def _apply_preloads(self, documents: list[BaseModel]) -> None:
        if not self.preload_relations:
            return
        relations, self.preload_relations = self.preload_relations, []
        budget = self._settings.preload_timeout * len(relations)
        database = self._database()
        for document in documents:
            try:
                with pymongo.timeout(budget):
                    self._resolver.resolve(
                        database,
                        document,
                        relations,
                        strict=self.strict,
                        options=self._options(),
                    )
            except (DocMapperError, PyMongoError) as exc:
                self._record(exc, "preload")
                return
