"""Builders for the filter documents handed to the store.

Only identifier equality is understood as a query expression. Any other
expression string produces no filter; the session decides whether that is
ignored or reported.
"""

import re
from collections.abc import Mapping
from typing import Any

from bson import ObjectId

from docmapper.errors import DocumentValidationError, FilterExpressionError
from docmapper.models.identifiers import decode, is_zero

ID_FIELD = "_id"

_ID_EQUALS = re.compile(r"^\s*_?id\s*=\s*\?\s*$", re.IGNORECASE)


def filter_from_id(identifier: str | ObjectId) -> dict[str, Any]:
    """Build ``{"_id": ObjectId}`` from a hex string or ObjectId.

    Raises:
        InvalidIdentifierError: If a string identifier is malformed.
    """
    if isinstance(identifier, ObjectId):
        return {ID_FIELD: identifier}
    return {ID_FIELD: decode(identifier)}


def filter_from_value(raw: Mapping[str, Any] | None) -> dict[str, Any]:
    """Copy a caller-built filter, treating ``None`` as match-all."""
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise FilterExpressionError(f"filter must be a mapping, got {type(raw).__name__}")
    return dict(raw)


def filter_from_expression(expression: str, *args: Any) -> dict[str, Any] | None:
    """Translate ``"id = ?"`` with one argument into an identifier filter.

    Returns:
        The filter, or None when the expression is not recognised.

    Raises:
        InvalidIdentifierError: If the identifier argument is malformed.
    """
    if not args or not _ID_EQUALS.match(expression):
        return None
    return filter_from_id(args[0])


def filter_from_document(document: Any) -> dict[str, Any]:
    """Build an identifier filter from a document's own ``id``.

    Raises:
        DocumentValidationError: If the document has no persisted identifier.
    """
    identifier = getattr(document, "id", None)
    if not isinstance(identifier, ObjectId) or is_zero(identifier):
        raise DocumentValidationError("document must have a valid ObjectId identifier")
    return {ID_FIELD: identifier}
