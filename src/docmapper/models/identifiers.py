"""Conversion between external hex identifiers and BSON ObjectIds."""

from typing import Annotated, Any

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BeforeValidator

from docmapper.errors import InvalidIdentifierError

ZERO_IDENTIFIER = ObjectId(b"\x00" * 12)


def decode(text: Any) -> ObjectId:
    """Parse a 24-character hex string into an ObjectId.

    Args:
        text: External identifier, normally a hex string.

    Returns:
        The parsed ObjectId.

    Raises:
        InvalidIdentifierError: If ``text`` is not a well-formed identifier.
    """
    if not isinstance(text, str):
        raise InvalidIdentifierError(f"identifier must be a string, got {type(text).__name__}")
    if len(text) != 24:
        raise InvalidIdentifierError(f"'{text}' is not a 24-character hex identifier")
    try:
        return ObjectId(text)
    except (InvalidId, TypeError) as exc:
        raise InvalidIdentifierError(f"'{text}' is not a valid identifier") from exc


def encode(identifier: ObjectId) -> str:
    return str(identifier)


def is_zero(identifier: ObjectId | None) -> bool:
    """Return True when the identifier is absent or all zero bytes."""
    if identifier is None:
        return True
    return identifier.binary == ZERO_IDENTIFIER.binary


def new_identifier() -> ObjectId:
    return ObjectId()


def ensure_object_id(value: Any) -> ObjectId | None:
    if value is None or isinstance(value, ObjectId):
        return value
    if isinstance(value, str):
        return decode(value)
    raise InvalidIdentifierError(f"expected ObjectId or hex string, got {type(value).__name__}")


def _validate_identifier(value: Any) -> ObjectId | None:
    try:
        return ensure_object_id(value)
    except InvalidIdentifierError as exc:
        raise ValueError(str(exc)) from exc


Identifier = Annotated[ObjectId, BeforeValidator(_validate_identifier)]
"""ObjectId field type that also accepts hex strings on input."""
