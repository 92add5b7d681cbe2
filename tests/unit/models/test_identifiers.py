import pytest
from bson import ObjectId
from pydantic import BaseModel, ConfigDict, ValidationError

from docmapper.errors import InvalidIdentifierError
from docmapper.models.identifiers import (
    ZERO_IDENTIFIER,
    Identifier,
    decode,
    encode,
    ensure_object_id,
    is_zero,
    new_identifier,
)


def test_decode_round_trips_encoded_identifiers() -> None:
    for _ in range(20):
        identifier = ObjectId()
        assert decode(encode(identifier)) == identifier


def test_decode_accepts_upper_case() -> None:
    identifier = ObjectId()

    assert decode(str(identifier).upper()) == identifier


@pytest.mark.parametrize(
    "text",
    [
        "",
        "abc",
        "zzzzzzzzzzzzzzzzzzzzzzzz",
        "0123456789abcdef0123456",
        "0123456789abcdef012345678",
        "0123456789abcdef0123456g",
        "id = ?",
        " 0123456789abcdef01234567",
        "0123456789abcdef01234567\n",
    ],
)
def test_decode_rejects_malformed_text(text: str) -> None:
    with pytest.raises(InvalidIdentifierError):
        decode(text)


@pytest.mark.parametrize("value", [None, 42, b"0123456789ab", ["0123456789abcdef01234567"]])
def test_decode_rejects_non_string_input(value) -> None:
    with pytest.raises(InvalidIdentifierError):
        decode(value)


def test_is_zero_detects_unassigned_identifiers() -> None:
    assert is_zero(None)
    assert is_zero(ZERO_IDENTIFIER)
    assert is_zero(ObjectId("000000000000000000000000"))
    assert not is_zero(new_identifier())


def test_ensure_object_id_passes_through_and_parses() -> None:
    identifier = ObjectId()

    assert ensure_object_id(identifier) is identifier
    assert ensure_object_id(str(identifier)) == identifier
    assert ensure_object_id(None) is None
    with pytest.raises(InvalidIdentifierError):
        ensure_object_id(3.5)


class _Holder(BaseModel):
    ref: Identifier | None = None

    model_config = ConfigDict(arbitrary_types_allowed=True)


def test_identifier_field_accepts_hex_strings() -> None:
    identifier = ObjectId()

    holder = _Holder(ref=str(identifier))

    assert holder.ref == identifier


def test_identifier_field_reports_malformed_values_as_validation_errors() -> None:
    with pytest.raises(ValidationError):
        _Holder(ref="not-an-id")
