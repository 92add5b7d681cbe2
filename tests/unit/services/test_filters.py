import pytest
from bson import ObjectId

from docmapper.errors import DocumentValidationError, FilterExpressionError, InvalidIdentifierError
from docmapper.services.filters import (
    filter_from_document,
    filter_from_expression,
    filter_from_id,
    filter_from_value,
)
from support.shop import Customer


def test_filter_from_id_wraps_decoded_identifier() -> None:
    identifier = ObjectId()

    assert filter_from_id(str(identifier)) == {"_id": identifier}
    assert filter_from_id(identifier) == {"_id": identifier}


def test_filter_from_id_rejects_malformed_identifier() -> None:
    with pytest.raises(InvalidIdentifierError):
        filter_from_id("nope")


def test_filter_from_value_copies_mapping() -> None:
    raw = {"name": "Ada"}

    built = filter_from_value(raw)

    assert built == raw
    assert built is not raw


def test_filter_from_value_treats_none_as_match_all() -> None:
    assert filter_from_value(None) == {}


def test_filter_from_value_rejects_non_mapping() -> None:
    with pytest.raises(FilterExpressionError):
        filter_from_value(["name", "Ada"])


@pytest.mark.parametrize("expression", ["id = ?", "ID=?", "  _id =  ? "])
def test_identifier_expression_is_understood(expression: str) -> None:
    identifier = ObjectId()

    assert filter_from_expression(expression, str(identifier)) == {"_id": identifier}


def test_other_expressions_produce_no_filter() -> None:
    assert filter_from_expression("name = ?", "Ada") is None
    assert filter_from_expression("id > ?", str(ObjectId())) is None


def test_identifier_expression_without_argument_produces_no_filter() -> None:
    assert filter_from_expression("id = ?") is None


def test_identifier_expression_requires_string_argument() -> None:
    with pytest.raises(InvalidIdentifierError):
        filter_from_expression("id = ?", 12)


def test_filter_from_document_uses_identifier() -> None:
    identifier = ObjectId()

    assert filter_from_document(Customer(_id=identifier, name="Ada")) == {"_id": identifier}


def test_filter_from_document_requires_identifier() -> None:
    with pytest.raises(DocumentValidationError):
        filter_from_document(Customer(name="Ada"))
    with pytest.raises(DocumentValidationError):
        filter_from_document(object())
