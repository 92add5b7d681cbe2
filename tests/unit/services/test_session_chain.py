"""Tests for chained declarations and first-error-wins propagation."""

import pytest
from bson import ObjectId

from docmapper.errors import (
    DocumentValidationError,
    FilterExpressionError,
    InvalidIdentifierError,
    StoreError,
)
from docmapper.services.session import Session
from support.fake_mongo import FakeMongoClient
from support.shop import Customer, Order


class TestChainableDeclarations:
    def test_each_call_returns_the_same_session(self, session: Session) -> None:
        assert session.where({"name": "Ada"}) is session
        assert session.model(Customer) is session
        assert session.select("name") is session
        assert session.preload("customer") is session
        assert session.with_context(None) is session

    def test_where_accepts_identifier_expression(self, session: Session) -> None:
        identifier = ObjectId()

        session.where("id = ?", str(identifier))

        assert session.pending_filter == {"_id": identifier}

    def test_where_ignores_other_expressions_by_default(self, session: Session) -> None:
        session.where({"name": "Ada"}).where("name = ?", "Grace")

        assert session.error is None
        assert session.pending_filter == {"name": "Ada"}

    def test_where_reports_other_expressions_in_strict_mode(self, make_session) -> None:
        session = make_session(strict=True)

        session.where("name = ?", "Grace")

        assert isinstance(session.error, FilterExpressionError)

    def test_where_records_malformed_identifier(self, session: Session) -> None:
        session.where("id = ?", "xyz")

        assert isinstance(session.error, InvalidIdentifierError)

    def test_model_rejects_non_models(self, session: Session) -> None:
        session.model(42)

        assert isinstance(session.error, DocumentValidationError)

    def test_model_accepts_sequences_of_documents(self, session: Session) -> None:
        session.model([Customer(name="Ada")])

        assert session.error is None


class TestFirstErrorWins:
    def test_later_calls_keep_first_error_and_skip_store(
        self, session: Session, client: FakeMongoClient
    ) -> None:
        existing = Customer(_id=ObjectId(), name="Ada")

        session.where("id = ?", "bad")
        first_error = session.error
        session.first(Customer).find([], model=Customer).create(Customer(name="Grace"))
        session.save(existing).delete(existing).select("name").updates(existing)
        session.where("id = ?", "also-bad").begin()

        assert session.error is first_error
        assert client.calls == []
        assert client.sessions == []

    def test_chain_after_failed_terminal_call(self, session: Session, client: FakeMongoClient) -> None:
        session.save(Customer(name="Ada"))
        calls_before = len(client.calls)

        session.create(Customer(name="Grace"))

        assert isinstance(session.error, DocumentValidationError)
        assert len(client.calls) == calls_before

    def test_raise_for_error(self, session: Session) -> None:
        session.save(Customer(name="Ada"))

        with pytest.raises(DocumentValidationError) as excinfo:
            session.raise_for_error()
        assert excinfo.value is session.error

    def test_reset_clears_outcomes(self, session: Session) -> None:
        session.where({"name": "x"}).select("name").preload("customer").save(Customer(name="Ada"))

        session.reset()

        assert session.error is None
        assert session.pending_filter is None
        assert session.selected_fields is None
        assert session.preload_relations == []
        assert session.raise_for_error() is session

    def test_reset_session_can_run_again(self, session: Session) -> None:
        session.save(Customer(name="Ada")).reset()

        session.create(Order(number="A-1"))

        assert session.error is None


def test_operations_without_client_record_store_error(settings) -> None:
    session = Session(client=None, database="shop", settings=settings)

    session.first(Customer, str(ObjectId()))

    assert isinstance(session.error, StoreError)
