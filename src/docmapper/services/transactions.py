"""Multi-operation units of work on top of pymongo client sessions."""

import structlog
from pymongo import MongoClient
from pymongo.client_session import ClientSession

from docmapper.errors import StoreError


class TransactionController:
    """Starts, commits and aborts one transaction at a time.

    ``commit`` and ``rollback`` always end the underlying client session,
    even when the server rejects the operation, and are no-ops when no
    transaction is active.
    """

    def __init__(
        self,
        client: MongoClient | None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._client = client
        self._session: ClientSession | None = None
        self._logger = logger or structlog.get_logger(__name__)

    @property
    def active(self) -> bool:
        return self._session is not None

    @property
    def handle(self) -> ClientSession | None:
        return self._session

    def begin(self) -> None:
        """Start a client session and a transaction on it.

        Raises:
            StoreError: If no client is bound.
            PyMongoError: Passed through from the driver.
        """
        if self._client is None:
            raise StoreError("cannot begin a transaction without a store client")
        if self._session is not None:
            self._logger.debug("transaction_already_active")
            return
        session = self._client.start_session()
        try:
            session.start_transaction()
        except Exception:
            session.end_session()
            raise
        self._session = session
        self._logger.info("transaction_started")

    def commit(self) -> None:
        if self._session is None:
            return
        try:
            self._session.commit_transaction()
        finally:
            self._end()
        self._logger.info("transaction_committed")

    def rollback(self) -> None:
        if self._session is None:
            return
        try:
            self._session.abort_transaction()
        finally:
            self._end()
        self._logger.info("transaction_rolled_back")

    def _end(self) -> None:
        session, self._session = self._session, None
        if session is not None:
            session.end_session()
