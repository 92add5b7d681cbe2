"""Factory functions for creating store clients and sessions.

The client is long-lived and shared; create one per process and hand it to
``new_session`` for each logical unit of work.
"""

import structlog
from pymongo import MongoClient

from docmapper.services.registry import RelationRegistry
from docmapper.services.session import Session
from docmapper.settings import MapperSettings


def create_client(settings: MapperSettings | None = None) -> MongoClient:
    """Create a MongoClient that returns timezone-aware datetimes.

    Args:
        settings: Connection settings. Defaults to the environment.

    Returns:
        MongoClient connected lazily to ``settings.uri``.
    """
    settings = settings or MapperSettings()
    return MongoClient(settings.uri, tz_aware=True)


def new_session(
    client: MongoClient | None,
    database: str,
    settings: MapperSettings | None = None,
    registry: RelationRegistry | None = None,
    logger: structlog.stdlib.BoundLogger | None = None,
) -> Session:
    """Create a session bound to one database of a shared client.

    Args:
        client: Shared MongoClient the session borrows operations from.
        database: Database every operation of the session targets.
        settings: Timeouts and strictness. Defaults to the environment.
        registry: Relation registry. Defaults to the process-wide one.
        logger: Logger for session events.

    Returns:
        A fresh Session with no pending state.
    """
    logger = logger or structlog.get_logger(__name__)
    if settings is not None and settings.database != database:
        settings = settings.model_copy(update={"database": database})
    return Session(
        client=client,
        database=database,
        settings=settings,
        registry=registry,
        logger=logger,
    )


def create_session(
    settings: MapperSettings | None = None,
    client: MongoClient | None = None,
    logger: structlog.stdlib.BoundLogger | None = None,
) -> Session:
    """Create a session from settings, building a client if none is given."""
    settings = settings or MapperSettings()
    client = client or create_client(settings)
    return new_session(client, settings.database, settings=settings, logger=logger)
