import pytest

from docmapper.services.factory import new_session
from docmapper.services.registry import RelationRegistry
from docmapper.services.session import Session
from docmapper.settings import MapperSettings
from support.fake_mongo import FakeMongoClient

DATABASE = "shop"


@pytest.fixture
def client() -> FakeMongoClient:
    return FakeMongoClient()


@pytest.fixture
def settings() -> MapperSettings:
    return MapperSettings(
        uri="mongodb://localhost:27017",
        database=DATABASE,
        operation_timeout=5,
        preload_timeout=20,
        strict=False,
    )


@pytest.fixture
def registry() -> RelationRegistry:
    return RelationRegistry()


@pytest.fixture
def session(client: FakeMongoClient, settings: MapperSettings, registry: RelationRegistry) -> Session:
    return new_session(client, DATABASE, settings=settings, registry=registry)


@pytest.fixture
def make_session(client: FakeMongoClient, settings: MapperSettings, registry: RelationRegistry):
    """Build additional sessions on the same fake client."""

    def _make(**overrides) -> Session:
        effective = settings.model_copy(update=overrides) if overrides else settings
        return new_session(client, DATABASE, settings=effective, registry=registry)

    return _make
