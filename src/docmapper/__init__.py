"""docmapper - Typed document mapping for MongoDB with chainable sessions."""

from importlib.metadata import version, PackageNotFoundError

from docmapper.models.base import OrmModel
from docmapper.models.context import OperationContext
from docmapper.models.relations import relation
from docmapper.services.registry import RelationRegistry, default_registry
from docmapper.services.factory import create_client, create_session, new_session
from docmapper.services.session import Session
from docmapper.settings import MapperSettings

try:
    __version__ = version("docmapper")
except PackageNotFoundError:
    __version__ = "unknown"

__all__ = [
    "__version__",
    "MapperSettings",
    "OperationContext",
    "OrmModel",
    "RelationRegistry",
    "Session",
    "create_client",
    "create_session",
    "default_registry",
    "new_session",
    "relation",
]
