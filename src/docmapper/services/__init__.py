from docmapper.services.factory import create_client, create_session, new_session
from docmapper.services.preload import RelationResolver
from docmapper.services.registry import RelationRegistry, default_registry
from docmapper.services.session import Session
from docmapper.services.transactions import TransactionController

__all__ = [
    "RelationRegistry",
    "RelationResolver",
    "Session",
    "TransactionController",
    "create_client",
    "create_session",
    "default_registry",
    "new_session",
]
