from docmapper.models.base import OrmModel
from docmapper.models.context import OperationContext
from docmapper.models.enums import LifecycleEvent, RelationKind
from docmapper.models.identifiers import Identifier, decode, encode, is_zero, new_identifier
from docmapper.models.relations import RelationDescriptor, relation

__all__ = [
    "Identifier",
    "LifecycleEvent",
    "OperationContext",
    "OrmModel",
    "RelationDescriptor",
    "RelationKind",
    "decode",
    "encode",
    "is_zero",
    "new_identifier",
    "relation",
]
