from enum import StrEnum


class LifecycleEvent(StrEnum):
    CREATE = "before_create"
    SAVE = "before_save"
    DELETE = "before_delete"


class RelationKind(StrEnum):
    ONE = "one"
    MANY = "many"
