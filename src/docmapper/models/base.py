from datetime import datetime, timedelta, timezone
from typing import Any, ClassVar, Mapping, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from docmapper.models.identifiers import Identifier

T_Model = TypeVar("T_Model", bound="OrmModel")

# BSON datetimes carry millisecond precision.
_TIMESTAMP_RESOLUTION = timedelta(milliseconds=1)


def utcnow() -> datetime:
    """Current UTC time truncated to the precision the store keeps."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond - now.microsecond % 1000)


def next_timestamp(previous: datetime | None) -> datetime:
    """Return the current time, nudged forward so it is after ``previous``."""
    now = utcnow()
    if previous is not None:
        previous = ensure_utc(previous)
        if now <= previous:
            now = previous + _TIMESTAMP_RESOLUTION
    return now


def ensure_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


class OrmModel(BaseModel):
    """Base for persisted documents.

    Carries the store identifier and the audit timestamps, and exposes the
    lifecycle hooks the session invokes before create, save and delete.
    Subclasses may set ``COLLECTION_NAME`` to override the derived name.
    """

    COLLECTION_NAME: ClassVar[str | None] = None

    id: Identifier | None = Field(default=None, alias="_id")
    date_created: datetime | None = None
    date_updated: datetime | None = None
    date_deleted: datetime | None = None

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    @field_validator("date_created", "date_updated", "date_deleted", mode="after")
    @classmethod
    def _restore_timezone(cls, value: datetime | None) -> datetime | None:
        # pymongo clients without tz_aware hand back naive UTC datetimes
        if value is None:
            return None
        return ensure_utc(value)

    def before_create(self) -> None:
        now = next_timestamp(self.date_updated)
        self.date_created = now
        self.date_updated = now

    def before_save(self) -> None:
        self.date_updated = next_timestamp(self.date_updated)

    def before_delete(self) -> None:
        self.date_deleted = next_timestamp(self.date_deleted)

    def to_document(self) -> dict[str, Any]:
        """Serialize to the mapping handed to the driver.

        Unset optional values are omitted and relation fields never persist.
        """
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_document(cls: Type[T_Model], data: Mapping[str, Any]) -> T_Model:
        return cls.model_validate(data)
