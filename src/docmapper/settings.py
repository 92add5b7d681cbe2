"""Configuration for MongoDB connections and session behaviour.

Applications can build a ``MapperSettings`` at startup and pass it to the
factory functions; otherwise the environment-backed defaults are used.
"""

import os

from pydantic import BaseModel, Field


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class MapperSettings(BaseModel):
    """Connection target, per-operation time budgets and strictness."""

    uri: str = Field(default_factory=lambda: os.getenv("MONGO_URI", "mongodb://localhost:27017"))
    database: str = Field(default_factory=lambda: os.getenv("MONGO_DB_NAME", "docmapper"))
    operation_timeout: float = Field(
        default_factory=lambda: float(os.getenv("DOCMAPPER_OPERATION_TIMEOUT", "10")),
        gt=0,
    )
    preload_timeout: float = Field(
        default_factory=lambda: float(os.getenv("DOCMAPPER_PRELOAD_TIMEOUT", "30")),
        gt=0,
    )
    strict: bool = Field(default_factory=lambda: _env_bool("DOCMAPPER_STRICT"))

    model_config = {"frozen": True}
