from pydantic import BaseModel, ConfigDict, Field


class OperationContext(BaseModel):
    """Per-session overrides applied to every store call.

    ``timeout`` replaces the configured operation budget (seconds) and
    ``comment`` is forwarded to the server so operations can be traced in
    the profiler and logs.
    """

    timeout: float | None = Field(default=None, gt=0)
    comment: str | None = None

    model_config = ConfigDict(frozen=True, extra="forbid")
