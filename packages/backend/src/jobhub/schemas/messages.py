"""Pydantic schemas for inbound worker messages.

Learn: Job submissions are validated per category (see
dispatcher/categories.py) because their payloads are opaque. Worker
control messages have a fixed shape, so they get real schemas here.
Extra fields are ignored; a ValidationError means the message is dropped.
"""

import math
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator


class Envelope(BaseModel):
    """Fields every inbound message may carry."""
    type: str
    v: Optional[Any] = Field(None, validation_alias=AliasChoices("v", "version"))


class WorkerRegister(BaseModel):
    worker_id: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    max_concurrency: int = Field(
        default=1,
        validation_alias=AliasChoices("max_concurrency", "max_concurrent"),
    )

    @field_validator("worker_id", mode="before")
    @classmethod
    def blank_id_means_generate(cls, value: Any) -> Any:
        return value or None

    @field_validator("tags", mode="before")
    @classmethod
    def null_tags_mean_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("max_concurrency", mode="before")
    @classmethod
    def default_when_missing(cls, value: Any) -> Any:
        """null or 0 means "use the default"; fractions round down.

        The registry clamps the result to >= 1.
        """
        if isinstance(value, float):
            if not math.isfinite(value):
                return 1
            value = math.floor(value)
        return value or 1


class WorkerStatus(BaseModel):
    running: Optional[int] = None

    @field_validator("running", mode="before")
    @classmethod
    def ignore_non_numeric(cls, value: Any) -> Any:
        """Only numbers update the count; anything else is a bare heartbeat."""
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        if not math.isfinite(value):
            return None
        return int(value)


class JobDone(BaseModel):
    job_id: Optional[str] = None

    @field_validator("job_id", mode="before")
    @classmethod
    def stringify(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)
