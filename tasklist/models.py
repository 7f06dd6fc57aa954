"""Pydantic models for tasks and store notifications.

Persisted field names follow the stored record shape
(``id``, ``text``, ``createdAt``, ``completed``).
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class Task(BaseModel):
    """A single to-do item."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1, description="Opaque unique identifier, never reused")
    text: str = Field(..., description="Trimmed, non-empty task text")
    created_at: datetime = Field(..., alias="createdAt", description="When the task was created")
    completed: bool = Field(default=False, description="Whether the task has been completed")

    @field_validator("text")
    @classmethod
    def strip_text(cls, value: str) -> str:
        """Trim surrounding whitespace and reject blank text."""
        value = value.strip()
        if not value:
            raise ValueError("task text must not be blank")
        return value

    @field_validator("created_at")
    @classmethod
    def ensure_aware(cls, value: datetime) -> datetime:
        """Treat naive timestamps as UTC."""
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @field_serializer("created_at")
    def serialize_created_at(self, value: datetime) -> str:
        """ISO-8601 in UTC with a ``Z`` suffix, millisecond precision when exact."""
        value = value.astimezone(UTC)
        timespec = "milliseconds" if value.microsecond % 1000 == 0 else "microseconds"
        return value.isoformat(timespec=timespec).replace("+00:00", "Z")


TaskSnapshot = tuple[Task, ...]


class StateChange(BaseModel):
    """Published by the store after every effective mutation (and after load)."""

    model_config = ConfigDict(frozen=True)

    tasks: TaskSnapshot = Field(..., description="Read-only snapshot of the list after the change")
    count_changed: bool = Field(default=True, description="Whether the number of tasks may have changed")
