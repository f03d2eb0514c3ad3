"""Task models."""

from enum import Enum
from typing import Optional, Any
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.utils.dates import align_to, start_of_day
from src.utils.errors import TaskValidationError

MIN_NAME_LENGTH = 3


class TaskStatus(str, Enum):
    """Derived task status. Never stored."""
    PENDING = "PENDING"
    OVERDUE = "OVERDUE"
    COMPLETED = "COMPLETED"


def _check_name(value: str) -> str:
    name = value.strip()
    if not name:
        raise ValueError("Task name is required")
    if len(name) < MIN_NAME_LENGTH:
        raise ValueError(f"Task name must be at least {MIN_NAME_LENGTH} characters")
    return name


class Task(BaseModel):
    """A single to-do item owned by one user.

    Field names match the columns of the ``tasks`` table, so a store row
    validates straight into a Task.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Task ID (text, assigned on creation)")
    name: str = Field(..., description="Task name")
    details: str = Field(default="", description="Free-text details")
    due_date: datetime = Field(..., description="Due date and time")
    created_date: datetime = Field(..., description="Creation time, immutable")
    is_completed: bool = Field(default=False, description="Completion flag")
    completed_date: Optional[datetime] = Field(None, description="Set iff is_completed")
    user_id: str = Field(..., description="Owning user ID")

    @field_validator("details", mode="before")
    @classmethod
    def _details_default(cls, value: Any) -> Any:
        return "" if value is None else value

    @model_validator(mode="after")
    def _completion_consistent(self) -> "Task":
        """completed_date must be present exactly when the task is completed."""
        if self.is_completed and self.completed_date is None:
            raise ValueError("completed_date is required when is_completed is true")
        if not self.is_completed and self.completed_date is not None:
            raise ValueError("completed_date must be empty when is_completed is false")
        return self

    def toggle_completion(self, now: datetime) -> "Task":
        """Return a copy with completion flipped and completed_date kept in step."""
        completed = not self.is_completed
        return self.model_copy(update={
            "is_completed": completed,
            "completed_date": now if completed else None,
        })

    def to_row(self) -> dict[str, Any]:
        """Serialize for the store."""
        return self.model_dump(mode="json")


class CreateTaskRequest(BaseModel):
    """Fields a user supplies when creating a task."""
    name: str = Field(..., description="Task name, at least 3 characters after trimming")
    details: str = Field(default="", description="Free-text details")
    due_date: datetime = Field(..., description="Due date and time")
    user_id: str = Field(..., min_length=1, description="Owning user ID")

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        return _check_name(value)

    @field_validator("details", mode="before")
    @classmethod
    def _strip_details(cls, value: Any) -> Any:
        if value is None:
            return ""
        return value.strip() if isinstance(value, str) else value

    def to_task(self, task_id: str, now: datetime) -> Task:
        return Task(
            id=task_id,
            name=self.name,
            details=self.details,
            due_date=self.due_date,
            created_date=now,
            user_id=self.user_id,
        )


class UpdateTaskRequest(BaseModel):
    """Partial update; unset fields are left untouched."""
    name: Optional[str] = None
    details: Optional[str] = None
    due_date: Optional[datetime] = None
    is_completed: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _check_name(value)

    @field_validator("details")
    @classmethod
    def _strip_details(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else value.strip()

    def to_updates(self, now: datetime) -> dict[str, Any]:
        """Build the column updates, keeping completed_date in step with is_completed."""
        updates: dict[str, Any] = {}
        if self.name is not None:
            updates["name"] = self.name
        if self.details is not None:
            updates["details"] = self.details
        if self.due_date is not None:
            updates["due_date"] = self.due_date.isoformat()
        if self.is_completed is not None:
            updates["is_completed"] = self.is_completed
            updates["completed_date"] = now.isoformat() if self.is_completed else None
        return updates


def validate_due_date(due_date: datetime, now: datetime) -> datetime:
    """Reject due dates before the start of today."""
    if align_to(due_date, now) < start_of_day(now):
        raise TaskValidationError("Due date cannot be in the past")
    return due_date
