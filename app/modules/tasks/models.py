"""Task entity."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Task(BaseModel):
    """A task as returned by the backend.

    Unknown status or priority values fall back to ``todo`` / ``medium``.
    """

    id: str = Field(..., description="Backend identifier")
    content: str = Field(..., description="Task description")
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)
    parent_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id", "parent_id", mode="before")
    @classmethod
    def coerce_ids(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, value: Any) -> Any:
        if isinstance(value, TaskStatus):
            return value
        try:
            return TaskStatus(str(value).lower())
        except ValueError:
            return TaskStatus.TODO

    @field_validator("priority", mode="before")
    @classmethod
    def parse_priority(cls, value: Any) -> Any:
        if isinstance(value, TaskPriority):
            return value
        try:
            return TaskPriority(str(value).lower())
        except ValueError:
            return TaskPriority.MEDIUM

    @field_validator("tags", mode="before")
    @classmethod
    def default_tags(cls, value: Any) -> Any:
        return [] if value is None else value

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "content": self.content,
            "status": self.status.value,
            "priority": self.priority.value,
            "tags": self.tags,
        }
        if self.due_date is not None:
            payload["due_date"] = self.due_date.isoformat()
        if self.parent_id is not None:
            payload["parent_id"] = self.parent_id
        return payload
