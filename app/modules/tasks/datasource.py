"""Tasks data source."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from infrastructure.operations.errors import ValidationError
from modules.base import RestDataSource
from modules.tasks.models import Task, TaskPriority, TaskStatus

_STATUSES = {s.value for s in TaskStatus}
_PRIORITIES = {p.value for p in TaskPriority}


def _value(member: Any) -> Any:
    return member.value if isinstance(member, (TaskStatus, TaskPriority)) else member


class TaskDataSource(RestDataSource[Task]):
    """Resilient access to ``/tasks``."""

    resource = "tasks"
    path = "/tasks"
    model = Task

    async def create_task(
        self,
        content: str,
        status: TaskStatus = TaskStatus.TODO,
        priority: TaskPriority = TaskPriority.MEDIUM,
        due_date: Optional[datetime] = None,
        tags: Optional[List[str]] = None,
        parent_id: Optional[str] = None,
    ) -> Task:
        payload: Dict[str, Any] = {
            "content": content,
            "status": _value(status),
            "priority": _value(priority),
            "tags": tags or [],
        }
        if due_date is not None:
            payload["due_date"] = due_date.isoformat()
        if parent_id is not None:
            payload["parent_id"] = parent_id
        return await self.create(payload)

    async def list_by_status(self, status: TaskStatus) -> List[Task]:
        filters = {"status": _value(status)}
        self.validate_payload(filters)
        return await self.list(filters)

    async def list_by_priority(self, priority: TaskPriority) -> List[Task]:
        filters = {"priority": _value(priority)}
        self.validate_payload(filters)
        return await self.list(filters)

    async def list_subtasks(self, parent_id: str) -> List[Task]:
        self._require_id(parent_id)
        return await self.list({"parent_id": parent_id})

    async def update_status(self, task_id: str, status: TaskStatus) -> Task:
        """Change only the status of a task."""
        self._require_id(task_id)
        payload = {"status": _value(status)}
        self.validate_payload(payload)

        async def action() -> Task:
            data = await self.client.patch(
                f"{self.path}/{task_id}", json_data=payload, token=self._token()
            )
            return self._parse(data)

        task = await self._execute(self.operation_name("update_status"), action)
        self._store(task)
        self.cache.remove(self.list_cache_key)
        return task

    def validate_payload(self, payload: Dict[str, Any]) -> None:
        super().validate_payload(payload)
        if "content" in payload:
            content = payload["content"]
            if not isinstance(content, str) or not content.strip():
                raise ValidationError("Task content must not be empty", operation=self.resource)
        if "status" in payload and payload["status"] not in _STATUSES:
            raise ValidationError(
                f"Unknown task status: {payload['status']}", operation=self.resource
            )
        if "priority" in payload and payload["priority"] not in _PRIORITIES:
            raise ValidationError(
                f"Unknown task priority: {payload['priority']}", operation=self.resource
            )
        tags = payload.get("tags")
        if tags is not None and not (
            isinstance(tags, list) and all(isinstance(t, str) for t in tags)
        ):
            raise ValidationError("Task tags must be a list of strings", operation=self.resource)
