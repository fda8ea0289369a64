"""Unit tests for TaskDataSource and the Task model."""

import json
from datetime import datetime, timezone

import pytest

from infrastructure.operations.errors import ConflictError, ValidationError
from modules.tasks import Task, TaskDataSource, TaskPriority, TaskStatus

pytestmark = pytest.mark.unit

TASK = {
    "id": "t-1",
    "content": "Write report",
    "status": "todo",
    "priority": "high",
    "tags": ["work"],
}


@pytest.fixture
def tasks(api_client, make_executor):
    return TaskDataSource(api_client, executor=make_executor("tasks"))


class TestTaskModel:
    """Tests for Task parsing."""

    def test_parses_enums(self):
        task = Task.model_validate(TASK)
        assert task.status == TaskStatus.TODO
        assert task.priority == TaskPriority.HIGH

    def test_unknown_values_fall_back(self):
        task = Task.model_validate({"id": 3, "content": "x", "status": "archived", "priority": None})
        assert task.id == "3"
        assert task.status == TaskStatus.TODO
        assert task.priority == TaskPriority.MEDIUM

    def test_case_insensitive_status(self):
        assert Task.model_validate({"id": "t", "content": "x", "status": "DONE"}).status == TaskStatus.DONE

    def test_null_tags(self):
        assert Task.model_validate({"id": "t", "content": "x", "tags": None}).tags == []

    def test_to_payload(self):
        due = datetime(2026, 3, 1, tzinfo=timezone.utc)
        task = Task(id="t-1", content="x", due_date=due, parent_id="t-0")
        assert task.to_payload() == {
            "content": "x",
            "status": "todo",
            "priority": "medium",
            "tags": [],
            "due_date": due.isoformat(),
            "parent_id": "t-0",
        }


class TestCreateTask:
    """Tests for creating tasks."""

    @pytest.mark.asyncio
    async def test_create_task_payload(self, tasks, backend):
        backend.on("POST", "/tasks", (201, {"data": TASK}))
        due = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)

        task = await tasks.create_task(
            "Write report",
            priority=TaskPriority.HIGH,
            due_date=due,
            tags=["work"],
            parent_id="t-0",
        )

        assert task.id == "t-1"
        body = json.loads(backend.requests[0].content)
        assert body == {
            "content": "Write report",
            "status": "todo",
            "priority": "high",
            "tags": ["work"],
            "due_date": due.isoformat(),
            "parent_id": "t-0",
        }
        assert tasks.get_cached("t-1") == task

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"content": ""},
            {"content": "x", "status": "archived"},
            {"content": "x", "priority": "urgent"},
            {"content": "x", "tags": ["ok", 3]},
        ],
    )
    async def test_invalid_input_rejected(self, tasks, backend, kwargs):
        with pytest.raises(ValidationError):
            await tasks.create_task(**kwargs)
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_accepts_plain_string_values(self, tasks, backend):
        backend.on("POST", "/tasks", (201, {"data": TASK}))

        await tasks.create_task("Write report", status="in_progress", priority="low")

        body = json.loads(backend.requests[0].content)
        assert (body["status"], body["priority"]) == ("in_progress", "low")

    @pytest.mark.asyncio
    async def test_conflict_surfaces_unchanged(self, tasks, backend):
        backend.on("POST", "/tasks", (409, {"message": "duplicate task"}))

        with pytest.raises(ConflictError):
            await tasks.create_task("Write report")

        assert len(backend.requests) == 1
        assert tasks.executor.circuit_breaker.consecutive_failures == 0


class TestQueries:
    """Tests for filtered listing."""

    @pytest.mark.asyncio
    async def test_list_by_status(self, tasks, backend):
        backend.on("GET", "/tasks", (200, {"data": {"items": [TASK]}}))

        result = await tasks.list_by_status(TaskStatus.TODO)

        assert [t.id for t in result] == ["t-1"]
        assert dict(backend.requests[0].url.params) == {"status": "todo"}
        assert tasks.get_cached_list() is None
        assert tasks.get_cached("t-1") is not None

    @pytest.mark.asyncio
    async def test_list_by_priority(self, tasks, backend):
        backend.on("GET", "/tasks", (200, {"data": {"items": []}}))

        assert await tasks.list_by_priority(TaskPriority.LOW) == []
        assert dict(backend.requests[0].url.params) == {"priority": "low"}

    @pytest.mark.asyncio
    async def test_list_by_unknown_status_rejected(self, tasks, backend):
        with pytest.raises(ValidationError):
            await tasks.list_by_status("archived")
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_list_subtasks(self, tasks, backend):
        backend.on("GET", "/tasks", (200, {"data": {"items": [{**TASK, "id": "t-2", "parent_id": "t-1"}]}}))

        result = await tasks.list_subtasks("t-1")

        assert result[0].parent_id == "t-1"
        assert dict(backend.requests[0].url.params) == {"parent_id": "t-1"}

    @pytest.mark.asyncio
    async def test_unfiltered_list_cached(self, tasks, backend):
        backend.on("GET", "/tasks", (200, {"data": {"items": [TASK]}}))

        result = await tasks.list()

        assert tasks.get_cached_list() == result


class TestUpdateStatus:
    """Tests for status updates."""

    @pytest.mark.asyncio
    async def test_patches_status(self, tasks, backend):
        backend.on("PATCH", "/tasks/t-1", (200, {"data": {**TASK, "status": "done"}}))
        events = []
        tasks.events.add_listener(events.append)

        task = await tasks.update_status("t-1", TaskStatus.DONE)

        assert task.status == TaskStatus.DONE
        request = backend.requests_to("PATCH", "/tasks/t-1")[0]
        assert json.loads(request.content) == {"status": "done"}
        assert tasks.get_cached("t-1").status == TaskStatus.DONE
        assert events[0].operation == "tasks_update_status"

    @pytest.mark.asyncio
    async def test_unknown_status_rejected(self, tasks, backend):
        with pytest.raises(ValidationError):
            await tasks.update_status("t-1", "archived")
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_full_update(self, tasks, backend):
        backend.on("PUT", "/tasks/t-1", (200, {"data": {**TASK, "content": "Edit report"}}))

        task = await tasks.update("t-1", {"content": "Edit report", "status": "in_progress"})

        assert task.content == "Edit report"
