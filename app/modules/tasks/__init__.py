"""Tasks module."""

from modules.tasks.datasource import TaskDataSource
from modules.tasks.models import Task, TaskPriority, TaskStatus

__all__ = ["Task", "TaskPriority", "TaskStatus", "TaskDataSource"]
