"""Task documents, work logs and the file store that holds them."""

from workctl.core.markdown import (
    parse_task_document,
    parse_tasks,
    render_task_document,
    serialize_task,
)
from workctl.core.models import FormatError, Subtask, Task, TaskDocument, TaskStatus
from workctl.core.snapshot import (
    ProjectInsights,
    ProjectSnapshot,
    StagnantTask,
    build_insights,
    build_snapshot,
)
from workctl.core.store import ProjectNotFoundError, ProjectStore, TaskNotFoundError

__all__ = [
    "FormatError",
    "ProjectInsights",
    "ProjectNotFoundError",
    "ProjectSnapshot",
    "ProjectStore",
    "StagnantTask",
    "Subtask",
    "Task",
    "TaskDocument",
    "TaskNotFoundError",
    "TaskStatus",
    "build_insights",
    "build_snapshot",
    "parse_task_document",
    "parse_tasks",
    "render_task_document",
    "serialize_task",
]
