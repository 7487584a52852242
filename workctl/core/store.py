"""File-backed project storage under a workspace directory.

Layout::

    <workspace>/01_Projects/<project>/notes/tasks.md
    <workspace>/01_Projects/<project>/notes/work-log.md

Every read re-parses the file and every write re-renders the whole document.
There is no cache and no locking; the last writer wins.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import date
from pathlib import Path

from workctl.core.markdown import parse_task_document, render_task_document
from workctl.core.models import Subtask, Task, TaskDocument, TaskStatus
from workctl.core.worklog import (
    TaskEvent,
    append_log_entry,
    format_task_event,
    parse_task_events,
)
from workctl.events import BoardChanged, EventBus

logger = logging.getLogger(__name__)

PROJECTS_DIR = "01_Projects"


class ProjectNotFoundError(LookupError):
    """The project directory does not exist in the workspace."""

    def __init__(self, project: str, path: Path) -> None:
        self.project = project
        self.path = path
        super().__init__(f"Project '{project}' not found at {path}")


class TaskNotFoundError(LookupError):
    def __init__(self, project: str, task_id: int) -> None:
        self.project = project
        self.task_id = task_id
        super().__init__(f"Task #{task_id} not found in project '{project}'")


class ProjectStore:
    """Reads and mutates one workspace's task documents and work logs."""

    def __init__(
        self,
        workspace: str | Path,
        today: Callable[[], date] = date.today,
        event_bus: EventBus | None = None,
    ) -> None:
        self.workspace = Path(workspace).expanduser()
        self._today = today
        self._event_bus = event_bus

    # -- locations ---------------------------------------------------------

    def project_dir(self, project: str) -> Path:
        if not project or "/" in project or "\\" in project or ".." in project:
            raise ValueError(f"Invalid project name: {project!r}")
        path = self.workspace / PROJECTS_DIR / project
        if not path.is_dir():
            raise ProjectNotFoundError(project, path)
        return path

    def tasks_path(self, project: str) -> Path:
        return self.project_dir(project) / "notes" / "tasks.md"

    def log_path(self, project: str) -> Path:
        return self.project_dir(project) / "notes" / "work-log.md"

    # -- reads ---------------------------------------------------------------

    def load_document(self, project: str) -> TaskDocument:
        path = self.tasks_path(project)
        if not path.exists():
            return TaskDocument(project=project)
        return parse_task_document(path.read_text(encoding="utf-8"), project)

    def load_tasks(self, project: str) -> list[Task]:
        return self.load_document(project).tasks

    def get_task(self, project: str, task_id: int) -> Task | None:
        return self.load_document(project).get(task_id)

    def read_log(self, project: str) -> str | None:
        """Return the raw work log, or None when the project has none."""
        path = self.log_path(project)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def load_events(self, project: str) -> list[TaskEvent]:
        text = self.read_log(project)
        return parse_task_events(text) if text else []

    # -- writes --------------------------------------------------------------

    def add_task(
        self,
        project: str,
        description: str,
        priority: int = 2,
        tags: Iterable[str] = (),
    ) -> Task:
        """Append an OPEN task with the next unused id."""
        doc = self.load_document(project)
        task = Task(
            id=doc.allocate_id(),
            description=description.strip(),
            priority=priority,
            created_date=self._today(),
            tags=_normalize_tags(tags),
        )
        doc.tasks.append(task)
        self._write(doc)
        logger.info("created task #%d in %s", task.id, project)
        self._auto_log(project, task, "created", None)
        self._publish(project, task.id, "created")
        return task

    def add_subtask(self, project: str, task_id: int, title: str) -> Task:
        doc = self.load_document(project)
        task = doc.get(task_id)
        if task is None:
            raise TaskNotFoundError(project, task_id)
        task.subtasks.append(Subtask(title=title.strip()))
        self._write(doc)
        logger.info("added subtask to task #%d in %s", task_id, project)
        self._publish(project, task_id, "subtask_added")
        return task

    def update_status(self, project: str, task_id: int, status: TaskStatus) -> Task:
        """Move a task to ``status``. Moving to the current status is a no-op."""
        doc = self.load_document(project)
        task = doc.get(task_id)
        if task is None:
            raise TaskNotFoundError(project, task_id)
        previous = task.status
        if previous is status:
            return task

        task.status = status
        self._write(doc)
        logger.info("moved task #%d in %s: %s -> %s", task_id, project, previous.value, status.value)
        if status is TaskStatus.IN_PROGRESS:
            self._auto_log(project, task, "started", previous)
        elif status is TaskStatus.DONE:
            self._auto_log(project, task, "completed", previous)
        self._publish(project, task_id, "status_changed")
        return task

    def append_log(
        self,
        project: str,
        section: str,
        message: str,
        tags: Iterable[str] = (),
    ) -> None:
        """Add a bullet to today's block of the work log, creating the file if needed."""
        path = self.log_path(project)
        if path.exists():
            text = path.read_text(encoding="utf-8")
        else:
            text = f"# {project} – Work Log\n"
        updated = append_log_entry(text, self._today(), section, message, tags)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(updated, encoding="utf-8")

    # -- internals -----------------------------------------------------------

    def _write(self, doc: TaskDocument) -> None:
        path = self.tasks_path(doc.project)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_task_document(doc), encoding="utf-8")

    def _auto_log(
        self,
        project: str,
        task: Task,
        action: str,
        previous: TaskStatus | None,
    ) -> None:
        verb = {"created": "Created", "started": "Started", "completed": "Completed"}[action]
        event = TaskEvent(
            task_id=task.id,
            action=action,
            day=self._today(),
            status=task.status.value,
            previous_status=previous.value if previous else None,
            tags=tuple(task.tags),
        )
        message = f"{verb} Task #{task.id} – {task.title}\n{format_task_event(event)}"
        section = "done" if action == "completed" else "assigned"
        try:
            self.append_log(project, section, message, ["task", action])
        except (OSError, ValueError):
            logger.warning("could not log %s event for task #%d", action, task.id, exc_info=True)

    def _publish(self, project: str, task_id: int, action: str) -> None:
        if self._event_bus is not None:
            self._event_bus.publish(BoardChanged(project=project, task_id=task_id, action=action))


def _normalize_tags(tags: Iterable[str]) -> list[str]:
    # Tags live inside an HTML comment as a comma-separated list.
    out: list[str] = []
    for tag in tags:
        for part in tag.split(","):
            cleaned = "-".join(part.strip().lstrip("#").lower().replace("<", "").replace(">", "").split())
            if cleaned and cleaned not in out:
                out.append(cleaned)
    return out
