"""Pydantic models for tasks, subtasks and task documents."""

from __future__ import annotations

import re
from datetime import date
from enum import Enum

from pydantic import BaseModel, Field, field_validator

_COMMENT_RE = re.compile(r"<!--.*?-->")


class FormatError(ValueError):
    """Raised when a task document contains a malformed block."""

    def __init__(self, message: str, line_no: int | None = None) -> None:
        self.line_no = line_no
        if line_no is not None:
            message = f"line {line_no}: {message}"
        super().__init__(message)


class TaskStatus(str, Enum):
    """Lifecycle states for a task."""

    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"

    @property
    def symbol(self) -> str:
        return _STATUS_SYMBOLS[self]

    @property
    def label(self) -> str:
        """Section heading used in tasks.md."""
        return _STATUS_LABELS[self]

    @classmethod
    def from_symbol(cls, symbol: str) -> TaskStatus:
        for status, sym in _STATUS_SYMBOLS.items():
            if sym == symbol:
                return status
        raise FormatError(f"unknown status symbol {symbol!r}")


_STATUS_SYMBOLS = {
    TaskStatus.OPEN: " ",
    TaskStatus.IN_PROGRESS: "~",
    TaskStatus.DONE: "x",
}

_STATUS_LABELS = {
    TaskStatus.OPEN: "Open",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.DONE: "Done",
}


class Subtask(BaseModel):
    """A checklist item nested under a task, addressed by its position."""

    title: str
    done: bool = False

    @field_validator("title")
    @classmethod
    def single_line(cls, v: str) -> str:
        # Subtasks are single-line.
        return " ".join(v.split())


class Task(BaseModel):
    """A unit of work. Identity is the id alone."""

    id: int = Field(gt=0)
    description: str = ""
    status: TaskStatus = TaskStatus.OPEN
    priority: int = Field(default=2, ge=1, le=3)
    created_date: date = Field(default_factory=date.today)
    tags: list[str] = Field(default_factory=list)
    subtasks: list[Subtask] = Field(default_factory=list)

    @field_validator("description")
    @classmethod
    def normalize_newlines(cls, v: str) -> str:
        return v.replace("\r\n", "\n").replace("\r", "\n")

    @property
    def title(self) -> str:
        """First description line with inline comment markup removed."""
        if not self.description.strip():
            return ""
        first_line = self.description.split("\n", 1)[0]
        return _COMMENT_RE.sub("", first_line).strip()

    @property
    def done_subtasks(self) -> int:
        return sum(1 for s in self.subtasks if s.done)

    def days_since_created(self, today: date) -> int:
        return (today - self.created_date).days

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Task):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


class TaskDocument(BaseModel):
    """Parsed contents of one project's tasks.md."""

    project: str
    next_id: int = Field(default=1, ge=1)
    tasks: list[Task] = Field(default_factory=list)

    def get(self, task_id: int) -> Task | None:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def allocate_id(self) -> int:
        """Return the next unused id and advance the counter.

        Never hands out an id that was seen before, even after deletions,
        because NEXT_ID only grows.
        """
        highest = max((t.id for t in self.tasks), default=0)
        task_id = max(self.next_id, highest + 1)
        self.next_id = task_id + 1
        return task_id
