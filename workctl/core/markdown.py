"""Task document codec: parses and renders the tasks.md markup.

Two entry points share one block grammar:

* ``parse_tasks`` / ``serialize_task`` work on bare task blocks::

      1. [ ] Fix bug
          extra detail line
          - [ ] write test
          - [x] reproduce issue

* ``parse_task_document`` / ``render_task_document`` work on a whole tasks.md
  file, which adds a title heading, a NEXT_ID marker, status sections, a
  ``(Pn)`` priority label and a trailing ``<!-- created=... -->`` comment on
  each header.

Inline comments in a header are only interpreted by the document form. The
block form keeps them verbatim in ``description`` and drops them from
``title``, so ``serialize_task`` does not write them back.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date

from pydantic import ValidationError

from workctl.core.models import FormatError, Subtask, Task, TaskDocument, TaskStatus

_INDENT = "    "

_HEADER_RE = re.compile(r"^(\d+)\. \[(.)\](?: (.*))?$")
# Anything that starts like a header but fails _HEADER_RE is malformed.
_HEADER_LIKE_RE = re.compile(r"^\d+\.\s*\[")
_SUBTASK_RE = re.compile(r"^    - \[([ x])\] (.+)$")
_PRIORITY_RE = re.compile(r"^\(P([1-3])\) ")
_COMMENT_RE = re.compile(r"<!--.*?-->")
_CREATED_RE = re.compile(r"created=(\d{4}-\d{2}-\d{2})")
_TAGS_RE = re.compile(r"tags=(\S+?)(?=\s|-->|$)")
_NEXT_ID_RE = re.compile(r"NEXT_ID:\s*(\d+)")


@dataclass
class _Block:
    """Accumulates one task block while scanning lines."""

    task_id: int
    status: TaskStatus
    priority: int
    line_no: int
    lines: list[str] = field(default_factory=list)
    subtasks: list[Subtask] = field(default_factory=list)
    created: date | None = None
    tags: list[str] = field(default_factory=list)

    def to_task(self) -> Task:
        data: dict = {
            "id": self.task_id,
            "description": "\n".join(self.lines),
            "status": self.status,
            "priority": self.priority,
            "tags": self.tags,
            "subtasks": self.subtasks,
        }
        if self.created is not None:
            data["created_date"] = self.created
        try:
            return Task(**data)
        except ValidationError as e:
            raise FormatError(f"invalid task #{self.task_id}: {e}", self.line_no) from e


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_tasks(text: str) -> list[Task]:
    """Parse bare task blocks in file order.

    Raises FormatError on a malformed header or a subtask line that has no
    task above it.
    """
    tasks, _ = _parse(text, document=False)
    return tasks


def serialize_task(task: Task) -> str:
    """Render a task as a header line, indented description lines and subtasks."""
    lines = [f"{task.id}. [{task.status.symbol}] {task.title}".rstrip()]
    lines.extend(_INDENT + extra for extra in task.description.split("\n")[1:])
    lines.extend(_serialize_subtask(s) for s in task.subtasks)
    return "\n".join(lines)


def parse_task_document(text: str, project: str) -> TaskDocument:
    """Parse a whole tasks.md file, including NEXT_ID and header metadata."""
    tasks, next_id = _parse(text, document=True)
    doc = TaskDocument(project=project, tasks=tasks)
    highest = max((t.id for t in tasks), default=0)
    doc.next_id = max(next_id or 1, highest + 1)
    return doc


def render_task_document(doc: TaskDocument) -> str:
    """Render a TaskDocument as tasks.md, grouped by status and sorted by id."""
    parts = [
        f"# Tasks – {doc.project}",
        "",
        f"<!-- NEXT_ID: {doc.next_id} -->",
        "",
    ]
    for status in TaskStatus:
        parts.append(f"## {status.label}")
        section = sorted((t for t in doc.tasks if t.status is status), key=lambda t: t.id)
        parts.extend(_render_document_task(t) for t in section)
        parts.append("")
    return "\n".join(parts) + "\n"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _parse(text: str, *, document: bool) -> tuple[list[Task], int | None]:
    tasks: list[Task] = []
    next_id: int | None = None
    current: _Block | None = None

    for line_no, line in enumerate(text.splitlines(), start=1):
        if current is not None and line.startswith(_INDENT):
            _consume_indented(current, line, document=document)
            continue

        stripped = line.strip()
        if not stripped:
            _close(current, tasks)
            current = None
            continue

        header = _HEADER_RE.match(stripped)
        if header:
            _close(current, tasks)
            current = _open_block(header, line_no, document=document)
            continue
        if _HEADER_LIKE_RE.match(stripped):
            raise FormatError(f"malformed task header: {stripped!r}", line_no)
        if _SUBTASK_RE.match(line):
            raise FormatError("subtask line has no preceding task", line_no)

        # Headings and standalone comments are document scaffolding.
        if stripped.startswith("#") or stripped.startswith("<!--"):
            _close(current, tasks)
            current = None
            m = _NEXT_ID_RE.search(stripped)
            if m:
                next_id = int(m.group(1))
            continue

        if current is not None:
            # Hand-written files are not always indented.
            current.lines.append(stripped)

    _close(current, tasks)
    return tasks, next_id


def _open_block(header: re.Match[str], line_no: int, *, document: bool) -> _Block:
    task_id, symbol, rest = header.groups()
    rest = rest or ""
    try:
        status = TaskStatus.from_symbol(symbol)
    except FormatError as e:
        raise FormatError(str(e), line_no) from e

    priority = 2
    m = _PRIORITY_RE.match(rest)
    if m:
        priority = int(m.group(1))
        rest = rest[m.end():]

    block = _Block(task_id=int(task_id), status=status, priority=priority, line_no=line_no)
    if document:
        for comment in _COMMENT_RE.findall(rest):
            _apply_metadata(block, comment)
        rest = _COMMENT_RE.sub("", rest).strip()
    block.lines.append(rest)
    return block


def _consume_indented(block: _Block, line: str, *, document: bool) -> None:
    sub = _SUBTASK_RE.match(line)
    if sub:
        block.subtasks.append(Subtask(title=sub.group(2).strip(), done=sub.group(1) == "x"))
        return
    content = line[len(_INDENT):]
    if document and content.lstrip().startswith("<!--"):
        _apply_metadata(block, content)
        return
    block.lines.append(content)


def _apply_metadata(block: _Block, comment: str) -> None:
    created = _CREATED_RE.search(comment)
    if created:
        try:
            block.created = date.fromisoformat(created.group(1))
        except ValueError as e:
            raise FormatError(f"bad created date in task #{block.task_id}", block.line_no) from e
    tags = _TAGS_RE.search(comment)
    if tags:
        block.tags = [t for t in tags.group(1).split(",") if t]


def _close(block: _Block | None, tasks: list[Task]) -> None:
    if block is not None:
        tasks.append(block.to_task())


def _serialize_subtask(subtask: Subtask) -> str:
    return f"{_INDENT}- [{'x' if subtask.done else ' '}] {subtask.title}"


def _render_document_task(task: Task) -> str:
    meta = f"created={task.created_date.isoformat()}"
    if task.tags:
        meta += " tags=" + ",".join(task.tags)
    head = f"{task.id}. [{task.status.symbol}] (P{task.priority}) {task.title}".rstrip()
    lines = [f"{head}  <!-- {meta} -->"]
    lines.extend(_INDENT + extra for extra in task.description.split("\n")[1:])
    lines.extend(_serialize_subtask(s) for s in task.subtasks)
    return "\n".join(lines)
