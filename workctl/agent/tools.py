"""Tools the model may call against a project's tasks and work log.

Each tool declares a name, a description and a JSON schema, and exposes
``execute(project, arguments)``. ``execute`` never raises: every failure is
returned as a short error string so the model can correct itself on the next
turn.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from datetime import date, timedelta
from enum import Enum
from typing import Any, ClassVar

from workctl.core.models import FormatError, TaskStatus
from workctl.core.snapshot import build_insights, is_stagnant
from workctl.core.store import ProjectNotFoundError, ProjectStore
from workctl.core.worklog import search_log
from workctl.llm.models import ToolSpec

logger = logging.getLogger(__name__)


class ToolName(str, Enum):
    LIST_TASKS = "list_tasks"
    SEARCH_LOGS = "search_logs"
    GET_INSIGHTS = "get_insights"
    ADD_TASK = "add_task"
    ADD_SUBTASK = "add_subtask"
    MOVE_TASK = "move_task"


class ToolExecutionError(Exception):
    """Bad arguments or a missing target. Reported back to the model as text."""


class Tool(ABC):
    name: ClassVar[ToolName]
    description: ClassVar[str]
    input_schema: ClassVar[dict[str, Any]]
    writes: ClassVar[bool] = False
    error_prefix: ClassVar[str] = "Error"

    def __init__(self, store: ProjectStore, today: Callable[[], date] = date.today) -> None:
        self.store = store
        self.today = today

    def spec(self) -> ToolSpec:
        return ToolSpec(name=self.name.value, description=self.description, input_schema=self.input_schema)

    def execute(self, project: str, arguments: str | dict[str, Any]) -> str:
        logger.debug("tool %s project=%s args=%r", self.name.value, project, arguments)
        try:
            return self.run(project, _decode_arguments(arguments))
        except ToolExecutionError as e:
            logger.warning("tool %s rejected input: %s", self.name.value, e)
            return f"Error: {e}"
        except ProjectNotFoundError as e:
            logger.warning("tool %s: %s", self.name.value, e)
            return f"Error: {e}"
        except (FormatError, OSError, ValueError, LookupError) as e:
            logger.warning("tool %s failed: %s", self.name.value, e)
            return f"{self.error_prefix}: {e}"
        except Exception as e:
            logger.exception("tool %s crashed", self.name.value)
            return f"{self.error_prefix}: {e}"

    @abstractmethod
    def run(self, project: str, args: dict[str, Any]) -> str:
        ...


# ---------------------------------------------------------------------------
# Read tools
# ---------------------------------------------------------------------------


class ListTasksTool(Tool):
    name = ToolName.LIST_TASKS
    error_prefix = "Error listing tasks"
    description = (
        "List all tasks for the current project. Optionally filter by status "
        "(OPEN, IN_PROGRESS, DONE). Returns task ID, title, priority, status, "
        "and created date for each task. Use this to answer questions about "
        "what tasks exist, their priorities, or their current state."
    )
    input_schema = {
        "type": "object",
        "properties": {
            "status_filter": {
                "type": "string",
                "enum": ["ALL", "OPEN", "IN_PROGRESS", "DONE"],
                "description": "Filter tasks by status. Use ALL to get everything.",
            }
        },
        "required": [],
    }

    def run(self, project: str, args: dict[str, Any]) -> str:
        status_filter = str(args.get("status_filter") or "ALL").strip().upper()
        status = None if status_filter == "ALL" else _parse_status(status_filter)
        tasks = self.store.load_tasks(project)
        if status is not None:
            tasks = [t for t in tasks if t.status is status]

        if not tasks:
            suffix = "" if status_filter == "ALL" else f" with status {status_filter}"
            return f"No tasks found{suffix}."

        today = self.today()
        lines = [f"Found {len(tasks)} task(s):", ""]
        for t in tasks:
            lines.append(f"Task #{t.id}")
            lines.append(f"  Title:    {t.title}")
            lines.append(f"  Status:   {t.status.value}")
            lines.append(f"  Priority: P{t.priority}")
            lines.append(f"  Created:  {t.created_date.isoformat()}")
            if t.tags:
                lines.append(f"  Tags:     {', '.join(t.tags)}")
            if t.subtasks:
                lines.append(f"  Subtasks: {t.done_subtasks}/{len(t.subtasks)} done")
            age = t.days_since_created(today)
            if age > 0 and t.status is not TaskStatus.DONE:
                marker = " STAGNANT" if is_stagnant(t, today) else ""
                lines.append(f"  Age:      {age} days old{marker}")
            lines.append("")
        return "\n".join(lines)


class SearchLogsTool(Tool):
    name = ToolName.SEARCH_LOGS
    error_prefix = "Error searching logs"
    description = (
        "Search through the project's work log entries. Can search by keyword "
        "or filter by date range. Returns matching log entries with their dates "
        "and sections (Assigned, Done, Notes, Commands Used). Use this to answer "
        "questions about past work or find specific log entries."
    )
    input_schema = {
        "type": "object",
        "properties": {
            "keyword": {
                "type": "string",
                "description": "Search term to find in log entries. Use empty string to get all entries in date range.",
            },
            "from_date": {
                "type": "string",
                "description": "Start date in yyyy-MM-dd format. Defaults to 7 days ago.",
            },
            "to_date": {
                "type": "string",
                "description": "End date in yyyy-MM-dd format. Defaults to today.",
            },
        },
        "required": ["keyword"],
    }

    def run(self, project: str, args: dict[str, Any]) -> str:
        keyword = str(args.get("keyword") or "").strip()
        today = self.today()
        from_date = _parse_date(args.get("from_date"), "from_date") or today - timedelta(days=7)
        to_date = _parse_date(args.get("to_date"), "to_date") or today

        text = self.store.read_log(project)
        if text is None:
            return f"No work log found for project: {project}"

        results = search_log(text, keyword, from_date, to_date)
        if not results:
            matching = f" matching '{keyword}'" if keyword else ""
            return f"No log entries found{matching} between {from_date} and {to_date}."

        lines = [f"Found {len(results)} log entries:", ""]
        lines.extend(f"• {entry}" for entry in results)
        return "\n".join(lines)


class GetInsightsTool(Tool):
    name = ToolName.GET_INSIGHTS
    error_prefix = "Error generating insights"
    description = (
        "Get computed project insights and statistics: total/open/done task counts, "
        "completion rate, productivity score (0-100), number of stagnant tasks "
        "(not touched in 7+ days), tasks completed this week, and most used tag. "
        "Use this to answer questions about project health, productivity, or progress."
    )
    input_schema = {"type": "object", "properties": {}, "required": []}

    def run(self, project: str, args: dict[str, Any]) -> str:
        insights = build_insights(
            self.store.load_tasks(project),
            self.store.load_events(project),
            self.today(),
        )
        tag = f"#{insights.most_used_tag}" if insights.most_used_tag else "none"
        return "\n".join([
            f"Project Insights for: {project}",
            "",
            "Task Counts:",
            f"  Total:       {insights.total}",
            f"  Open:        {insights.open}",
            f"  In Progress: {insights.in_progress}",
            f"  Done:        {insights.done}",
            "",
            "Performance:",
            f"  Completion Rate:     {insights.completion_rate:.1f}%",
            f"  Completed This Week: {insights.completed_this_week}",
            f"  Productivity Score:  {insights.productivity_score:.1f} / 100",
            f"  Stagnant Tasks:      {insights.stagnant} (open > 7 days without change)",
            "",
            "Tagging:",
            f"  Most Used Tag: {tag}",
            "",
            "Activity:",
            f"  Active Days Logged: {len(insights.daily_activity)} days in log history",
            f"  Score Interpretation: {insights.score_label}",
        ])


# ---------------------------------------------------------------------------
# Write tools
# ---------------------------------------------------------------------------


class AddTaskTool(Tool):
    name = ToolName.ADD_TASK
    writes = True
    error_prefix = "Error creating task"
    description = (
        "Create a new task in the project. Use this to decompose a high-level "
        "goal into specific actionable tasks. Each task should be a clear, "
        "concrete action. Set priority: 1=High (urgent/blocking), "
        "2=Medium (normal work), 3=Low (nice to have)."
    )
    input_schema = {
        "type": "object",
        "properties": {
            "title": {
                "type": "string",
                "description": "Clear, actionable task title.",
            },
            "priority": {
                "type": "integer",
                "enum": [1, 2, 3],
                "description": "1=High, 2=Medium, 3=Low",
            },
            "tags": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Optional short tags, e.g. ['backend', 'bug'].",
            },
            "details": {
                "type": "string",
                "description": (
                    "Optional extra description lines under the title. Lines written "
                    "as '- [ ] step' or '- [x] step' are stored as subtasks of the new task."
                ),
            },
        },
        "required": ["title", "priority"],
    }

    def run(self, project: str, args: dict[str, Any]) -> str:
        title = str(args.get("title") or "").strip()
        if not title:
            raise ToolExecutionError("task title cannot be empty.")
        priority = _get_int(args, "priority", default=2)
        if priority not in (1, 2, 3):
            raise ToolExecutionError("priority must be 1, 2 or 3.")
        tags = args.get("tags") or []
        if isinstance(tags, str):
            tags = [tags]
        if not isinstance(tags, list):
            raise ToolExecutionError("tags must be a list of strings.")
        details = str(args.get("details") or "").strip()

        description = title.splitlines()[0] + (f"\n{details}" if details else "")
        task = self.store.add_task(project, description, priority, [str(t) for t in tags])
        return f"Task created successfully: #{task.id} [P{task.priority}] {task.title}"


class AddSubtaskTool(Tool):
    name = ToolName.ADD_SUBTASK
    writes = True
    error_prefix = "Error adding subtask"
    description = (
        "Add a subtask to an existing task. Use this when the user wants to break "
        "a task into smaller steps, or when explicitly asked to add a subtask to "
        "a specific task ID. Each subtask is a short, actionable item that "
        "contributes to completing the parent task."
    )
    input_schema = {
        "type": "object",
        "properties": {
            "task_id": {
                "type": "integer",
                "description": "The ID of the existing task to add the subtask to.",
            },
            "title": {
                "type": "string",
                "description": "Short, actionable subtask title. Keep it concise, one clear action.",
            },
        },
        "required": ["task_id", "title"],
    }

    def run(self, project: str, args: dict[str, Any]) -> str:
        task_id = _get_int(args, "task_id")
        title = str(args.get("title") or "").strip()
        if not title:
            raise ToolExecutionError("subtask title cannot be empty.")

        existing = self.store.get_task(project, task_id)
        if existing is None:
            raise ToolExecutionError(f"Task #{task_id} not found in project '{project}'.")

        task = self.store.add_subtask(project, task_id, title)
        return f'Subtask added to Task #{task_id} ("{existing.title}"): {task.subtasks[-1].title}'


class MoveTaskTool(Tool):
    name = ToolName.MOVE_TASK
    writes = True
    error_prefix = "Error moving task"
    description = (
        "Move a task to a different status: OPEN, IN_PROGRESS, or DONE. "
        "Use this when the user wants to update the state of a specific task. "
        "You must know the task ID. Call list_tasks first if unsure."
    )
    input_schema = {
        "type": "object",
        "properties": {
            "task_id": {
                "type": "integer",
                "description": "The numeric ID of the task to move (e.g. 52)",
            },
            "new_status": {
                "type": "string",
                "enum": ["OPEN", "IN_PROGRESS", "DONE"],
                "description": "The target status to move the task to",
            },
        },
        "required": ["task_id", "new_status"],
    }

    def run(self, project: str, args: dict[str, Any]) -> str:
        task_id = _get_int(args, "task_id")
        status = _parse_status(str(args.get("new_status") or ""))

        existing = self.store.get_task(project, task_id)
        if existing is None:
            raise ToolExecutionError(f"Task #{task_id} not found.")

        self.store.update_status(project, task_id, status)
        return f"Task #{task_id} ({existing.title}) moved to {status.value} successfully."


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_TOOL_TYPES: dict[ToolName, type[Tool]] = {
    ToolName.LIST_TASKS: ListTasksTool,
    ToolName.SEARCH_LOGS: SearchLogsTool,
    ToolName.GET_INSIGHTS: GetInsightsTool,
    ToolName.ADD_TASK: AddTaskTool,
    ToolName.ADD_SUBTASK: AddSubtaskTool,
    ToolName.MOVE_TASK: MoveTaskTool,
}


class ToolRegistry:
    """Tools available for one conversation, keyed by ToolName."""

    def __init__(self, tools: list[Tool]) -> None:
        self._tools: dict[ToolName, Tool] = {t.name: t for t in tools}

    def get(self, name: str) -> Tool | None:
        try:
            return self._tools.get(ToolName(name))
        except ValueError:
            return None

    def specs(self) -> tuple[ToolSpec, ...]:
        return tuple(t.spec() for t in self._tools.values())

    @property
    def names(self) -> list[str]:
        return [n.value for n in self._tools]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __iter__(self) -> Iterator[Tool]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)


def build_registry(
    store: ProjectStore,
    allow_write: bool,
    today: Callable[[], date] = date.today,
) -> ToolRegistry:
    """Read tools always; write tools only when ``allow_write`` is set."""
    tools = [
        _TOOL_TYPES[name](store, today)
        for name in ToolName
        if allow_write or not _TOOL_TYPES[name].writes
    ]
    return ToolRegistry(tools)


# ---------------------------------------------------------------------------
# Argument helpers
# ---------------------------------------------------------------------------


def _decode_arguments(arguments: str | dict[str, Any]) -> dict[str, Any]:
    if isinstance(arguments, dict):
        return arguments
    if arguments is None or not str(arguments).strip():
        return {}
    try:
        decoded = json.loads(arguments)
    except (TypeError, ValueError) as e:
        raise ToolExecutionError(f"arguments are not valid JSON ({e}).") from e
    if not isinstance(decoded, dict):
        raise ToolExecutionError("arguments must be a JSON object.")
    return decoded


def _get_int(args: dict[str, Any], key: str, default: int | None = None) -> int:
    value = args.get(key)
    if value is None and default is not None:
        return default
    if isinstance(value, bool):
        value = None
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or value <= 0:
        raise ToolExecutionError(f"{key} is required and must be a positive integer.")
    return value


def _parse_status(value: str) -> TaskStatus:
    try:
        return TaskStatus(value.strip().upper())
    except ValueError:
        raise ToolExecutionError(
            f"Unknown status: {value!r}. Use OPEN, IN_PROGRESS or DONE."
        ) from None


def _parse_date(value: Any, key: str) -> date | None:
    if value is None or not str(value).strip():
        return None
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise ToolExecutionError(f"{key} must be a date in YYYY-MM-DD format.") from None
