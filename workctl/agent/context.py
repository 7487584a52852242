"""Briefing (system prompt) rendering from the current project state."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from workctl.agent import prompts
from workctl.core.snapshot import ProjectSnapshot, build_snapshot
from workctl.core.store import ProjectStore

logger = logging.getLogger(__name__)

LOG_WINDOW_DAYS = 7


class ContextBuilder:
    """Renders the briefing the model reads before the user's message.

    Task and log loading failures degrade to a parenthetical note in the
    affected section; ``build`` itself never raises.
    """

    def __init__(self, store: ProjectStore, today: Callable[[], date] = date.today) -> None:
        self.store = store
        self.today = today

    def build(self, project: str, allow_write: bool) -> str:
        today = self.today()
        parts = [prompts.PREAMBLE.format(today=today.isoformat(), project=project)]

        parts.append("=== CURRENT TASK BOARD ===\n")
        try:
            snapshot = build_snapshot(self.store.load_tasks(project), today)
            parts.append(render_board(snapshot))
        except Exception as e:
            logger.warning("could not load tasks for %s: %s", project, e)
            parts.append(f"(Could not load tasks: {e})\n\n")

        parts.append(f"=== RECENT WORK LOG (last {LOG_WINDOW_DAYS} days) ===\n")
        parts.append(self._render_log(project, today))

        parts.append(prompts.BEHAVIOUR)
        parts.append(prompts.WRITE_MODE if allow_write else prompts.READ_ONLY_MODE)
        return "".join(parts)

    def _render_log(self, project: str, today: date) -> str:
        try:
            text = self.store.read_log(project)
            if text is None:
                return "(No work log found)\n"
            recent = build_snapshot([], today, text, LOG_WINDOW_DAYS).recent_log
        except Exception as e:
            logger.warning("could not read work log for %s: %s", project, e)
            return f"(Could not read work log: {e})\n"
        return recent if recent and recent.strip() else "(No entries in the last 7 days)\n"


def render_board(snapshot: ProjectSnapshot) -> str:
    lines = [
        f"Total: {snapshot.total}  |  Open: {snapshot.open}  |  "
        f"In Progress: {snapshot.in_progress}  |  Done: {snapshot.done}",
        "",
    ]
    if snapshot.high_priority:
        lines.append("P1 (High Priority) Tasks:")
        lines.extend(f"  #{t.id} [{t.status.value}] {t.title}" for t in snapshot.high_priority)
        lines.append("")
    if snapshot.stagnant:
        lines.append("Stagnant Tasks (7+ days old, not completed):")
        lines.extend(
            f"  #{s.task.id} [P{s.task.priority}] {s.task.title} ({s.idle_days} days)"
            for s in snapshot.stagnant
        )
        lines.append("")
    return "\n".join(lines) + "\n"
