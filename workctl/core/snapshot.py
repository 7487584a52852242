"""Read-only views over a parsed task list and work log."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from datetime import date, timedelta

from pydantic import BaseModel, ConfigDict

from workctl.core.models import Task, TaskStatus
from workctl.core.worklog import TaskEvent, extract_recent_log

STAGNANT_AFTER_DAYS = 7


class StagnantTask(BaseModel):
    model_config = ConfigDict(frozen=True)

    task: Task
    idle_days: int


class ProjectSnapshot(BaseModel):
    """Counts and notable tasks at a point in time."""

    model_config = ConfigDict(frozen=True)

    today: date
    total: int
    open: int
    in_progress: int
    done: int
    high_priority: tuple[Task, ...]
    stagnant: tuple[StagnantTask, ...]
    recent_log: str | None = None


class ProjectInsights(BaseModel):
    """Productivity statistics derived from tasks and TASK_EVENT history."""

    model_config = ConfigDict(frozen=True)

    total: int
    open: int
    in_progress: int
    done: int
    completion_rate: float
    completed_this_week: int
    productivity_score: float
    stagnant: int
    most_used_tag: str | None
    daily_activity: dict[date, int]

    @property
    def score_label(self) -> str:
        return score_label(self.productivity_score)


def is_stagnant(task: Task, today: date) -> bool:
    """Non-done and strictly more than seven days old."""
    return task.status is not TaskStatus.DONE and task.days_since_created(today) > STAGNANT_AFTER_DAYS


def build_snapshot(
    tasks: Sequence[Task],
    today: date,
    log_text: str | None = None,
    log_days: int = 7,
) -> ProjectSnapshot:
    counts = Counter(t.status for t in tasks)
    high = tuple(t for t in tasks if t.priority == 1 and t.status is not TaskStatus.DONE)
    stagnant = tuple(
        StagnantTask(task=t, idle_days=t.days_since_created(today))
        for t in tasks
        if is_stagnant(t, today)
    )
    recent = None if log_text is None else extract_recent_log(log_text, log_days, today)
    return ProjectSnapshot(
        today=today,
        total=len(tasks),
        open=counts[TaskStatus.OPEN],
        in_progress=counts[TaskStatus.IN_PROGRESS],
        done=counts[TaskStatus.DONE],
        high_priority=high,
        stagnant=stagnant,
        recent_log=recent,
    )


def build_insights(
    tasks: Sequence[Task],
    events: Sequence[TaskEvent],
    today: date,
) -> ProjectInsights:
    """Compute completion rate, weekly throughput and the productivity score.

    score = clamp(0, 100, rate * 0.5 + min(completed_this_week * 10, 100) * 0.4
                          - stagnant * 5)
    """
    snapshot = build_snapshot(tasks, today)
    rate = (snapshot.done / snapshot.total * 100.0) if snapshot.total else 0.0

    week_start = today - timedelta(days=7)
    completed_this_week = sum(
        1 for e in events if e.action == "completed" and week_start <= e.day <= today
    )

    stagnant = len(snapshot.stagnant)
    score = rate * 0.5 + min(completed_this_week * 10, 100) * 0.4 - stagnant * 5
    score = max(0.0, min(100.0, score))

    activity: Counter[date] = Counter(e.day for e in events)

    return ProjectInsights(
        total=snapshot.total,
        open=snapshot.open,
        in_progress=snapshot.in_progress,
        done=snapshot.done,
        completion_rate=rate,
        completed_this_week=completed_this_week,
        productivity_score=score,
        stagnant=stagnant,
        most_used_tag=_most_used_tag(tasks, events),
        daily_activity=dict(sorted(activity.items())),
    )


def score_label(score: float) -> str:
    if score >= 85:
        return "Elite Execution"
    if score >= 70:
        return "Strong Momentum"
    if score >= 50:
        return "Stable but room to improve"
    if score >= 30:
        return "Fragmented"
    return "Stalled"


def _most_used_tag(tasks: Sequence[Task], events: Sequence[TaskEvent]) -> str | None:
    tags: Counter[str] = Counter(tag for t in tasks for tag in t.tags)
    if not tags:
        tags = Counter(tag for e in events for tag in e.tags)
    if not tags:
        return None
    return tags.most_common(1)[0][0]
