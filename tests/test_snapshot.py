"""Tests for workctl.core.snapshot: board counts, stagnation and insights."""

from datetime import date, timedelta

import pytest

from workctl.core.markdown import parse_task_document
from workctl.core.models import Task, TaskStatus
from workctl.core.snapshot import build_insights, build_snapshot, is_stagnant, score_label
from workctl.core.worklog import TaskEvent, parse_task_events

from conftest import SAMPLE_LOG_MD, SAMPLE_TASKS_MD, TODAY


@pytest.fixture
def sample_tasks():
    return parse_task_document(SAMPLE_TASKS_MD, "demo").tasks


class TestStagnation:
    def test_exactly_seven_days_is_not_stagnant(self):
        task = Task(id=1, description="t", created_date=TODAY - timedelta(days=7))
        assert not is_stagnant(task, TODAY)
        assert build_snapshot([task], TODAY).stagnant == ()

    def test_eight_days_is_stagnant(self):
        task = Task(id=1, description="t", created_date=TODAY - timedelta(days=8))
        snap = build_snapshot([task], TODAY)
        assert [(s.task.id, s.idle_days) for s in snap.stagnant] == [(1, 8)]

    def test_done_tasks_never_stagnant(self):
        task = Task(id=1, description="t", status=TaskStatus.DONE, created_date=date(2020, 1, 1))
        assert not is_stagnant(task, TODAY)


class TestBuildSnapshot:
    def test_counts_and_lists(self, sample_tasks):
        snap = build_snapshot(sample_tasks, TODAY)
        assert (snap.total, snap.open, snap.in_progress, snap.done) == (4, 2, 1, 1)
        assert [t.id for t in snap.high_priority] == [1, 3]
        assert [(s.task.id, s.idle_days) for s in snap.stagnant] == [(1, 18), (3, 8)]
        assert snap.recent_log is None

    def test_recent_log_window(self, sample_tasks):
        snap = build_snapshot(sample_tasks, TODAY, SAMPLE_LOG_MD)
        assert "## 2026-02-17" in snap.recent_log
        assert "2026-02-10" not in snap.recent_log

    def test_snapshot_is_frozen(self, sample_tasks):
        snap = build_snapshot(sample_tasks, TODAY)
        with pytest.raises(Exception):
            snap.total = 99

    def test_empty(self):
        snap = build_snapshot([], TODAY)
        assert snap.total == 0
        assert snap.high_priority == ()


class TestInsights:
    def test_sample_insights(self, sample_tasks):
        insights = build_insights(sample_tasks, parse_task_events(SAMPLE_LOG_MD), TODAY)
        assert insights.completion_rate == pytest.approx(25.0)
        assert insights.completed_this_week == 1
        assert insights.stagnant == 2
        # 25*0.5 + 10*0.4 - 2*5
        assert insights.productivity_score == pytest.approx(6.5)
        assert insights.score_label == "Stalled"
        assert insights.most_used_tag == "auth"
        assert insights.daily_activity == {date(2026, 2, 17): 2}

    def test_score_is_clamped(self):
        tasks = [Task(id=i, description="t", status=TaskStatus.DONE, created_date=TODAY) for i in (1, 2)]
        events = [TaskEvent(task_id=i, action="completed", day=TODAY) for i in range(1, 20)]
        assert build_insights(tasks, events, TODAY).productivity_score == 90.0

        stale = [Task(id=i, description="t", created_date=date(2025, 1, 1)) for i in range(1, 6)]
        assert build_insights(stale, [], TODAY).productivity_score == 0.0

    def test_old_completions_do_not_count(self):
        events = [TaskEvent(task_id=1, action="completed", day=TODAY - timedelta(days=8))]
        assert build_insights([], events, TODAY).completed_this_week == 0

    def test_tag_falls_back_to_events(self):
        events = [TaskEvent(task_id=1, action="created", day=TODAY, tags=("infra",))]
        assert build_insights([], events, TODAY).most_used_tag == "infra"

    def test_no_tags(self):
        assert build_insights([], [], TODAY).most_used_tag is None

    @pytest.mark.parametrize(
        "score,label",
        [
            (85, "Elite Execution"),
            (70, "Strong Momentum"),
            (50, "Stable but room to improve"),
            (30, "Fragmented"),
            (29.9, "Stalled"),
        ],
    )
    def test_labels(self, score, label):
        assert score_label(score) == label
