"""Tests for workctl.agent.context."""

from unittest.mock import patch

from workctl.agent import prompts
from workctl.agent.context import ContextBuilder, render_board
from workctl.core.snapshot import build_snapshot

from conftest import TODAY


def _build(store, project="demo", allow_write=False) -> str:
    return ContextBuilder(store, today=lambda: TODAY).build(project, allow_write)


class TestRenderBoard:
    def test_counts_priority_and_stagnant(self, seeded_store):
        board = render_board(build_snapshot(seeded_store.load_tasks("demo"), TODAY))
        assert board.startswith("Total: 4  |  Open: 2  |  In Progress: 1  |  Done: 1\n\n")
        assert "P1 (High Priority) Tasks:\n  #1 [OPEN] Fix login redirect\n  #3 [IN_PROGRESS] Migrate to Postgres 16\n" in board
        assert "Stagnant Tasks (7+ days old, not completed):" in board
        assert "  #1 [P1] Fix login redirect (18 days)" in board
        assert "  #3 [P1] Migrate to Postgres 16 (8 days)" in board
        assert "Write API docs" not in board

    def test_empty_board(self):
        board = render_board(build_snapshot([], TODAY))
        assert board == "Total: 0  |  Open: 0  |  In Progress: 0  |  Done: 0\n\n"


class TestContextBuilder:
    def test_sections_in_order(self, seeded_store):
        text = _build(seeded_store)
        assert text.startswith(prompts.PREAMBLE.format(today="2026-02-19", project="demo"))
        board = text.index("=== CURRENT TASK BOARD ===")
        log = text.index("=== RECENT WORK LOG (last 7 days) ===")
        behaviour = text.index("=== YOUR BEHAVIOR ===")
        assert board < log < behaviour

    def test_recent_log_window(self, seeded_store):
        text = _build(seeded_store)
        assert "## 2026-02-17" in text
        assert "- Postgres upgrade blocked on extension versions" in text
        assert "- pg_upgrade --check" in text
        assert "Old cleanup" not in text
        assert "TASK_EVENT" not in text

    def test_read_only_mode(self, seeded_store):
        text = _build(seeded_store, allow_write=False)
        assert text.endswith(prompts.READ_ONLY_MODE)
        assert "Write mode is ON" not in text

    def test_write_mode(self, seeded_store):
        text = _build(seeded_store, allow_write=True)
        assert text.endswith(prompts.WRITE_MODE)

    def test_no_log_file(self, store):
        text = _build(store)
        assert "=== RECENT WORK LOG (last 7 days) ===\n(No work log found)\n" in text
        assert "Total: 0" in text

    def test_log_with_only_old_entries(self, store):
        store.log_path("demo").write_text("# demo\n\n## 2025-12-01\n\n### Done\n- ancient\n", encoding="utf-8")
        text = _build(store)
        assert "(No entries in the last 7 days)" in text
        assert "ancient" not in text

    def test_task_failure_degrades_to_note(self, seeded_store):
        with patch.object(seeded_store, "load_tasks", side_effect=OSError("permission denied")):
            text = _build(seeded_store)
        assert "(Could not load tasks: permission denied)" in text
        assert "## 2026-02-17" in text

    def test_log_failure_degrades_to_note(self, seeded_store):
        with patch.object(seeded_store, "read_log", side_effect=OSError("io error")):
            text = _build(seeded_store)
        assert "(Could not read work log: io error)" in text
        assert "Total: 4" in text

    def test_missing_project_never_raises(self, store):
        text = _build(store, project="ghost")
        assert "(Could not load tasks: Project 'ghost' not found" in text
        assert "(Could not read work log: Project 'ghost' not found" in text
