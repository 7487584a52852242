"""Shared test fixtures for workctl."""

from collections.abc import Callable
from datetime import date

import pytest

from workctl.config.models import LLMSettings, WorkctlConfig
from workctl.core.store import ProjectStore
from workctl.llm.base import ModelTransport
from workctl.llm.models import ModelRequest, ModelResponse, TextBlock, ToolUseBlock

TODAY = date(2026, 2, 19)

SAMPLE_TASKS_MD = """\
# Tasks – demo

<!-- NEXT_ID: 6 -->

## Open
1. [ ] (P1) Fix login redirect  <!-- created=2026-02-01 tags=auth,bug -->
    Users bounce back to /login after SSO.
    - [x] reproduce
    - [ ] write regression test
2. [ ] (P2) Write API docs  <!-- created=2026-02-12 -->

## In Progress
3. [~] (P1) Migrate to Postgres 16  <!-- created=2026-02-11 tags=db -->

## Done
4. [x] (P3) Update README  <!-- created=2026-01-20 -->

"""

SAMPLE_LOG_MD = """\
# demo – Work Log

## 2026-02-10

### Done
- Old cleanup before the postgres work

---

## 2026-02-17

### Assigned
- Created Task #3 – Migrate to Postgres 16 [#task #created]
  <!-- TASK_EVENT:
       id=3
       action=created
       previousStatus=NONE
       status=OPEN
       date=2026-02-17
       tags=db
  -->

### Done
- Completed Task #4 – Update README [#task #completed]
  <!-- TASK_EVENT:
       id=4
       action=completed
       previousStatus=OPEN
       status=DONE
       date=2026-02-17
       tags=
  -->

### Notes
- Postgres upgrade blocked on extension versions

---

## 2026-02-19

### Commands Used
- pg_upgrade --check

---
"""


# ---------------------------------------------------------------------------
# Fake transport
# ---------------------------------------------------------------------------


def text_response(text: str) -> ModelResponse:
    return ModelResponse(stop_reason="end_turn", content=[TextBlock(text=text)])


def tool_response(*calls: tuple[str, str, dict | str], text: str = "") -> ModelResponse:
    """Build a tool_use response from (id, name, input) triples."""
    content: list = [TextBlock(text=text)] if text else []
    content.extend(ToolUseBlock(id=i, name=n, input=a) for i, n, a in calls)
    return ModelResponse(stop_reason="tool_use", content=content)


class FakeTransport(ModelTransport):
    """Replays scripted responses and records every request it receives.

    ``script`` is either a list (consumed in order; an Exception item is
    raised) or a callable producing a response for each request.
    """

    def __init__(self, script: list | Callable[[ModelRequest], ModelResponse]) -> None:
        super().__init__(LLMSettings(), "test-key")
        self.script = script
        self.requests: list[ModelRequest] = []

    def send(self, request: ModelRequest) -> ModelResponse:
        self.requests.append(request)
        if callable(self.script):
            return self.script(request)
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


# ---------------------------------------------------------------------------
# Workspace fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def workspace(tmp_path):
    (tmp_path / "01_Projects" / "demo" / "notes").mkdir(parents=True)
    return tmp_path


@pytest.fixture
def store(workspace):
    return ProjectStore(workspace, today=lambda: TODAY)


@pytest.fixture
def seeded_store(store, workspace):
    notes = workspace / "01_Projects" / "demo" / "notes"
    (notes / "tasks.md").write_text(SAMPLE_TASKS_MD, encoding="utf-8")
    (notes / "work-log.md").write_text(SAMPLE_LOG_MD, encoding="utf-8")
    return store


@pytest.fixture
def sample_config(workspace):
    return WorkctlConfig(workspace=str(workspace))
