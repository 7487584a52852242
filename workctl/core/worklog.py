"""Work-log grammar: date sections, subsections, bullets and metadata comments.

A work log looks like::

    ## 2026-02-19

    ### Assigned
    - Created Task #3 – Wire up the exporter [#task #created]
      <!-- TASK_EVENT:
           id=3
           action=created
           ...
      -->

    ### Done
    -

    ---

Comment blocks are never surfaced by the readers in this module.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import date, timedelta

logger = logging.getLogger(__name__)

_DATE_HEADER_RE = re.compile(r"^## (\d{4}-\d{2}-\d{2})$")
_EVENT_RE = re.compile(r"TASK_EVENT:(.*?)-->", re.DOTALL)
_FIELD_RE = re.compile(r"^(\w+)=(.*)$")

# Section keys accepted by append_log_entry -> heading text.
SECTIONS: dict[str, str] = {
    "assigned": "Assigned",
    "done": "Done",
    "changes": "Changes Suggested",
    "commands": "Commands Used",
    "notes": "Notes",
}


@dataclass(frozen=True)
class LogLine:
    """A visible (non-comment) log line with the date and subsection it sits under."""

    text: str
    day: date | None
    section: str | None
    is_date_header: bool = False

    @property
    def stripped(self) -> str:
        return self.text.strip()


@dataclass(frozen=True)
class LogEntry:
    """A bullet entry returned by search_log."""

    day: date
    section: str
    text: str

    def __str__(self) -> str:
        return f"[{self.day.isoformat()}] [{self.section}] {self.text}"


@dataclass(frozen=True)
class TaskEvent:
    """Structured lifecycle event embedded in the log as a TASK_EVENT comment."""

    task_id: int
    action: str
    day: date
    status: str | None = None
    previous_status: str | None = None
    tags: tuple[str, ...] = field(default_factory=tuple)


# ---------------------------------------------------------------------------
# Readers
# ---------------------------------------------------------------------------


def iter_log_lines(text: str) -> Iterator[LogLine]:
    """Yield visible lines, skipping every ``<!-- ... -->`` block.

    A block runs from its opening marker to the first line that closes it. An
    unterminated block hides the rest of the document.
    """
    current_day: date | None = None
    section: str | None = None
    in_comment = False

    for line in text.splitlines():
        stripped = line.strip()

        if in_comment:
            if "-->" in stripped:
                in_comment = False
            continue
        if stripped.startswith("<!--"):
            in_comment = "-->" not in stripped[4:]
            continue

        if stripped.startswith("## "):
            m = _DATE_HEADER_RE.match(stripped)
            if m:
                try:
                    current_day = date.fromisoformat(m.group(1))
                except ValueError:
                    logger.debug("ignoring invalid date header %r", stripped)
                    continue
                section = None
                yield LogLine(line, current_day, None, is_date_header=True)
            continue

        if stripped.startswith("### "):
            section = stripped[4:].strip()

        yield LogLine(line, current_day, section)


def extract_recent_log(text: str, days: int, today: date) -> str:
    """Return the date sections from the last ``days`` days.

    Each kept section is rendered as a blank line, its ``## date`` header and its
    ``### `` and ``- `` lines, in document order. Returns "" when nothing falls
    in the window.
    """
    cutoff = today - timedelta(days=days)
    out: list[str] = []
    in_range = False

    for ll in iter_log_lines(text):
        if ll.is_date_header:
            in_range = ll.day is not None and ll.day >= cutoff
            if in_range:
                out.extend(["", ll.stripped])
            continue
        if not in_range:
            continue
        if ll.stripped.startswith("### ") or ll.stripped.startswith("- "):
            out.append(ll.text)

    return "\n".join(out) + "\n" if out else ""


def search_log(
    text: str,
    keyword: str,
    from_date: date,
    to_date: date,
) -> list[LogEntry]:
    """Find bullet entries in the inclusive date range containing ``keyword``."""
    needle = keyword.strip().lower()
    results: list[LogEntry] = []

    for ll in iter_log_lines(text):
        if ll.day is None or ll.section is None or ll.is_date_header:
            continue
        if not from_date <= ll.day <= to_date:
            continue
        if not ll.stripped.startswith("- "):
            continue
        entry = ll.stripped[2:].strip()
        if not needle or needle in entry.lower():
            results.append(LogEntry(day=ll.day, section=ll.section, text=entry))

    return results


def parse_task_events(text: str) -> list[TaskEvent]:
    """Collect TASK_EVENT metadata blocks, skipping ones that lack id or date."""
    events: list[TaskEvent] = []
    for m in _EVENT_RE.finditer(text):
        fields: dict[str, str] = {}
        for raw in m.group(1).splitlines():
            fm = _FIELD_RE.match(raw.strip())
            if fm:
                fields[fm.group(1)] = fm.group(2).strip()
        try:
            events.append(
                TaskEvent(
                    task_id=int(fields["id"]),
                    action=fields.get("action", ""),
                    day=date.fromisoformat(fields["date"]),
                    status=fields.get("status") or None,
                    previous_status=_none_marker(fields.get("previousStatus")),
                    tags=tuple(t for t in fields.get("tags", "").split(",") if t),
                )
            )
        except (KeyError, ValueError):
            logger.debug("skipping malformed TASK_EVENT block: %r", m.group(0)[:80])
    return events


def _none_marker(value: str | None) -> str | None:
    if not value or value == "NONE":
        return None
    return value


# ---------------------------------------------------------------------------
# Writers
# ---------------------------------------------------------------------------


def format_task_event(event: TaskEvent) -> str:
    """Render a TaskEvent as the multi-line comment block stored in the log."""
    return "\n".join([
        "<!-- TASK_EVENT:",
        f"     id={event.task_id}",
        f"     action={event.action}",
        f"     previousStatus={event.previous_status or 'NONE'}",
        f"     status={event.status or ''}",
        f"     date={event.day.isoformat()}",
        f"     tags={','.join(event.tags)}",
        "-->",
    ])


def append_log_entry(
    text: str,
    day: date,
    section: str,
    message: str,
    tags: Iterable[str] = (),
) -> str:
    """Insert a bullet under ``section`` of the ``day`` block, creating it if needed.

    ``section`` is one of the SECTIONS keys. A bare ``-`` placeholder under the
    section is replaced by the entry. Returns the updated log text.
    """
    heading = SECTIONS.get(section.lower())
    if heading is None:
        raise ValueError(f"Invalid log section: {section!r}")

    lines = text.splitlines()
    day_index = _find_day(lines, day)
    if day_index is None:
        lines.extend(_day_template(day))
        day_index = _find_day(lines, day)
        assert day_index is not None
    _ensure_sections(lines, day_index)

    if message.strip():
        entry = _format_entry(message, [t.lower() for t in tags])
        _insert_into_section(lines, day_index, f"### {heading}", entry)

    return "\n".join(lines) + "\n"


def _find_day(lines: list[str], day: date) -> int | None:
    target = f"## {day.isoformat()}"
    for i, line in enumerate(lines):
        if line.strip() == target:
            return i
    return None


def _day_template(day: date) -> list[str]:
    lines = ["", f"## {day.isoformat()}"]
    for heading in SECTIONS.values():
        lines.extend(["", f"### {heading}", "-"])
    lines.extend(["", "---"])
    return lines


def _ensure_sections(lines: list[str], day_index: int) -> None:
    end = day_index + 1
    while end < len(lines) and not lines[end].startswith("## "):
        end += 1
    existing = {line.strip() for line in lines[day_index + 1:end] if line.startswith("### ")}

    # Missing sections go at the end of the block, before the separator.
    insert_at = end
    for i in range(day_index + 1, end):
        if lines[i].strip() == "---":
            insert_at = i
            break
    while insert_at > day_index + 1 and not lines[insert_at - 1].strip():
        insert_at -= 1

    for heading in SECTIONS.values():
        header = f"### {heading}"
        if header not in existing:
            lines[insert_at:insert_at] = ["", header, "-"]
            insert_at += 3


def _format_entry(message: str, tags: list[str]) -> str:
    first, *rest = message.split("\n")
    tag_str = " [" + " ".join(f"#{t}" for t in tags) + "]" if tags else ""
    out = [f"- {first}{tag_str}"]
    out.extend(f"  {line}" for line in rest)
    return "\n".join(out)


def _insert_into_section(lines: list[str], day_index: int, header: str, entry: str) -> None:
    for i in range(day_index, len(lines)):
        if i > day_index and lines[i].startswith("## "):
            break
        if lines[i].strip() != header:
            continue
        at = i + 1
        if at < len(lines) and not lines[at].strip():
            at += 1
        if at < len(lines) and lines[at].strip() == "-":
            lines[at] = entry
        else:
            lines.insert(at, entry)
        return
    raise ValueError(f"Section not found: {header}")
