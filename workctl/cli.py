"""CLI entry point for workctl."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from workctl.agent import AgentService
from workctl.config import WorkctlConfig, load_config
from workctl.config.loader import DEFAULT_CONFIG_TEMPLATE
from workctl.core import ProjectNotFoundError, ProjectStore, TaskNotFoundError, TaskStatus
from workctl.core.models import FormatError

app = typer.Typer(
    name="workctl",
    help="Markdown task boards and work logs, with an AI assistant on top.",
)

task_app = typer.Typer(help="Manage a project's task board.")
app.add_typer(task_app, name="task")

config_app = typer.Typer(help="Manage workctl configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: WorkctlConfig | None = None

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

_STATUS_STYLES = {
    TaskStatus.OPEN: "yellow",
    TaskStatus.IN_PROGRESS: "cyan",
    TaskStatus.DONE: "green",
}


def _get_config() -> WorkctlConfig:
    if _config is None:
        return load_config()
    return _config


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=_LOG_LEVELS.get(level, logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _store() -> ProjectStore:
    return ProjectStore(_get_config().workspace)


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to workctl.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    _setup_logging(_config.log_level)


# ---------------------------------------------------------------------------
# ask
# ---------------------------------------------------------------------------


@app.command()
def ask(
    project: str = typer.Argument(..., help="Project name under 01_Projects/"),
    question: str | None = typer.Argument(None, help="Question or instruction"),
    act: bool = typer.Option(False, "--act", help="Allow the assistant to add and move tasks"),
    weekly: bool = typer.Option(False, "--weekly", help="Write a weekly summary"),
    from_date: str | None = typer.Option(None, "--from", help="Weekly range start (YYYY-MM-DD)"),
    to_date: str | None = typer.Option(None, "--to", help="Weekly range end (YYYY-MM-DD)"),
    insight: bool = typer.Option(False, "--insight", help="Explain project health and score"),
) -> None:
    """Ask the assistant about a project."""
    service = AgentService(_get_config())

    if weekly:
        today = date.today()
        try:
            start = date.fromisoformat(from_date) if from_date else today - timedelta(days=7)
            end = date.fromisoformat(to_date) if to_date else today
        except ValueError as e:
            rprint(f"[red]Error:[/red] {escape(str(e))}")
            raise typer.Exit(1)
        title = f"Weekly summary {start} → {end}"
        answer = service.weekly_summary(project, start, end)
    elif insight:
        title = "Insights"
        answer = service.insights(project)
    elif question:
        title = "Assistant" + (" (write mode)" if act else "")
        answer = service.ask(project, question, allow_write=act)
    else:
        rprint("[red]Error:[/red] provide a question, --weekly or --insight")
        raise typer.Exit(1)

    rprint(Panel(escape(answer), title=f"{title} · {project}", border_style="blue"))


# ---------------------------------------------------------------------------
# task
# ---------------------------------------------------------------------------


@task_app.command("list")
def task_list(
    project: str = typer.Argument(..., help="Project name"),
    status: str | None = typer.Option(None, "--status", "-s", help="OPEN, IN_PROGRESS or DONE"),
) -> None:
    """Show the task board."""
    try:
        wanted = TaskStatus(status.upper()) if status else None
        tasks = _store().load_tasks(project)
    except (ValueError, ProjectNotFoundError, FormatError) as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if wanted is not None:
        tasks = [t for t in tasks if t.status is wanted]

    table = Table(title=f"Tasks · {project} ({len(tasks)})")
    table.add_column("ID", justify="right", style="bold")
    table.add_column("Status")
    table.add_column("P", justify="center")
    table.add_column("Title")
    table.add_column("Subtasks", justify="right")
    table.add_column("Tags", style="magenta")
    for t in tasks:
        style = _STATUS_STYLES[t.status]
        table.add_row(
            str(t.id),
            f"[{style}]{t.status.label}[/{style}]",
            str(t.priority),
            escape(t.title),
            f"{t.done_subtasks}/{len(t.subtasks)}" if t.subtasks else "-",
            ", ".join(t.tags) if t.tags else "-",
        )
    rprint(table)


@task_app.command("add")
def task_add(
    project: str = typer.Argument(..., help="Project name"),
    title: str = typer.Argument(..., help="Task title"),
    priority: int = typer.Option(2, "--priority", "-p", min=1, max=3, help="1=high, 3=low"),
    tag: list[str] | None = typer.Option(None, "--tag", "-t", help="Tag (repeatable)"),
) -> None:
    """Add a task to a project."""
    try:
        task = _store().add_task(project, title, priority, tag or [])
    except (ValueError, ProjectNotFoundError, FormatError) as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    rprint(f"[green]Created[/green] task #{task.id} {escape(f'[P{task.priority}] {task.title}')}")


@task_app.command("move")
def task_move(
    project: str = typer.Argument(..., help="Project name"),
    task_id: int = typer.Argument(..., help="Task id"),
    status: str = typer.Argument(..., help="OPEN, IN_PROGRESS or DONE"),
) -> None:
    """Move a task to another status."""
    try:
        target = TaskStatus(status.upper())
        task = _store().update_status(project, task_id, target)
    except (ValueError, ProjectNotFoundError, TaskNotFoundError, FormatError) as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    rprint(f"[green]Moved[/green] task #{task.id} to {task.status.label}")


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    data = _get_config().model_dump()
    if data["llm"].get("api_key"):
        data["llm"]["api_key"] = "***"
    rprint(Syntax(yaml.dump(data, default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default workctl.yaml in current directory."""
    target = Path("workctl.yaml")
    if target.exists() and not force:
        rprint("[yellow]workctl.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")
