"""Console output mirrored into a plain-text log file."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.text import Text

from syncprep.models import EMPTY_DIR, REMOVE, RENAME_DIR, Action, Plan, RunCounters

_WARNING_LABELS = {
    "name": "[red]TOO LONG (name)[/red]",
    "path": "[red]TOO LONG (path)[/red]",
    "office": "[yellow]OFFICE WARNING[/yellow]",
}


class Reporter:
    def __init__(self, console: Console | None = None, log_path: Path | None = None) -> None:
        self.console = console or Console(highlight=False, emoji=False)
        self.log_path = log_path

    def line(self, markup: str = "") -> None:
        """Print ``markup`` and append its unstyled text to the log."""
        self.console.print(markup, soft_wrap=True)
        if self.log_path is not None:
            with self.log_path.open("a", encoding="utf-8") as handle:
                handle.write(Text.from_markup(markup, emoji=False).plain + "\n")

    def echo(self, markup: str = "") -> None:
        self.console.print(markup, soft_wrap=True)

    def heading(self, title: str) -> None:
        self.line(f"[bold]{title}[/bold]")
        self.line(f"[dim]{'─' * len(title)}[/dim]")

    def discard(self) -> None:
        if self.log_path is not None and self.log_path.exists():
            self.log_path.unlink()
        self.log_path = None


def display_path(root: Path, path: Path) -> str:
    try:
        rel = path.relative_to(root).as_posix()
    except ValueError:
        rel = path.as_posix()
    return escape(rel or ".")


def render_plan(reporter: Reporter, plan: Plan) -> None:
    root = plan.root

    reporter.heading("Phase 1: Junk and temp files")
    for action in plan.removals:
        reporter.line(
            f"  [red]REMOVE[/red] {display_path(root, action.path)} "
            f"[dim]({escape(action.reason)})[/dim]"
        )
    if not plan.removals:
        reporter.line("  [green]No junk files found.[/green]")
    reporter.echo()

    reporter.heading("Phase 2: Illegal names")
    for action in plan.renames:
        label = "RENAME DIR" if action.kind == RENAME_DIR else "RENAME"
        destination = action.destination or action.path
        reporter.line(f"  [yellow]{label}[/yellow] {escape(action.path.name)}")
        reporter.line(f"      [green]→[/green] {escape(destination.name)}")
        reporter.line(
            f"      [dim]in: {display_path(root, action.path.parent)} "
            f"({escape(action.reason)})[/dim]"
        )
    if not plan.renames:
        reporter.line("  [green]All names are compatible.[/green]")
    reporter.echo()

    reporter.heading("Phase 3: Path lengths")
    for action in plan.warnings:
        label = _WARNING_LABELS.get(action.details.get("check", ""), "[red]WARNING[/red]")
        reporter.line(f"  {label} {escape(action.reason)}")
        reporter.line(f"      [dim]{display_path(root, action.path)}[/dim]")
    if not plan.warnings:
        reporter.line("  [green]All paths are within limits.[/green]")
    reporter.echo()

    reporter.heading("Phase 4: Empty folders")
    for action in plan.empty_dirs:
        reporter.line(f"  [dim]EMPTY[/dim] {display_path(root, action.path)}")
    if plan.empty_dirs:
        reporter.line(
            f"  [dim]Found {len(plan.empty_dirs)} empty folder(s). "
            "The sync service may skip these.[/dim]"
        )
    else:
        reporter.line("  [green]No empty folders.[/green]")
    reporter.echo()


def render_result(reporter: Reporter, root: Path, action: Action, error: str | None) -> None:
    path = display_path(root, action.path)
    if error is not None:
        reporter.line(f"  [red]SKIPPED[/red] {path} [dim]({escape(error)})[/dim]")
    elif action.kind == REMOVE:
        reporter.line(f"  [red]REMOVED[/red] {path}")
    elif action.kind == EMPTY_DIR:
        reporter.line(f"  [dim]REMOVED EMPTY[/dim] {path}")
    else:
        destination = action.destination or action.path
        reporter.line(f"  [yellow]RENAMED[/yellow] {path} → {escape(destination.name)}")


def render_summary(
    reporter: Reporter,
    counters: RunCounters,
    preview: bool,
    skipped: int = 0,
) -> None:
    reporter.heading("Summary")
    if preview:
        reporter.line("  [cyan]MODE: Preview (no changes made)[/cyan]")
    else:
        reporter.line("  [green]MODE: Changes applied[/green]")
    reporter.line(f"  Files removed:    [bold]{counters.files_removed}[/bold]")
    reporter.line(f"  Files renamed:    [bold]{counters.files_renamed}[/bold]")
    reporter.line(f"  Folders renamed:  [bold]{counters.dirs_renamed}[/bold]")
    reporter.line(f"  Warnings:         [bold]{counters.warnings}[/bold]")
    if skipped:
        reporter.line(f"  Skipped:          [bold red]{skipped}[/bold red]")
    reporter.echo()
