from __future__ import annotations

import argparse
import logging
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

from syncprep import __version__
from syncprep.apply import apply_plan, remove_empty_dirs
from syncprep.report import Reporter, render_plan, render_result, render_summary

LOG_PREFIX = "syncprep-log_"


def main(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="syncprep",
        description=(
            "Prepare a folder for upload to a cloud file-sync service: remove junk "
            "files, fix illegal names and report path-length problems. Every change "
            "is previewed before anything is modified."
        ),
    )
    parser.add_argument("path", nargs="?", help="Folder to prepare (prompted for if omitted)")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--dry-run", action="store_true", help="Preview only, never modify")
    mode.add_argument(
        "--yes",
        action="store_true",
        help="Apply removals and renames without asking",
    )
    parser.add_argument(
        "--remove-empty",
        action="store_true",
        help="Also remove empty folders (requires --yes)",
    )
    parser.add_argument("--no-log", action="store_true", help="Do not write a log file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args(list(argv) if argv is not None else None)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.remove_empty and not args.yes:
        raise SystemExit("Refusing to remove empty folders without --yes.")

    console = Console(highlight=False, emoji=False)
    raw_path = args.path if args.path is not None else _prompt_for_path(console)
    root = normalize_target(raw_path)
    if not root.is_dir():
        raise SystemExit(f"Path does not exist or is not a directory: {root}")

    from syncprep.analyzer import analyze

    plan = analyze(root)

    log_path = None
    if not args.no_log:
        log_path = root / f"{LOG_PREFIX}{datetime.now().strftime('%Y%m%d_%H%M%S')}.txt"
    reporter = Reporter(console, log_path)
    reporter.line(f"[bold]Target folder:[/bold] {escape(str(root))}")
    reporter.line(f"[dim]Found {plan.total_files} files and {plan.total_dirs} folders[/dim]")
    reporter.echo()
    render_plan(reporter, plan)
    render_summary(reporter, plan.counters, preview=True)

    if plan.is_empty:
        reporter.discard()
        console.print("[green]Nothing to change. The folder is ready to upload.[/green]")
        return 0
    if not plan.has_changes:
        reporter.line("[green]No junk or illegal names found. Review the warnings above.[/green]")
        _finish(reporter)
        return 0
    if args.dry_run:
        reporter.line("[yellow]Preview only. Run again without --dry-run to apply.[/yellow]")
        _finish(reporter)
        return 0
    if not args.yes and not _confirm_apply(console, root):
        reporter.line("[red]Cancelled. No changes made.[/red]")
        _finish(reporter)
        return 0

    reporter.heading("Applying changes")
    result = apply_plan(
        plan,
        on_result=lambda action, error: render_result(reporter, root, action, error),
    )
    skipped = len(result.failed)

    if plan.empty_dirs:
        if args.yes:
            remove_empty = args.remove_empty
        else:
            remove_empty = _confirm_remove_empty(console, len(plan.empty_dirs))
        if remove_empty:
            empty_result = remove_empty_dirs(
                plan,
                on_result=lambda action, error: render_result(reporter, root, action, error),
            )
            skipped += len(empty_result.failed)
            reporter.line(f"  [green]Removed {len(empty_result.applied)} empty folder(s).[/green]")
    reporter.echo()

    counters = result.counters
    counters.warnings = plan.counters.warnings
    render_summary(reporter, counters, preview=False, skipped=skipped)
    reporter.line("[green]Done. The folder is ready to upload.[/green]")
    _finish(reporter)
    return 0


def normalize_target(raw: str) -> Path:
    """Clean up a typed or drag-and-dropped path and make it absolute."""
    value = raw.strip()
    for quote in ('"', "'"):
        if value.endswith(quote):
            value = value[:-1]
        if value.startswith(quote):
            value = value[1:]
    value = value.replace("\\", "").strip()
    return Path(value).expanduser().resolve()


def _finish(reporter: Reporter) -> None:
    if reporter.log_path is not None:
        reporter.echo(f"[dim]Log saved to: {escape(str(reporter.log_path))}[/dim]")


def _prompt_for_path(console: Console) -> str:
    console.print("[cyan]Enter the path to the folder you want to prepare.[/cyan]")
    console.print("[dim]Tip: you can drag and drop a folder into this window.[/dim]")
    return Prompt.ask("Path", console=console)


def _confirm_apply(console: Console, root: Path) -> bool:
    console.print(
        f"[yellow]Apply these changes? This will modify files in:[/yellow] {escape(str(root))}"
    )
    return Prompt.ask("Type 'yes' to confirm", console=console, default="no") == "yes"


def _confirm_remove_empty(console: Console, count: int) -> bool:
    return Confirm.ask(f"Remove {count} empty folder(s)?", console=console, default=False)


if __name__ == "__main__":
    raise SystemExit(main())
