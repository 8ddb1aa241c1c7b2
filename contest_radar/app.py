"""Typer CLI entrypoint for contest-radar."""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from typing import Iterable, NoReturn, Optional, Sequence

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from .context import RadarContext
from .errors import ContestRadarError, IngestionRunError
from .logging_conf import available_source_logs, configure_logging, log_paths, tail_log
from .pipeline import IngestionSummary
from .records import ContestRecord

app = typer.Typer(
    help="contest-radar: aggregate programming contests from several platforms",
    no_args_is_help=True,
    rich_markup_mode=None,
)
contests_app = typer.Typer(
    name="contests",
    help="Contest listing and refresh commands",
    no_args_is_help=True,
    rich_markup_mode=None,
)
bookmark_app = typer.Typer(
    name="bookmark",
    help="Per-user contest bookmarks",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="Log inspection commands",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()


@dataclass
class AppState:
    context: RadarContext

    def close(self) -> None:
        self.context.close()


def build_state(verbose: bool) -> AppState:
    configure_logging(verbose=verbose)
    return AppState(context=RadarContext.open(verbose=verbose))


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _fail(message: str) -> NoReturn:
    console.print(message, style="red")
    raise typer.Exit(code=1)


def _format_time(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M UTC") if value else "-"


def _format_duration(seconds: Optional[int]) -> str:
    if seconds is None:
        return "-"
    hours, remainder = divmod(seconds, 3600)
    minutes = remainder // 60
    return f"{hours}h{minutes:02d}m" if hours else f"{minutes}m"


def _render_contests_table(records: Sequence[ContestRecord], title: str) -> Table:
    table = Table(title=f"{title} · {len(records)} total", box=box.SIMPLE_HEAD)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", overflow="fold")
    table.add_column("Platform", style="magenta")
    table.add_column("Start", style="green")
    table.add_column("Duration", style="yellow")
    for record in records:
        table.add_row(
            record.id,
            record.name,
            record.platform.value,
            _format_time(record.start_time),
            _format_duration(record.duration),
        )
    return table


def _render_summary_table(summary: IngestionSummary) -> Table:
    table = Table(title="Ingestion result", box=box.SIMPLE_HEAD)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("new", str(summary.new_count))
    table.add_row("updated", str(summary.updated_count))
    table.add_row("fetched", str(summary.total_fetched))
    table.add_row("deleted", str(summary.deleted_count))
    for source, count in summary.per_source.items():
        table.add_row(f"source:{source}", str(count))
    return table


def _render_jobs_table(jobs: Iterable[dict]) -> Table:
    table = Table(title="Scheduled jobs", box=box.SIMPLE_HEAD)
    table.add_column("Job ID", style="cyan", no_wrap=True)
    table.add_column("Next run", style="green")
    table.add_column("Trigger", style="magenta", overflow="fold")
    for job in jobs:
        table.add_row(
            str(job.get("id", "-")),
            str(job.get("next_run_time", "-")),
            str(job.get("trigger", "-")),
        )
    return table


def _print_failed_sources(summary: IngestionSummary) -> None:
    for source, reason in summary.failed_sources.items():
        console.print(f"{source} failed: {reason}", style="yellow")
    for source, warnings in summary.warnings.items():
        for warning in warnings:
            console.print(f"{source} warning: {warning}", style="dim")


def _wait_for_interrupt() -> None:
    threading.Event().wait()


app.add_typer(contests_app, name="contests", help="List or refresh stored contests")
app.add_typer(bookmark_app, name="bookmark", help="Toggle and inspect bookmarks")
app.add_typer(log_app, name="log", help="View log files")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging", is_flag=True),
) -> None:
    state = build_state(verbose)
    ctx.obj = state
    ctx.call_on_close(state.close)


@contests_app.command("list", help="Show stored contests ordered by start time.")
def contests_list(
    ctx: typer.Context,
    platform: Optional[str] = typer.Option(None, "--platform", help="codeforces, codechef or leetcode"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table.", is_flag=True),
) -> None:
    state = _get_state(ctx)
    try:
        records = state.context.store.list_contests(platform)
    except ValueError as exc:
        _fail(str(exc))
    except ContestRadarError as exc:
        _fail(f"Store error: {exc}")
    if as_json:
        typer.echo(json.dumps([record.to_json() for record in records], indent=2))
        return
    if not records:
        console.print("No contests stored yet; run `contest-radar contests refresh`.", style="yellow")
        return
    console.print(_render_contests_table(records, "Contests"))


@contests_app.command("refresh", help="Run one ingestion pass now.")
def contests_refresh(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    try:
        summary = state.context.run_ingestion()
    except IngestionRunError as exc:
        console.print(_render_summary_table(exc.summary))
        _fail(f"Ingestion failed during {exc.step}: {exc}")
    console.print(_render_summary_table(summary))
    _print_failed_sources(summary)


@bookmark_app.command("toggle", help="Add or remove a bookmark.")
def bookmark_toggle(
    ctx: typer.Context,
    email: str = typer.Argument(..., help="User email"),
    contest_id: str = typer.Argument(..., help="Contest id, e.g. cf-1900"),
) -> None:
    state = _get_state(ctx)
    try:
        ids = state.context.store.toggle_bookmark(email, contest_id)
    except ContestRadarError as exc:
        _fail(f"Store error: {exc}")
    action = "added" if contest_id in ids else "removed"
    console.print(f"Bookmark {action}: {contest_id}", style="green")
    typer.echo(json.dumps(ids))


@bookmark_app.command("list", help="Show bookmarked contest ids.")
def bookmark_list(ctx: typer.Context, email: str = typer.Argument(..., help="User email")) -> None:
    state = _get_state(ctx)
    try:
        ids = state.context.store.bookmarks(email)
    except ContestRadarError as exc:
        _fail(f"Store error: {exc}")
    typer.echo(json.dumps(ids))


@bookmark_app.command("contests", help="Show bookmarked contests that are still stored.")
def bookmark_contests(
    ctx: typer.Context,
    email: str = typer.Argument(..., help="User email"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table.", is_flag=True),
) -> None:
    state = _get_state(ctx)
    try:
        records = state.context.store.bookmarked_contests(email)
    except ContestRadarError as exc:
        _fail(f"Store error: {exc}")
    if as_json:
        typer.echo(json.dumps([record.to_json() for record in records], indent=2))
        return
    if not records:
        console.print("No bookmarked contests.", style="dim")
        return
    console.print(_render_contests_table(records, f"Bookmarks for {email}"))


@app.command("serve", help="Start the scheduler and block until interrupted.")
def serve(
    ctx: typer.Context,
    now: bool = typer.Option(
        False, "--now", help="Queue a manual run right away instead of waiting for the startup job.", is_flag=True
    ),
) -> None:
    state = _get_state(ctx)
    state.context.start_scheduler()
    if now:
        state.context.trigger_ingestion()
    console.print(_render_jobs_table(state.context.scheduler.list_jobs()))
    console.print("Scheduler running; press Ctrl+C to stop.", style="green")
    try:
        _wait_for_interrupt()
    except KeyboardInterrupt:
        console.print("Stopping scheduler…", style="yellow")


@app.command("health", help="Print store and pipeline health as JSON.")
def health(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    payload = state.context.health()
    typer.echo(json.dumps(payload, indent=2, default=str))
    if payload.get("status") != "ok":
        raise typer.Exit(code=1)


@log_app.command("list", help="List available source logs.")
def log_list() -> None:
    logs = list(available_source_logs())
    console.print("Log files:", style="cyan")
    if not logs:
        console.print("No source logs yet.", style="dim")
        return
    table = Table(box=box.SIMPLE_HEAD)
    table.add_column("File", style="green")
    for path in logs:
        table.add_row(path.name)
    console.print(table)


@log_app.command("show", help="Show the tail of a log file.")
def log_show(
    name: Optional[str] = typer.Argument(None, help="Source name; omit for the main log."),
    lines: int = typer.Option(100, "--lines", "-n", help="Number of trailing lines."),
) -> None:
    paths = log_paths()
    path = paths.source(name) if name else paths.main
    content = tail_log(path, lines)
    if not content:
        console.print("No log entries yet.", style="dim")
        return
    console.print(f"{path.name} · last {len(content)} lines", style="cyan")
    typer.echo("".join(content))


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
