"""Administrative commands for a NoteNest installation.

Every command opens the SQLite databases named by the NOTENEST_SQLITE_*
environment variables (or the options below), starts the application so
that tables exist and projections are caught up, and then runs.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Optional, TypeVar

import typer

from .application import Application, ApplicationBuilder
from .diagnostics import TreeIntegrityReport
from .integrations.sqlite import SqliteConfiguration

T = TypeVar("T")

app = typer.Typer(help="NoteNest maintenance commands", add_completion=False)


@app.callback()
def configure(
    ctx: typer.Context,
    events_path: Optional[str] = typer.Option(
        None, "--events-path", help="SQLite file holding the event log"
    ),
    projections_path: Optional[str] = typer.Option(
        None, "--projections-path", help="SQLite file holding the read models"
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="Python logging level"),
) -> None:
    logging.basicConfig(level=getattr(logging, log_level.upper(), logging.WARNING))
    overrides = {"events_path": events_path, "projections_path": projections_path}
    ctx.obj = SqliteConfiguration(**{k: v for k, v in overrides.items() if v is not None})


def _run(ctx: typer.Context, action: Callable[[Application], Awaitable[T]]) -> T:
    async def run() -> T:
        application = ApplicationBuilder().use_sqlite(ctx.obj).build()
        async with application:
            return await action(application)

    return asyncio.run(run())


def _print_report(report: TreeIntegrityReport) -> None:
    typer.echo(report.summary())
    for issue in report.issues:
        if issue.cycle_path:
            path = " -> ".join(str(node_id) for node_id in issue.cycle_path)
            typer.echo(f"  [{issue.issue_type.value}] {path}: {issue.description}")
        else:
            typer.echo(
                f"  [{issue.issue_type.value}] {issue.display_path} ({issue.node_id}): "
                f"{issue.description}"
            )


@app.command("check")
def check(ctx: typer.Context) -> None:
    """Report self-referencing, orphaned and cyclic tree nodes.

    Exits with status 1 when any issue is found.
    """
    report = _run(ctx, lambda application: application.checker.check())
    _print_report(report)
    if not report.is_healthy:
        raise typer.Exit(1)


@app.command("repair")
def repair(
    ctx: typer.Context,
    self_references: bool = typer.Option(
        False, "--self-references", help="Promote self-referencing nodes to root"
    ),
    orphans: bool = typer.Option(False, "--orphans", help="Promote orphaned nodes to root"),
) -> None:
    """Promote broken nodes to the root of the tree.

    Cycles are not repaired here; run `rebuild tree_view` instead.
    """
    if not (self_references or orphans):
        typer.echo("Nothing to do: pass --self-references and/or --orphans", err=True)
        raise typer.Exit(2)

    async def run_repairs(application: Application) -> TreeIntegrityReport:
        if self_references:
            changed = await application.repair_tool.promote_self_referencing()
            typer.echo(f"Promoted {changed} self-referencing node(s) to root")
        if orphans:
            changed = await application.repair_tool.promote_orphans()
            typer.echo(f"Promoted {changed} orphaned node(s) to root")
        return await application.checker.check()

    _print_report(_run(ctx, run_repairs))


@app.command("delete-self-references")
def delete_self_references(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete every self-referencing node from the tree view.

    The rows are gone until the projection is rebuilt.
    """
    if not yes:
        typer.confirm("Delete all self-referencing tree nodes?", abort=True)

    deleted = _run(
        ctx, lambda application: application.repair_tool.delete_self_referencing(confirm=True)
    )
    typer.echo(f"Deleted {deleted} self-referencing node(s)")


@app.command("rebuild")
def rebuild(
    ctx: typer.Context,
    projection: Optional[str] = typer.Argument(
        None, help="Projection to rebuild (tree_view, todo_view); all when omitted"
    ),
) -> None:
    """Clear projections and fold the whole event stream into them again."""

    async def run_rebuild(application: Application) -> int:
        if projection is None:
            return await application.orchestrator.rebuild_all()
        return await application.orchestrator.rebuild(projection)

    try:
        processed = _run(ctx, run_rebuild)
    except KeyError as error:
        typer.echo(f"Unknown projection: {projection}", err=True)
        raise typer.Exit(2) from error
    typer.echo(f"Rebuilt from {processed} event(s)")


@app.command("status")
def status(ctx: typer.Context) -> None:
    """Show each projection's watermark and lag behind the event stream."""
    statuses = _run(ctx, lambda application: application.orchestrator.status())
    for entry in statuses:
        state = "up to date" if entry.is_up_to_date else f"{entry.lag} behind"
        typer.echo(
            f"{entry.name}: position {entry.last_processed_position}"
            f"/{entry.current_stream_position} ({state})"
        )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
