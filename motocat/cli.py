"""Motocat CLI.

Commands:
- init: Initialize database schema
- resolve: Show effective components of a trim
- assign: Assign a component to many models
- usage: Check whether a component can be deleted
- stats: Show assignment linking statistics
- web serve: Run the HTTP API
"""

from __future__ import annotations

import asyncio
from uuid import UUID

import typer
from rich.console import Console
from rich.table import Table

from motocat.assignments.service import AssignmentService, build_service
from motocat.config import get_config
from motocat.core.logging import configure_logging
from motocat.db.connection import close_db, init_db
from motocat.errors import MotocatError
from motocat.models import ComponentType, ResolutionSource

app = typer.Typer(
    name="motocat",
    help="Motocat - motorcycle component assignment and resolution",
    no_args_is_help=True,
)

web_cli = typer.Typer(help="HTTP API")
app.add_typer(web_cli, name="web")

console = Console()

_SOURCE_STYLE = {
    ResolutionSource.TRIM: "cyan",
    ResolutionSource.MODEL: "green",
    ResolutionSource.NONE: "dim",
}


def _run(operation):
    """Run a coroutine against a fresh service, flushing invalidations afterwards."""

    async def _main():
        service = build_service()
        try:
            return await operation(service)
        finally:
            await service.close()
            await close_db()

    configure_logging(get_config().log_level, "text")
    try:
        return asyncio.run(_main())
    except (MotocatError, ValueError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc


@app.command()
def init(
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables"),
):
    """Initialize database schema."""
    config = get_config()
    console.print(f"[bold]Initializing database:[/bold] {config.db.url}")
    if drop:
        console.print("[yellow]Dropping existing tables...[/yellow]")

    async def _init():
        try:
            await init_db(drop=drop)
        finally:
            await close_db()

    asyncio.run(_init())
    console.print("[bold green]✓[/bold green] Database initialized")


@app.command()
def resolve(
    configuration_id: UUID = typer.Argument(..., help="Trim (configuration) ID"),
    component_type: ComponentType | None = typer.Option(
        None, "--type", "-t", help="Only resolve this component type"
    ),
):
    """Show the effective component for each type of a trim."""

    async def _resolve(service: AssignmentService):
        if component_type is not None:
            resolution = await service.resolve(configuration_id, component_type)
            return {component_type: resolution}
        return await service.resolve_all(configuration_id)

    resolutions = _run(_resolve)

    table = Table(title=f"Effective components for {configuration_id}")
    table.add_column("Type", style="bold")
    table.add_column("Component")
    table.add_column("Source")
    for ct, resolution in resolutions.items():
        style = _SOURCE_STYLE[resolution.source]
        table.add_row(
            ct.value,
            str(resolution.component_id) if resolution.component_id else "-",
            f"[{style}]{resolution.source.value}[/{style}]",
        )
    console.print(table)


@app.command()
def assign(
    component_type: ComponentType = typer.Argument(..., help="Component type"),
    component_id: UUID = typer.Argument(..., help="Catalog component ID"),
    model_ids: list[UUID] = typer.Argument(..., help="Target model IDs"),
    effective_from: int | None = typer.Option(None, "--from", help="First model year covered"),
    effective_to: int | None = typer.Option(None, "--to", help="Last model year covered"),
    notes: str | None = typer.Option(None, "--notes", help="Free-text note"),
):
    """Assign a component as the default of several models."""

    async def _assign(service: AssignmentService):
        return await service.assign(
            component_type,
            component_id,
            model_ids,
            effective_from_year=effective_from,
            effective_to_year=effective_to,
            notes=notes,
        )

    result = _run(_assign)

    for outcome in result.results:
        if outcome.ok:
            console.print(f"  [green]✓[/green] {outcome.model_id}")
        else:
            console.print(f"  [red]✗[/red] {outcome.model_id}: {outcome.error}")

    colour = "green" if not result.failed else "yellow"
    console.print(f"\n[bold {colour}]{result.summary}[/bold {colour}]")
    if result.results and not result.succeeded:
        raise typer.Exit(code=1)


@app.command()
def usage(
    component_type: ComponentType = typer.Argument(..., help="Component type"),
    component_id: UUID = typer.Argument(..., help="Catalog component ID"),
):
    """Show which models and trims reference a component."""
    report = _run(lambda service: service.can_delete(component_type, component_id))

    if report.can_delete:
        console.print(f"[green]{report.message}[/green]")
        return

    console.print(f"[yellow]{report.message}[/yellow]")
    if report.affected_models:
        console.print("\n[bold]Models:[/bold]")
        for name in report.affected_models:
            console.print(f"  • {name}")
    if report.affected_trims:
        console.print("\n[bold]Trims:[/bold]")
        for label in report.affected_trims:
            console.print(f"  • {label}")


@app.command()
def stats():
    """Show how many models have assignments and how many trims override them."""
    linking = _run(lambda service: service.linking_stats())

    table = Table(title="Component linking")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    for label, value in linking.model_dump().items():
        table.add_row(label.replace("_", " ").capitalize(), str(value))
    console.print(table)


@web_cli.command("serve")
def web_serve(
    host: str = typer.Option("0.0.0.0", help="Host to bind"),
    port: int = typer.Option(8001, help="Port to bind"),
    reload: bool = typer.Option(False, help="Enable autoreload (dev only)"),
):
    """Run the FastAPI assignment API."""
    import uvicorn

    typer.echo(f"Starting assignment API on http://{host}:{port}")
    uvicorn.run(
        "motocat.web.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=1,
    )


if __name__ == "__main__":
    app()
