"""Command-line interface for the Resource Manager.

Provides CLI commands for shutting down and starting up an environment,
inspecting live resource status, listing schedules and serving the API.
"""

from __future__ import annotations

import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from .config import load_config
from .exceptions import ResourceManagerError
from .logging_config import configure_logging
from .models import OperationResult, ResourceStatus

app = typer.Typer(
    name="resource-manager",
    help="Resource Manager - environment shutdown/startup CLI",
    rich_markup_mode="rich",
)
console = Console()


def _orchestrator(env: str, config_path: Path | None):
    from .orchestrator import ResourceOrchestrator

    config = load_config(env, config_path)
    configure_logging(config)
    return ResourceOrchestrator(config)


@app.command()
def shutdown(
    env: str = typer.Option("dev", help="Environment (dev/staging/local)"),
    config_path: Path | None = typer.Option(None, help="Custom config file path"),
) -> None:
    """Stop every managed resource in the environment."""
    console.print(f"[bold blue]Shutting down {env} resources...[/bold blue]")

    try:
        result = _orchestrator(env, config_path).shutdown_resources()
        _display_operation_result(result)
        if not result.success:
            sys.exit(1)
        console.print("[bold green]Shutdown completed[/bold green]")

    except ResourceManagerError as e:
        console.print(f"[bold red]Shutdown failed: {e}[/bold red]")
        sys.exit(1)


@app.command()
def startup(
    env: str = typer.Option("dev", help="Environment (dev/staging/local)"),
    config_path: Path | None = typer.Option(None, help="Custom config file path"),
) -> None:
    """Start every managed resource in the environment."""
    console.print(f"[bold blue]Starting up {env} resources...[/bold blue]")

    try:
        result = _orchestrator(env, config_path).startup_resources()
        _display_operation_result(result)
        if not result.success:
            sys.exit(1)
        console.print("[bold green]Startup completed[/bold green]")

    except ResourceManagerError as e:
        console.print(f"[bold red]Startup failed: {e}[/bold red]")
        sys.exit(1)


@app.command()
def status(
    env: str = typer.Option("dev", help="Environment (dev/staging/prod/local)"),
    config_path: Path | None = typer.Option(None, help="Custom config file path"),
) -> None:
    """Show live status of every managed resource kind."""
    try:
        resource_status = _orchestrator(env, config_path).get_resource_status()
        _display_status_table(resource_status)

    except ResourceManagerError as e:
        console.print(f"[bold red]Status check failed: {e}[/bold red]")
        sys.exit(1)


@app.command()
def schedules(
    env: str = typer.Option("dev", help="Environment (dev/staging/prod/local)"),
    config_path: Path | None = typer.Option(None, help="Custom config file path"),
) -> None:
    """List EventBridge schedules."""
    from .schedules import ScheduleManager

    try:
        config = load_config(env, config_path)
        configure_logging(config)
        items = ScheduleManager(config).list_schedules()

        table = Table(title="Schedules")
        table.add_column("Name", style="cyan")
        table.add_column("State", style="green")
        table.add_column("Group", style="yellow")
        for item in items:
            table.add_row(item.get("Name", ""), item.get("State", ""), item.get("GroupName", ""))
        console.print(table)

    except ResourceManagerError as e:
        console.print(f"[bold red]Listing schedules failed: {e}[/bold red]")
        sys.exit(1)


@app.command()
def serve(
    env: str = typer.Option("dev", help="Environment (dev/staging/prod/local)"),
    config_path: Path | None = typer.Option(None, help="Custom config file path"),
    host: str | None = typer.Option(None, help="Host to bind to"),
    port: int | None = typer.Option(None, help="Port to bind to"),
) -> None:
    """Run the HTTP API server."""
    from .api.app import APIServer

    config = load_config(env, config_path)
    configure_logging(config)
    APIServer(config).run(host=host, port=port)


def _display_operation_result(result: OperationResult) -> None:
    table = Table(title=f"{result.operation.capitalize()} - {result.environment}")
    table.add_column("Resource", style="cyan")
    table.add_column("Result", style="green")

    resources = result.resources.model_dump(by_alias=True)
    cloudfront = resources.pop("cloudfront")
    for kind, ok in resources.items():
        table.add_row(kind, "ok" if ok else "[red]failed[/red]")
    for dist_id, ok in cloudfront.items():
        table.add_row(f"cloudfront {dist_id}", "ok" if ok else "[red]failed[/red]")
    console.print(table)

    for error in result.errors:
        console.print(f"[red]- {error}[/red]")


def _display_status_table(resource_status: ResourceStatus) -> None:
    table = Table(title="Resource Status")
    table.add_column("Resource", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Message", style="yellow")

    for kind, sub in resource_status.model_dump(by_alias=True).items():
        table.add_row(kind, sub["status"], sub["message"])
    console.print(table)


if __name__ == "__main__":
    app()
