"""Command Line Interface for the VS-Export vital statistics export.

This module provides a CLI using Typer for running the export, inspecting the
configuration, seeding users and updating record assignments.

Security Impact:
    - The store connection string is never printed
    - Dates are validated before any connection is opened
"""

import json
from pathlib import Path
from typing import Optional

import requests
import typer
from rich.console import Console
from rich.table import Table

from src.adapters.http import GatewayClient, UserManagementClient
from src.adapters.sinks import open_report_sinks
from src.domain.ports import InvalidDateRangeError, ResolutionError, SeedError, StoreError
from src.domain.reports import ExportReport
from src.domain.scheduler import DateRangeScheduler
from src.domain.services import AssignmentService, UserSeeder
from src.infrastructure.checkpoint import load_checkpoint
from src.infrastructure.export_report import save_export_report
from src.infrastructure.logging_config import setup_logging
from src.infrastructure.settings import APP_VERSION, settings

# Initialize Typer app and Rich console
app = typer.Typer(
    name="vsexport",
    help="VS-Export: Birth and Death Report Export",
    add_completion=False
)
console = Console()


def _print_export_summary(report: ExportReport) -> None:
    console.print("\n[bold]Export Summary:[/bold]")

    summary_table = Table(show_header=False, box=None, padding=(0, 2))
    summary_table.add_row("Records found:", f"[bold]{report.total:,}[/bold]")
    summary_table.add_row("Birth rows:", f"[green]{report.births_written:,}[/green]")
    summary_table.add_row("Death rows:", f"[green]{report.deaths_written:,}[/green]")
    summary_table.add_row("Skipped (status):", f"{report.skipped_status:,}")
    summary_table.add_row("Failed:", f"[red]{report.failed:,}[/red]" if report.failed > 0 else f"{report.failed:,}")
    console.print(summary_table)

    windows_table = Table(show_header=True, header_style="bold")
    windows_table.add_column("Window", style="cyan")
    windows_table.add_column("Found", justify="right")
    windows_table.add_column("Birth", justify="right")
    windows_table.add_column("Death", justify="right")
    windows_table.add_column("Skipped", justify="right")
    windows_table.add_column("Failed", justify="right")
    windows_table.add_column("State")
    for window in report.windows:
        if window.aborted:
            state = "[red]aborted[/red]"
        elif window.resumed:
            state = "[dim]resumed[/dim]"
        else:
            state = "[green]done[/green]"
        windows_table.add_row(
            window.label,
            str(window.total),
            str(window.births_written),
            str(window.deaths_written),
            str(window.skipped_status),
            str(window.failed),
            state,
        )
    console.print(windows_table)


@app.command()
def export(
    start: str = typer.Argument(..., help="Start date, inclusive (YYYY-MM-DD)"),
    end: str = typer.Argument(..., help="End date, inclusive (YYYY-MM-DD)"),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", help="Directory of the CSV reports"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    no_report: bool = typer.Option(False, "--no-report", help="Skip saving the JSON run report"),
) -> None:
    """Export birth and death reports for a date range.

    Examples:
        vsexport export 2022-01-01 2022-03-15
        vsexport export 2022-01-01 2022-12-31 --output-dir out/ --verbose
    """
    setup_logging(use_json=settings.log_json, log_level="DEBUG" if verbose else settings.log_level)

    try:
        scheduler = DateRangeScheduler.from_strings(start, end)
    except InvalidDateRangeError as e:
        console.print(f"[red]✗[/red] Invalid date range: {str(e)}")
        raise typer.Exit(code=1)

    reports_dir = str(output_dir) if output_dir else settings.output_dir
    console.print(f"\n[bold blue]{settings.app_name}[/bold blue]")
    console.print(f"[dim]Range:[/dim] {scheduler.start} to {scheduler.end} ({scheduler.total_months} month(s))")
    console.print(f"[dim]Output directory:[/dim] {reports_dir}")

    from src.main import create_document_store, run_export

    try:
        console.print(f"[dim]Database:[/dim] {settings.db_config.db_type}")
        console.print()
        checkpoint = load_checkpoint(settings.checkpoint_path)
        with console.status("[bold green]Connecting to document store..."):
            store = create_document_store()
    except (StoreError, ValueError) as e:
        console.print(f"[red]✗[/red] Failed to initialize: {str(e)}")
        raise typer.Exit(code=1)

    try:
        sinks = open_report_sinks(reports_dir)
    except OSError as e:
        store.close()
        console.print(f"[red]✗[/red] Failed to open reports: {str(e)}")
        raise typer.Exit(code=1)

    try:
        report = run_export(scheduler, store, sinks, checkpoint=checkpoint)
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠[/yellow] Export interrupted by user")
        raise typer.Exit(code=130)

    _print_export_summary(report)

    if settings.save_export_report and not no_report:
        save_result = save_export_report(report, settings.export_report_dir)
        if save_result.is_success():
            console.print(f"\n[green]✓[/green] Export report saved: {save_result.value}")
        else:
            console.print(f"[yellow]⚠[/yellow] Failed to save export report: {save_result.error}")

    if report.aborted_windows:
        console.print(f"\n[yellow]⚠[/yellow] Export completed with {len(report.aborted_windows)} aborted window(s)")
    else:
        console.print("\n[green]✓[/green] Export completed successfully")


@app.command("seed-users")
def seed_users(
    token: str = typer.Option(..., "--token", "-t", envvar="VS_SEED_TOKEN", help="Gateway bearer token"),
    roles: Path = typer.Option(..., "--roles", "-r", exists=True, dir_okay=False, help="JSON file mapping role names to role ids"),
) -> None:
    """Seed users from the country configuration into the gateway.

    Examples:
        vsexport seed-users --token $TOKEN --roles roles.json
    """
    setup_logging(use_json=settings.log_json, log_level=settings.log_level)

    try:
        with open(roles, "r", encoding="utf-8") as f:
            role_id_map = json.load(f)
    except json.JSONDecodeError as e:
        console.print(f"[red]✗[/red] Invalid roles file: {str(e)}")
        raise typer.Exit(code=1)
    if not isinstance(role_id_map, dict):
        console.print("[red]✗[/red] Roles file must contain a JSON object")
        raise typer.Exit(code=1)

    gateway = GatewayClient(
        token=token,
        country_config_url=settings.country_config_url,
        gateway_url=settings.gateway_url,
        gateway_gql_host=settings.gateway_gql_host,
    )
    try:
        report = UserSeeder(gateway, role_id_map).seed()
    except SeedError as e:
        console.print(f"[red]✗[/red] Seeding failed: {str(e)}")
        raise typer.Exit(code=1)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Username", style="cyan")
    table.add_column("Result")
    for username in report.created:
        table.add_row(username, "[green]created[/green]")
    for username, reason in report.skipped.items():
        table.add_row(username, f"[yellow]skipped[/yellow] {reason}")
    console.print(table)
    console.print(f"\n[green]✓[/green] Created {len(report.created)} user(s), skipped {len(report.skipped)}")


@app.command()
def assign(
    bundle_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Saved bundle JSON file"),
    remove: bool = typer.Option(False, "--remove", help="Remove the assignment instead of adding it"),
    authorization: Optional[str] = typer.Option(
        None, "--authorization", "-a", envvar="VS_AUTHORIZATION", help="Authorization header for the user lookup"
    ),
) -> None:
    """Add or remove the assignment on the search document of a saved bundle.

    Examples:
        vsexport assign bundle.json --authorization "Bearer $TOKEN"
        vsexport assign bundle.json --remove
    """
    setup_logging(use_json=settings.log_json, log_level=settings.log_level)

    try:
        with open(bundle_file, "r", encoding="utf-8") as f:
            bundle = json.load(f)
    except json.JSONDecodeError as e:
        console.print(f"[red]✗[/red] Invalid bundle file: {str(e)}")
        raise typer.Exit(code=1)
    if not isinstance(bundle, dict):
        console.print("[red]✗[/red] Invalid bundle file: expected a JSON object")
        raise typer.Exit(code=1)

    from src.main import create_document_store

    try:
        store = create_document_store()
    except (StoreError, ValueError) as e:
        console.print(f"[red]✗[/red] Failed to initialize: {str(e)}")
        raise typer.Exit(code=1)

    service = AssignmentService(store, UserManagementClient(settings.user_management_url))
    try:
        if remove:
            result = service.remove_assignment(bundle)
        else:
            result = service.add_assignment(bundle, authorization=authorization)
    except (ResolutionError, requests.RequestException) as e:
        console.print(f"[red]✗[/red] Assignment failed: {str(e)}")
        raise typer.Exit(code=1)
    finally:
        store.close()

    if result.is_failure():
        console.print(f"[red]✗[/red] Assignment failed: {result.error}")
        raise typer.Exit(code=1)

    action = "Removed assignment of" if remove else "Assigned"
    console.print(f"[green]✓[/green] {action} composition {result.value}")


@app.command()
def info() -> None:
    """Display system information and configuration."""
    console.print("[bold blue]System Information[/bold blue]\n")

    info_table = Table(show_header=False, box=None, padding=(0, 2))
    info_table.add_row("Application:", settings.app_name)
    try:
        db_config = settings.db_config
    except ValueError as e:
        console.print(f"[red]✗[/red] Invalid store configuration: {str(e)}")
        raise typer.Exit(code=1)
    info_table.add_row("Database Type:", db_config.db_type)
    if db_config.db_type == "mongodb":
        info_table.add_row("Database Name:", db_config.database or "")
    else:
        info_table.add_row("Database Path:", db_config.db_path or "(empty)")
    info_table.add_row("Store Retries:", str(db_config.max_retries))
    info_table.add_row("Output Directory:", settings.output_dir)
    info_table.add_row("Checkpoint:", settings.checkpoint_path or "Disabled")
    info_table.add_row("Export Report:", settings.export_report_dir if settings.save_export_report else "Disabled")
    info_table.add_row("User Management:", settings.user_management_url)
    info_table.add_row("Gateway:", settings.gateway_url)

    console.print(info_table)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version information")
) -> None:
    """VS-Export: Birth and Death Report Export."""
    if version:
        console.print(f"{settings.app_name} v{APP_VERSION}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit()


if __name__ == "__main__":
    app()
