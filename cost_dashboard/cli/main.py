"""
CLI interface for Cost Dashboard.

Provides command-line access to cost aggregation and dashboard storage.
"""

import json
import logging
import sys
from typing import Any, Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from cost_dashboard.config.loader import AppConfig, load_config
from cost_dashboard.core.aggregation import ParseError, filter_and_aggregate, parse_date
from cost_dashboard.core.dashboard import DashboardService
from cost_dashboard.demo.seed_demo_data import write_demo_records
from cost_dashboard.storage.blob import StorageError
from cost_dashboard.storage.documents import get_document_store
from cost_dashboard.storage.records import load_records

app = typer.Typer()
dashboard_app = typer.Typer(help="Manage per-user dashboards.")
app.add_typer(dashboard_app, name="dashboard")

console = Console()
err_console = Console(stderr=True)

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

# Errors reported to the user instead of a traceback
HANDLED_ERRORS = (ParseError, StorageError, ValueError, FileNotFoundError, yaml.YAMLError)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)]
    )


def _get_config(ctx: typer.Context) -> AppConfig:
    if ctx.obj is None:
        return AppConfig.default()
    return ctx.obj


def _fail(error: Exception) -> None:
    console.print(f"[red]Error:[/] {escape(str(error))}")
    sys.exit(EXIT_CODE_FAIL)


def _parse_json_option(value: str, name: str) -> Any:
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise ValueError(f"--{name} is not valid JSON: {e}")


def _dashboard_service(ctx: typer.Context) -> DashboardService:
    config = _get_config(ctx)
    return DashboardService(get_document_store(config.storage.dashboards_path))


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to YAML configuration file"
    )
):
    """Cost Dashboard CLI."""
    try:
        ctx.obj = load_config(config)
    except HANDLED_ERRORS as e:
        _fail(e)
    _configure_logging(ctx.obj.logging.level)

    if ctx.invoked_subcommand is None:
        console.print("Cost Dashboard - Use --help to see available commands")


@app.command()
def aggregate(
    ctx: typer.Context,
    dimension: str = typer.Option(
        ...,
        "--dimension",
        "-d",
        help="CloudProvider, Region, Account, Service or FinancialDomain"
    ),
    group_by: str = typer.Option(
        ...,
        "--group-by",
        "-g",
        help="month, quarter, year, or anything else for daily buckets"
    ),
    from_date: str = typer.Option(..., "--from", help="Start date (YYYY-MM-DD, inclusive)"),
    to_date: str = typer.Option(..., "--to", help="End date (YYYY-MM-DD, inclusive)"),
    max_display: Optional[str] = typer.Option(
        None,
        "--max-display",
        "-n",
        help="\"all\" or the number of top groups to keep"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON instead of a table")
):
    """
    Aggregate consumption by dimension and time bucket.

    Records outside the date range are ignored. With --max-display N only
    the N groups with the highest total consumption are shown.
    """
    config = _get_config(ctx)
    if max_display is None:
        max_display = config.aggregation.default_max_display

    try:
        records = load_records(config.storage.records_path)
        groups = filter_and_aggregate(records, dimension, group_by, from_date, to_date, max_display)
    except HANDLED_ERRORS as e:
        _fail(e)

    if as_json:
        typer.echo(json.dumps([g.to_dict() for g in groups], indent=2))
        sys.exit(EXIT_CODE_PASS)

    if not groups:
        console.print("\n[bold yellow]No records found in the selected date range[/]\n")
        sys.exit(EXIT_CODE_PASS)

    table = Table(title=f"Consumption by {dimension} ({group_by})")
    table.add_column("Key")
    table.add_column("Budget", justify="right")
    table.add_column("Period")
    table.add_column("Consumption", justify="right")

    for group in groups:
        budget = "-" if not group.has_budget or group.budget is None else str(group.budget)
        for value in group.aggregated_values:
            table.add_row(group.key, budget, value.time_period, _format_amount(value.total_consumption))

    console.print(table)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def records(ctx: typer.Context):
    """Show how many records are available and the dates they span."""
    config = _get_config(ctx)
    try:
        data = load_records(config.storage.records_path)
        dates = [parse_date(r.get("date"), f"date in record {i}") for i, r in enumerate(data)]
    except HANDLED_ERRORS as e:
        _fail(e)

    console.print(f"Records: {len(data)}")
    if dates:
        console.print(f"From: {min(dates).isoformat()}")
        console.print(f"To: {max(dates).isoformat()}")
    sys.exit(EXIT_CODE_PASS)


@app.command("seed-demo")
def seed_demo(
    ctx: typer.Context,
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Where to write the records (defaults to the configured records path)"
    ),
    count: int = typer.Option(200, "--count", help="Number of records to generate"),
    seed: int = typer.Option(42, "--seed", help="Random seed")
):
    """Write a deterministic set of demo records."""
    target = output or _get_config(ctx).storage.records_path
    try:
        written = write_demo_records(target, count=count, seed=seed)
    except HANDLED_ERRORS as e:
        _fail(e)
    console.print(f"[green]✓[/] Wrote {written} demo records to {target}")
    sys.exit(EXIT_CODE_PASS)


@dashboard_app.command("show")
def dashboard_show(ctx: typer.Context, user_id: str = typer.Argument(..., help="User id")):
    """Print a user's dashboard as JSON."""
    try:
        state = _dashboard_service(ctx).get_dashboard(user_id)
    except HANDLED_ERRORS as e:
        _fail(e)
    typer.echo(json.dumps(state.to_dict(), indent=2))
    sys.exit(EXIT_CODE_PASS)


@dashboard_app.command("add")
def dashboard_add(
    ctx: typer.Context,
    user_id: str = typer.Argument(..., help="User id"),
    layout: str = typer.Option(..., "--layout", help="Layout entry as JSON, including its id"),
    chart: str = typer.Option(..., "--chart", help="Chart configuration as JSON")
):
    """Add a chart to a user's dashboard."""
    try:
        layout_entry = _parse_json_option(layout, "layout")
        if not isinstance(layout_entry, dict):
            raise ValueError("--layout must be a JSON object")
        _dashboard_service(ctx).add_chart(user_id, layout_entry, _parse_json_option(chart, "chart"))
    except HANDLED_ERRORS as e:
        _fail(e)
    console.print(f"[green]✓[/] Added chart {layout_entry['id']} for {user_id}")
    sys.exit(EXIT_CODE_PASS)


@dashboard_app.command("update")
def dashboard_update(
    ctx: typer.Context,
    user_id: str = typer.Argument(..., help="User id"),
    chart_id: str = typer.Argument(..., help="Chart id"),
    layout: str = typer.Option(..., "--layout", help="New x, y, width and height as JSON"),
    chart: str = typer.Option(..., "--chart", help="New chart configuration as JSON")
):
    """Update a chart's layout and configuration."""
    try:
        layout_update = _parse_json_option(layout, "layout")
        if not isinstance(layout_update, dict):
            raise ValueError("--layout must be a JSON object")
        _dashboard_service(ctx).update_chart(
            user_id, chart_id, layout_update, _parse_json_option(chart, "chart")
        )
    except HANDLED_ERRORS as e:
        _fail(e)
    console.print(f"[green]✓[/] Updated chart {chart_id} for {user_id}")
    sys.exit(EXIT_CODE_PASS)


@dashboard_app.command("delete")
def dashboard_delete(
    ctx: typer.Context,
    user_id: str = typer.Argument(..., help="User id"),
    chart_id: str = typer.Argument(..., help="Chart id")
):
    """Delete a chart from a user's dashboard."""
    try:
        _dashboard_service(ctx).delete_chart(user_id, chart_id)
    except HANDLED_ERRORS as e:
        _fail(e)
    console.print(f"[green]✓[/] Deleted chart {chart_id} for {user_id}")
    sys.exit(EXIT_CODE_PASS)


def _format_amount(amount: float) -> str:
    """Format an amount with thousands separators and two decimals."""
    return f"{amount:,.2f}"


if __name__ == "__main__":
    app()
