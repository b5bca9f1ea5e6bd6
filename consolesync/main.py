"""
Main application entry point for consolesync.

Provides a CLI to inspect configuration and browse console resources.
"""

import asyncio
import json
import sys
from typing import Any, Dict, List, Optional, Tuple

import click
from rich.console import Console
from rich.table import Table

from consolesync.context import build_context
from consolesync.core.config import print_configuration_summary, validate_required_settings
from consolesync.core.exceptions import ApiError, ConsoleSyncError
from consolesync.core.logging import set_correlation_id, setup_logging
from consolesync.core.models import ListParams, PaginatedResult, Record
from consolesync.data.resource_client import RESOURCE_PATHS

console = Console()

MAX_COLUMNS = 6


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--correlation-id", help="Set correlation ID for request tracing")
@click.pass_context
def main(ctx, debug: bool, correlation_id: Optional[str]):
    """Browse and manage administrative console resources."""
    ctx.ensure_object(dict)

    setup_logging(debug=debug, rich_output=True)

    if correlation_id:
        set_correlation_id(correlation_id)

    ctx.obj["debug"] = debug
    ctx.obj["correlation_id"] = correlation_id
    # Replaceable so the clients can run over another httpx transport
    ctx.obj.setdefault("context_factory", build_context)


@main.command()
def config():
    """Show the configuration and report missing settings."""
    print_configuration_summary()

    missing = validate_required_settings()
    if missing:
        console.print("[red]Configuration Error:[/red]")
        for item in missing:
            console.print(f"  • Missing: {item}")
        sys.exit(1)

    console.print("[green]✅ Configuration is valid[/green]")


@main.command()
def resources():
    """List the resource kinds the console knows."""
    table = Table(title="Resources")
    table.add_column("Kind", style="cyan")
    table.add_column("Path", style="white")
    for kind, path in sorted(RESOURCE_PATHS.items()):
        table.add_row(kind, path)
    console.print(table)


def _parse_filters(ctx, param, values: Tuple[str, ...]) -> Dict[str, str]:
    filters = {}
    for value in values:
        key, sep, text = value.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {value!r}")
        filters[key] = text
    return filters


@main.command(name="list")
@click.argument("kind")
@click.option("--page", type=int, help="Page number (1-based)")
@click.option("--per-page", type=int, help="Records per page")
@click.option("--search", help="Free-text search")
@click.option(
    "--filter", "filters", multiple=True, callback=_parse_filters, help="Filter as key=value"
)
@click.option("--sort", help="Field to sort by")
@click.option("--direction", type=click.Choice(["asc", "desc"]), help="Sort direction")
@click.pass_context
def list_records(
    ctx,
    kind: str,
    page: Optional[int],
    per_page: Optional[int],
    search: Optional[str],
    filters: Dict[str, str],
    sort: Optional[str],
    direction: Optional[str],
):
    """List one page of KIND records."""
    params = ListParams(
        page=page, per_page=per_page, search=search, filters=filters, sort=sort, direction=direction
    )

    async def run(context):
        return await context.client(kind).list(params)

    result = _run(ctx, run)
    _display_page(kind, result)


@main.command()
@click.argument("kind")
@click.argument("record_id")
@click.pass_context
def get(ctx, kind: str, record_id: str):
    """Show one KIND record."""

    async def run(context):
        return await context.client(kind).get(record_id)

    record = _run(ctx, run)
    if record is None:
        console.print(f"[yellow]{kind} {record_id} not found[/yellow]")
        sys.exit(1)
    console.print_json(json.dumps(record, default=str, ensure_ascii=False))


@main.command()
@click.argument("kind")
@click.argument("record_id")
@click.confirmation_option(prompt="Delete this record?")
@click.pass_context
def delete(ctx, kind: str, record_id: str):
    """Delete one KIND record."""

    async def run(context):
        await context.client(kind).remove(record_id)

    _run(ctx, run)
    console.print(f"[green]✅ Deleted {kind} {record_id}[/green]")


def _run(ctx, operation) -> Any:
    """Build a context, run ``operation`` against it and close it."""

    async def runner():
        async with ctx.obj["context_factory"]() as context:
            return await operation(context)

    try:
        return asyncio.run(runner())
    except ApiError as e:
        status = f" ({e.status})" if e.status else ""
        console.print(f"[red]API Error{status}:[/red] {e.message}")
        sys.exit(1)
    except ConsoleSyncError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        sys.exit(1)


def _display_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str, ensure_ascii=False)
    return str(value)


def _columns(items: List[Record]) -> List[str]:
    columns = ["id"] if any("id" in item for item in items) else []
    for item in items:
        for key, value in item.items():
            if len(columns) >= MAX_COLUMNS:
                return columns
            if key not in columns and not isinstance(value, (dict, list)):
                columns.append(key)
    return columns


def _display_page(kind: str, result: PaginatedResult) -> None:
    table = Table(title=f"{kind} (page {result.page}/{max(result.total_pages, 1)})")
    columns = _columns(result.items)
    for column in columns:
        table.add_column(column, style="cyan" if column == "id" else "white")
    for item in result.items:
        table.add_row(*(_display_value(item.get(column)) for column in columns))

    console.print(table)
    console.print(f"{len(result.items)} of {result.total} records")


if __name__ == "__main__":
    main()
