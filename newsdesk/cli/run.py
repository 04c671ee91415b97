"""Import command implementation."""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ..config import Config
from ..db import MemoryStore, PostgresStore, Store, validate_connection
from ..log import setup_logging
from ..models import User
from ..pipeline import ImportOrchestrator, ImportResult, ImportSummary

console = Console()


async def open_store(config: Config, dry_run: bool = False) -> Store:
    """Postgres store for real runs, a throwaway memory store for dry runs."""
    if dry_run:
        admin = User(email=config.config.importer.admin_email, name="Dry Run", role="ADMIN")
        return MemoryStore(users=[admin])
    return await PostgresStore.connect(config.get_db_config())


def print_summary(summary: ImportSummary) -> None:
    table = Table(title="RSS Import")
    table.add_column("Feed", style="cyan")
    table.add_column("Status", style="yellow")
    table.add_column("Imported", style="green", justify="right")
    table.add_column("Skipped", style="magenta", justify="right")
    table.add_column("Time", justify="right")
    table.add_column("Errors", style="red")

    for result in summary.results:
        _add_result_row(table, result)

    console.print(table)
    console.print(
        f"[bold]{summary.total_imported}[/bold] imported, {summary.total_skipped} skipped, "
        f"{summary.successful_feeds}/{summary.total_feeds} feeds ok in {summary.total_duration:.1f}s"
    )


def _add_result_row(table: Table, result: ImportResult) -> None:
    table.add_row(
        result.feed_name,
        "✓" if result.success else "✗",
        str(result.imported),
        str(result.skipped),
        f"{result.duration:.1f}s",
        "; ".join(result.errors),
    )


async def _run_import(
    config: Config,
    url: Optional[str],
    feed_name: Optional[str],
    dry_run: bool,
) -> ImportSummary:
    store = await open_store(config, dry_run)
    try:
        orchestrator = ImportOrchestrator(store, config.get_feeds(), config.config.importer)
        if url:
            result = await orchestrator.import_from_url(url, feed_name or "Custom Feed")
            return ImportSummary.from_results([result], result.duration)
        return await orchestrator.run_all()
    finally:
        await store.close()


def import_command(
    url: Optional[str] = typer.Option(
        None,
        "--url",
        "-u",
        help="Import a single feed URL instead of the configured feeds",
    ),
    feed_name: Optional[str] = typer.Option(
        None,
        "--feed-name",
        "-n",
        help="Source name recorded for --url imports",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Run the pipeline against an in-memory store",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to config.yaml",
    ),
) -> None:
    """Import configured RSS feeds as draft posts."""
    try:
        config = Config(config_path)
        setup_logging(config.config.logging.level)

        if not dry_run:
            console.print("[dim]Checking database connection...[/dim]")
            if not validate_connection(config.get_db_config()):
                console.print("[red]❌ Database connection failed![/red]")
                console.print("Please check your database configuration and ensure Postgres is running.")
                raise typer.Exit(1)

        summary = asyncio.run(_run_import(config, url, feed_name, dry_run))
        print_summary(summary)

        if summary.total_feeds and not summary.successful_feeds:
            raise typer.Exit(1)

    except typer.Exit:
        raise
    except KeyboardInterrupt:
        console.print("\n[yellow]Import interrupted by user[/yellow]")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[red]Import failed: {e}[/red]")
        raise typer.Exit(1)
