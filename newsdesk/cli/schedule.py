"""Schedule command implementation."""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from ..config import Config
from ..log import setup_logging
from ..pipeline import ImportOrchestrator, ImportScheduler, next_run_time
from .run import open_store

console = Console()


async def _serve(config: Config, run_now: bool) -> None:
    settings = config.get_scheduler_settings()
    # Always enabled here, whatever RSS_AUTO_IMPORT says.
    settings.enabled = True

    store = await open_store(config)
    try:
        orchestrator = ImportOrchestrator(store, config.get_feeds(), config.config.importer)
        scheduler = ImportScheduler(orchestrator, settings)
        scheduler.start()

        console.print(
            Panel.fit(
                f"Pattern: [bold]{settings.cron_pattern}[/bold] ({settings.timezone})\n"
                f"Next run: {next_run_time(settings.cron_pattern, settings.timezone).isoformat()}",
                title="RSS Scheduler",
                style="blue",
            )
        )

        if run_now:
            await scheduler.trigger_import()

        try:
            await scheduler.wait()
        finally:
            scheduler.stop()
    finally:
        await store.close()


def schedule_command(
    run_now: bool = typer.Option(
        False,
        "--run-now",
        help="Run one import immediately before waiting for the schedule",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to config.yaml",
    ),
) -> None:
    """Run imports on the configured cron schedule until interrupted."""
    try:
        config = Config(config_path)
        setup_logging(config.config.logging.level)
        asyncio.run(_serve(config, run_now))
    except KeyboardInterrupt:
        console.print("\n[yellow]Scheduler stopped by user[/yellow]")
    except Exception as e:
        console.print(f"[red]Scheduler failed: {e}[/red]")
        raise typer.Exit(1)
