"""Feed management commands."""

import asyncio
from pathlib import Path
from typing import Dict, List, Optional

import httpx
import typer
from rich.console import Console
from rich.table import Table

from ..config import Config, FeedConfig, load_feeds, save_feeds
from ..ingestion import parse_feed
from ..pipeline import ImportOrchestrator
from .run import open_store

console = Console()
feeds_app = typer.Typer(help="Manage RSS feeds")

CONFIG_OPTION = typer.Option(None, "--config", help="Path to config.yaml")


def _load_or_exit(config: Config) -> List[FeedConfig]:
    try:
        return load_feeds(config.feeds_path)
    except FileNotFoundError:
        console.print("[red]Feeds file not found. Run 'newsdesk init' first.[/red]")
        raise typer.Exit(1)


@feeds_app.command("list")
def feeds_list(config_path: Optional[Path] = CONFIG_OPTION) -> None:
    """List all configured feeds."""
    feeds = _load_or_exit(Config(config_path))

    if not feeds:
        console.print("[yellow]No feeds configured.[/yellow]")
        return

    table = Table(title="Configured Feeds")
    table.add_column("Name", style="cyan")
    table.add_column("Max Items", style="green", justify="right")
    table.add_column("Threshold", style="magenta", justify="right")
    table.add_column("Enabled", style="yellow")
    table.add_column("URL", style="blue")

    for feed in feeds:
        table.add_row(
            feed.name,
            str(feed.max_items),
            f"{feed.content_similarity_threshold:.2f}",
            "✓" if feed.enabled else "✗",
            feed.url,
        )

    console.print(table)


@feeds_app.command("add")
def feeds_add(
    name: str = typer.Option(..., "--name", "-n", help="Feed name, stored as the post source"),
    url: str = typer.Option(..., "--url", "-u", help="RSS feed URL"),
    max_items: int = typer.Option(10, "--max-items", "-m", help="Items considered per run", min=1),
    keywords: Optional[List[str]] = typer.Option(None, "--keyword", "-k", help="Relevance keyword (repeatable)"),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", "-x", help="Exclude keyword (repeatable)"),
    priority: Optional[List[str]] = typer.Option(None, "--priority", "-p", help="Priority keyword (repeatable)"),
    threshold: float = typer.Option(
        1.0,
        "--threshold",
        "-t",
        help="Content similarity threshold (1.0 disables similarity checks)",
        min=0.0,
        max=1.0,
    ),
    max_age: Optional[int] = typer.Option(
        None,
        "--max-age",
        help="Hours after which the same link may be imported again",
        min=1,
    ),
    allow_cross_source: bool = typer.Option(
        False,
        "--allow-cross-source/--no-allow-cross-source",
        help="Allow the same link from different feeds",
    ),
    config_path: Optional[Path] = CONFIG_OPTION,
) -> None:
    """Add a new RSS feed."""
    config = Config(config_path)

    try:
        feeds = load_feeds(config.feeds_path)
    except FileNotFoundError:
        feeds = []

    if any(f.name == name or f.url == url for f in feeds):
        console.print(f"[red]Feed '{name}' or URL already exists.[/red]")
        raise typer.Exit(1)

    feeds.append(
        FeedConfig(
            name=name,
            url=url,
            max_items=max_items,
            keywords=keywords or [],
            exclude_keywords=exclude or [],
            priority_keywords=priority or [],
            content_similarity_threshold=threshold,
            max_duplicate_age_hours=max_age,
            allow_duplicates_from_different_sources=allow_cross_source,
        )
    )
    save_feeds(feeds, config.feeds_path)

    console.print(f"[green]✅ Added feed: {name}[/green]")


@feeds_app.command("remove")
def feeds_remove(
    name: str = typer.Argument(..., help="Feed name to remove"),
    config_path: Optional[Path] = CONFIG_OPTION,
) -> None:
    """Remove a feed. Posts already imported from it are kept."""
    config = Config(config_path)
    feeds = _load_or_exit(config)

    remaining = [f for f in feeds if f.name != name]
    if len(remaining) == len(feeds):
        console.print(f"[red]Feed '{name}' not found.[/red]")
        raise typer.Exit(1)

    save_feeds(remaining, config.feeds_path)
    console.print(f"[green]✅ Removed feed: {name}[/green]")


@feeds_app.command("test")
def feeds_test(
    name: Optional[str] = typer.Argument(None, help="Feed name to test (or test all)"),
    config_path: Optional[Path] = CONFIG_OPTION,
) -> None:
    """Fetch and parse feeds without importing anything."""
    feeds = _load_or_exit(Config(config_path))

    if name:
        feeds = [f for f in feeds if f.name == name]
        if not feeds:
            console.print(f"[red]Feed '{name}' not found.[/red]")
            raise typer.Exit(1)

    with httpx.Client(timeout=10.0, follow_redirects=True) as client:
        for feed in feeds:
            if not feed.enabled:
                console.print(f"[yellow]⚠️  {feed.name}: Disabled[/yellow]")
                continue

            try:
                response = client.get(feed.url)
                response.raise_for_status()
                parsed = parse_feed(feed.url, response.content)
                console.print(f"[green]✅ {feed.name}: OK ({response.status_code}, {len(parsed.items)} items)[/green]")
            except httpx.HTTPError as e:
                console.print(f"[red]❌ {feed.name}: Failed - {e}[/red]")
            except Exception as e:
                console.print(f"[red]❌ {feed.name}: Error - {e}[/red]")


async def _post_counts(config: Config) -> Dict[str, int]:
    store = await open_store(config)
    try:
        return await ImportOrchestrator(store, []).get_feed_post_counts()
    finally:
        await store.close()


async def _clear_posts(config: Config, name: str) -> int:
    store = await open_store(config)
    try:
        return await ImportOrchestrator(store, []).clear_feed_posts(name)
    finally:
        await store.close()


@feeds_app.command("counts")
def feeds_counts(config_path: Optional[Path] = CONFIG_OPTION) -> None:
    """Show how many posts each feed has produced."""
    try:
        counts = asyncio.run(_post_counts(Config(config_path)))
    except Exception as e:
        console.print(f"[red]Failed to count posts: {e}[/red]")
        raise typer.Exit(1)

    if not counts:
        console.print("[yellow]No imported posts yet.[/yellow]")
        return

    table = Table(title="Imported Posts by Feed")
    table.add_column("Feed", style="cyan")
    table.add_column("Posts", style="green", justify="right")
    for feed_name, count in sorted(counts.items()):
        table.add_row(feed_name, str(count))

    console.print(table)


@feeds_app.command("clear")
def feeds_clear(
    name: str = typer.Argument(..., help="Feed name whose posts should be deleted"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    config_path: Optional[Path] = CONFIG_OPTION,
) -> None:
    """Delete every post imported from a feed."""
    if not yes:
        typer.confirm(f"Delete all posts imported from '{name}'?", abort=True)

    try:
        cleared = asyncio.run(_clear_posts(Config(config_path), name))
    except Exception as e:
        console.print(f"[red]Failed to clear posts: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✅ Cleared {cleared} posts from {name}[/green]")
