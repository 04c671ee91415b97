"""Init command implementation."""

from pathlib import Path
from typing import List

import typer
from rich.console import Console
from rich.panel import Panel

from ..config import ConfigModel, FeedConfig, save_config, save_feeds
from ..db import ensure_admin_user, init_database, validate_connection

console = Console()

LOCAL_KEYWORDS = [
    "albuquerque", "new mexico", "nm", "santa fe", "rio rancho", "las cruces",
    "bloomfield", "farmington", "gallup", "roswell", "clovis",
]
EXCLUDE_KEYWORDS = ["advertisement", "sponsored", "classifieds", "obituaries", "horoscope", "lottery"]
PRIORITY_KEYWORDS = ["breaking", "alert", "urgent", "update", "developing", "live", "emergency"]


def create_default_feeds() -> List[FeedConfig]:
    """Create the default local news feeds."""
    shared = dict(
        keywords=LOCAL_KEYWORDS,
        exclude_keywords=EXCLUDE_KEYWORDS,
        priority_keywords=PRIORITY_KEYWORDS,
        allow_duplicates_from_different_sources=True,
        max_duplicate_age_hours=12,
        content_similarity_threshold=0.65,
    )
    return [
        FeedConfig(name="KRQE News", url="https://www.krqe.com/feed/", max_items=20, **shared),
        FeedConfig(name="KOAT News", url="https://www.koat.com/topstories-rss", max_items=20, **shared),
        FeedConfig(name="News Radio KKOB", url="https://newsradiokkob.com/feed", max_items=15, **shared),
    ]


def init_command(
    config_dir: Path = typer.Option(
        Path.home() / ".config" / "newsdesk",
        "--config-dir",
        "-c",
        help="Configuration directory",
    ),
    db_host: str = typer.Option("localhost", "--db-host", help="Postgres host"),
    db_port: int = typer.Option(5432, "--db-port", help="Postgres port"),
    db_name: str = typer.Option("newsdesk", "--db-name", help="Database name"),
    db_user: str = typer.Option("newsdesk_user", "--db-user", help="Database user"),
    admin_email: str = typer.Option("admin@abqhotspot.com", "--admin-email", help="Author of imported drafts"),
    seed_feeds: bool = typer.Option(
        True,
        "--seed-feeds/--no-seed-feeds",
        help="Seed default local news feeds",
    ),
) -> None:
    """Initialize newsdesk configuration and database."""
    console.print(Panel.fit("Newsdesk - Initialization", style="bold blue"))

    config_dir.mkdir(parents=True, exist_ok=True)
    config_path = config_dir / "config.yaml"
    feeds_path = config_dir / "feeds.yaml"

    config = ConfigModel(
        postgres={
            "host": db_host,
            "port": db_port,
            "database": db_name,
            "user": db_user,
            "password_env": "NEWSDESK_DB_PASSWORD",
        },
        importer={"admin_email": admin_email},
    )

    save_config(config, config_path)
    console.print(f"✅ Created config: {config_path}")

    if seed_feeds:
        feeds = create_default_feeds()
        save_feeds(feeds, feeds_path)
        console.print(f"✅ Created feeds: {feeds_path} (seeded with {len(feeds)} feeds)")
    else:
        save_feeds([], feeds_path)
        console.print(f"✅ Created feeds: {feeds_path} (empty)")

    console.print("\n[bold]Testing database connection...[/bold]")
    db_config = config.postgres.model_dump()

    if not validate_connection(db_config):
        console.print(
            "[red]❌ Database connection failed![/red]\n"
            "Please ensure Postgres is running and credentials are correct.\n"
            "Set the password via environment variable: [bold]export NEWSDESK_DB_PASSWORD=your_password[/bold]"
        )
        raise typer.Exit(1)

    console.print("✅ Database connection successful")

    console.print("\n[bold]Initializing database schema...[/bold]")
    try:
        init_database(db_config)
        user_id = ensure_admin_user(db_config, admin_email)
        console.print(f"✅ Database schema initialized (admin user #{user_id})")
    except Exception as e:
        console.print(f"[red]❌ Failed to initialize database: {e}[/red]")
        raise typer.Exit(1)

    console.print(
        Panel(
            f"[green]✅ Newsdesk initialized successfully![/green]\n\n"
            f"Configuration: {config_path}\n"
            f"Feeds: {feeds_path}\n\n"
            f"Next steps:\n"
            f"1. Set database password: [bold]export NEWSDESK_DB_PASSWORD=your_password[/bold]\n"
            f"2. Run: [bold]newsdesk import[/bold]",
            style="green",
        )
    )
