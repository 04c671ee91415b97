"""Main CLI application."""

import typer
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

from .feeds import feeds_app
from .init import init_command
from .run import import_command
from .schedule import schedule_command

app = typer.Typer(
    name="newsdesk",
    help="Newsdesk - import local news RSS feeds as draft posts",
    no_args_is_help=True,
)

# Register commands
app.command("init")(init_command)
app.command("import")(import_command)
app.command("schedule")(schedule_command)
app.add_typer(feeds_app, name="feeds", help="Manage RSS feeds")


if __name__ == "__main__":
    app()
