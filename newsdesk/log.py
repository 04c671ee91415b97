"""Logging setup."""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

_HANDLER_NAME = "newsdesk-rich"


def setup_logging(level: str = "INFO", console: Optional[Console] = None) -> logging.Logger:
    """Attach a rich handler to the ``newsdesk`` logger. Safe to call repeatedly."""
    logger = logging.getLogger("newsdesk")
    logger.setLevel(level.upper())

    if not any(h.get_name() == _HANDLER_NAME for h in logger.handlers):
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
            markup=False,
        )
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        logger.addHandler(handler)
        logger.propagate = False

    return logger
