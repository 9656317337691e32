"""Logging setup for the command-line entry point."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: str = "WARNING", console: Console | None = None) -> None:
    """
    Configure the root logger with a rich handler.

    Library modules only create loggers via ``logging.getLogger(__name__)``;
    handlers are attached here, once, by the CLI.
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
