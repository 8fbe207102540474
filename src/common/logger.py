"""Logging utilities with rich console output.

Every module logs through the standard library ``logging`` module; this file wires
it to a shared rich console. The CLI additionally mirrors everything into a plain
``logs.txt`` inside the output folder.

Usage:
    from common.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Scanning region files...")
    logger.debug("Chunk [3, 7] - Processing block entity: minecraft:chest")
    logger.error("Failed to read region file", exc_info=True)
"""

import logging
import os
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TextColumn,
    TimeElapsedColumn,
)

# Shared console so log lines and progress bars do not overwrite each other
console = Console()

FILE_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _rich_handler(show_time: bool = False, show_path: bool = False) -> RichHandler:
    handler = RichHandler(
        console=console,
        show_time=show_time,
        show_path=show_path,
        rich_tracebacks=True,
        markup=True,
    )
    handler.setFormatter(logging.Formatter(fmt="%(message)s", datefmt="[%X]"))
    return handler


def get_logger(
    name: str,
    level: str | None = None,
    show_time: bool = False,
    show_path: bool = False,
) -> logging.Logger:
    """Get a configured logger with rich output.

    Args:
        name: Logger name (typically __name__ of the module)
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               If None, uses environment variable LOG_LEVEL or defaults to INFO.
        show_time: Show timestamp in log output
        show_path: Show file path in log output

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Avoid adding multiple handlers if logger already configured
    if logger.handlers:
        return logger

    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO").upper()
    logger.setLevel(level.upper())

    logger.addHandler(_rich_handler(show_time=show_time, show_path=show_path))

    # Keep propagation so pytest caplog and the CLI's file handler see records
    logger.propagate = True

    return logger


def setup_logging(level: str = "INFO", log_file: Path | None = None) -> None:
    """Configure logging for a CLI run.

    Module loggers keep their own rich handler, so the root logger only gets the
    optional file handler. ``level`` is applied to every already-created project
    logger so ``--log-level DEBUG`` takes effect everywhere.

    Args:
        level: Logging level for the run
        log_file: Optional path of a plain-text log file to append to
    """
    level = level.upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        if isinstance(handler, logging.FileHandler):
            root_logger.removeHandler(handler)
            handler.close()

    for name, existing in logging.Logger.manager.loggerDict.items():
        if isinstance(existing, logging.Logger) and existing.handlers:
            existing.setLevel(level)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter(fmt=FILE_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )
        root_logger.addHandler(file_handler)


def progress_bar() -> Progress:
    """Create a progress display bound to the shared console.

    Example:
        >>> with progress_bar() as bar:
        ...     task = bar.add_task("Region files", total=len(files))
        ...     bar.advance(task)
    """
    return Progress(
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )


def success(message: str) -> None:
    """Print a success message with green checkmark."""
    console.print(f"[green]✓[/green] {message}")


def warning(message: str) -> None:
    """Print a warning message with yellow warning icon."""
    console.print(f"[yellow]⚠[/yellow] {message}")


def error(message: str) -> None:
    """Print an error message with red X icon to stderr."""
    Console(file=sys.stderr).print(f"[red]✗[/red] {message}")
