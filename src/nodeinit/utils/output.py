"""Rich console output helpers, mirrored to the nodeinit log."""

import logging
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markup import escape

console = Console()
logger = logging.getLogger("nodeinit")

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(log_file: Path) -> logging.Handler | None:
    """Attach a file handler writing to log_file.

    Returns the handler, or None if the file could not be opened (the run
    then continues with console output only).
    """
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, encoding="utf-8")
    except OSError as e:
        warn(f"Cannot open log file {log_file}: {e}")
        return None

    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    return handler


def teardown_logging(handler: logging.Handler | None) -> None:
    """Detach and close a handler returned by setup_logging."""
    if handler is None:
        return
    logger.removeHandler(handler)
    handler.close()


def _emit(level: int, label: str, msg: str) -> None:
    timestamp = datetime.now().strftime(LOG_DATEFMT)
    console.print(f"[dim]{timestamp}[/dim] {label} {escape(msg)}")
    logger.log(level, msg)


def info(msg: str) -> None:
    """Print an info message."""
    _emit(logging.INFO, "[blue]INFO:[/blue]", msg)


def ok(msg: str) -> None:
    """Print a success message."""
    _emit(SUCCESS, "[green]OK:[/green]", msg)


def warn(msg: str) -> None:
    """Print a warning message."""
    _emit(logging.WARNING, "[yellow]WARN:[/yellow]", msg)


def error(msg: str) -> None:
    """Print an error message."""
    _emit(logging.ERROR, "[red]ERROR:[/red]", msg)


def section(title: str) -> None:
    """Print a section header."""
    console.print(f"\n[bold]=== {escape(title)} ===[/bold]")
