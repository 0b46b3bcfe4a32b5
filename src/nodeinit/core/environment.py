"""Host facts and node preparation (environment snapshot, data directory)."""

import os
import socket
from collections.abc import Mapping
from pathlib import Path

from nodeinit.core.errors import ProvisionError
from nodeinit.utils.output import info, ok, warn


def get_hostname() -> str:
    """Get the current hostname."""
    return socket.gethostname()


def format_environment(environ: Mapping[str, str]) -> str:
    """Render an environment as KEY=VALUE lines.

    Values containing newlines are dropped since the file format is
    line based.
    """
    lines = []
    for key, value in environ.items():
        if "\n" in value or "\n" in key:
            continue
        lines.append(f"{key}={value}")
    return "\n".join(lines) + "\n" if lines else ""


def write_environment_snapshot(path: Path, environ: Mapping[str, str] | None = None) -> None:
    """Persist the process environment so later login shells see it.

    Raises:
        ProvisionError: If the file cannot be written.
    """
    environ = os.environ if environ is None else environ
    info(f"Writing environment snapshot to {path}")

    skipped = sum(1 for k, v in environ.items() if "\n" in v or "\n" in k)
    try:
        path.write_text(format_environment(environ))
    except OSError as e:
        raise ProvisionError(f"Cannot write environment snapshot to {path}: {e}") from e

    if skipped:
        warn(f"Skipped {skipped} multi-line variable(s) in environment snapshot")
    ok("Environment snapshot written")


def ensure_data_directory(path: Path) -> Path:
    """Create the data directory if it does not exist.

    Raises:
        ProvisionError: If the directory cannot be created.
    """
    if path.is_dir():
        info(f"Data directory {path} already exists")
        return path

    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ProvisionError(f"Cannot create data directory {path}: {e}") from e
    ok(f"Created data directory {path}")
    return path
