"""Required executable checks."""

from collections.abc import Iterable

from nodeinit.core.errors import DependencyError
from nodeinit.utils.output import error, info, ok
from nodeinit.utils.process import command_exists

# Executables invoked by key management, connectivity probe and registration
REQUIRED_COMMANDS = ("ssh-keygen", "ssh-agent", "ssh-add", "ssh-keyscan", "ssh")

# Additionally needed when extra tasks run
TASK_COMMANDS = ("git",)


def required_commands(run_extra_tasks: bool) -> list[str]:
    """List the executables a bootstrap run needs."""
    commands = list(REQUIRED_COMMANDS)
    if run_extra_tasks:
        commands.extend(TASK_COMMANDS)
    return commands


def find_missing(commands: Iterable[str]) -> list[str]:
    """Return every command not resolvable on PATH, in input order."""
    return [cmd for cmd in commands if not command_exists(cmd)]


def check_dependencies(commands: Iterable[str]) -> None:
    """Verify all commands exist.

    Reports every missing tool in one pass rather than stopping at the first.

    Raises:
        DependencyError: Listing all missing commands.
    """
    info("Checking dependencies")

    missing = find_missing(commands)
    for cmd in missing:
        error(f"Missing dependency: {cmd}")
    if missing:
        raise DependencyError(missing)

    ok("All dependencies are installed")
