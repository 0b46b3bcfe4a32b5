"""Subprocess execution helpers."""

import os
import shutil
import subprocess
from dataclasses import dataclass


@dataclass
class CommandResult:
    """Result of a command execution."""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        """Check if command succeeded."""
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined stdout and stderr."""
        return self.stdout + self.stderr


class CommandError(RuntimeError):
    """Raised by run(check=True) when a command fails."""

    def __init__(self, cmd: list[str], result: CommandResult):
        self.cmd = cmd
        self.result = result
        detail = result.stderr.strip() or result.stdout.strip()
        super().__init__(f"{' '.join(cmd)} exited with {result.returncode}: {detail}")


def run(
    cmd: list[str],
    *,
    check: bool = False,
    capture: bool = True,
    timeout: int | None = None,
    env: dict[str, str] | None = None,
) -> CommandResult:
    """Run a command and return the result.

    With check=True a non-zero exit (including timeouts and missing
    executables) raises CommandError.
    """
    # Merge provided env with current environment
    run_env = None
    if env:
        run_env = os.environ.copy()
        run_env.update(env)

    try:
        proc = subprocess.run(
            cmd,
            capture_output=capture,
            text=True,
            timeout=timeout,
            env=run_env,
        )
        result = CommandResult(
            returncode=proc.returncode,
            stdout=proc.stdout if capture else "",
            stderr=proc.stderr if capture else "",
        )
    except subprocess.TimeoutExpired:
        result = CommandResult(returncode=-1, stdout="", stderr="Command timed out")
    except FileNotFoundError:
        result = CommandResult(returncode=-1, stdout="", stderr=f"Command not found: {cmd[0]}")

    if check and not result.success:
        raise CommandError(cmd, result)
    return result


def is_root() -> bool:
    """Check if running as root."""
    return hasattr(os, "geteuid") and os.geteuid() == 0


def run_sudo(cmd: list[str], **kwargs) -> CommandResult:
    """Run a command with sudo, unless already root."""
    if is_root():
        return run(cmd, **kwargs)
    return run(["sudo"] + cmd, **kwargs)


def command_exists(cmd: str) -> bool:
    """Check if a command exists in PATH."""
    return shutil.which(cmd) is not None
