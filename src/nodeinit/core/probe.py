"""Best-effort SSH connectivity check against the Git host."""

from pathlib import Path

from nodeinit.utils.output import info, ok, warn
from nodeinit.utils.ssh import add_known_host, ssh_greeting

SUCCESS_MARKER = "successfully authenticated"


def greeting_indicates_success(output: str) -> bool:
    """Check an ssh -T greeting for the host's authentication banner."""
    return SUCCESS_MARKER in output.lower()


def probe(
    host: str,
    *,
    key_path: Path | None = None,
    known_hosts: Path | None = None,
    timeout: int = 10,
    env: dict[str, str] | None = None,
) -> bool:
    """Test SSH authentication to host.

    Advisory only: never raises, and a False result is expected right
    after a key upload while the host propagates it.
    """
    info(f"Testing connection to {host}")

    if not add_known_host(host, known_hosts, timeout=timeout):
        warn(f"Could not fetch host keys for {host}")

    result = ssh_greeting(host, key_path=key_path, timeout=timeout, env=env)
    if greeting_indicates_success(result.output):
        ok(f"Connection to {host} successful")
        return True

    warn(f"Connection to {host} might have issues. This is normal if the key was just added.")
    warn(f"{host} may need a few minutes to process your new SSH key.")
    return False
