"""SSH client helpers: ~/.ssh layout, known_hosts, non-interactive sessions."""

from pathlib import Path

from nodeinit.utils.process import CommandResult, run

# Default timeout buffer added to SSH ConnectTimeout
SSH_TIMEOUT_BUFFER = 5

KEYSCAN_TYPES = "rsa,ecdsa,ed25519"


def get_ssh_dir() -> Path:
    """Get the user's SSH directory."""
    return Path.home() / ".ssh"


def ensure_ssh_dir(path: Path | None = None) -> Path:
    """Create an SSH-style directory with mode 0700 if missing."""
    ssh_dir = path or get_ssh_dir()
    if not ssh_dir.exists():
        ssh_dir.mkdir(mode=0o700, parents=True)
    return ssh_dir


def get_known_hosts_path() -> Path:
    """Get known_hosts file path."""
    return get_ssh_dir() / "known_hosts"


def identity_options(key_path: Path | None) -> list[str]:
    """SSH options that pin authentication to a single key."""
    if key_path is None:
        return []
    return ["-i", str(key_path), "-o", "IdentitiesOnly=yes"]


def git_ssh_command(key_path: Path | None) -> str:
    """Value for GIT_SSH_COMMAND so git uses the node key."""
    return " ".join(["ssh", "-o", "BatchMode=yes"] + identity_options(key_path))


def _entry_host(pattern: str) -> str:
    """Host part of a known_hosts pattern: "[host]:port" -> "host"."""
    if pattern.startswith("[") and "]" in pattern:
        return pattern[1 : pattern.index("]")]
    return pattern


def is_known_host(host: str, known_hosts: Path | None = None) -> bool:
    """Check if host already has a host key entry in known_hosts.

    Only plain (unhashed) entries are recognised. @cert-authority and
    @revoked lines do not count.

    Raises:
        OSError, UnicodeDecodeError: If the file can't be read.
    """
    known_hosts = known_hosts or get_known_hosts_path()
    if not known_hosts.exists():
        return False

    for line in known_hosts.read_text().splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith(("#", "@")):
            continue
        hosts = [_entry_host(p) for p in stripped.split()[0].split(",")]
        if host in hosts:
            return True
    return False


def add_known_host(host: str, known_hosts: Path | None = None, timeout: int = 10) -> bool:
    """Append host's public keys (from ssh-keyscan) to known_hosts.

    Idempotent: returns True without scanning if the host is already listed.

    Returns:
        True if host is present in known_hosts afterwards; False if the
        scan failed or known_hosts can't be read or written.
    """
    known_hosts = known_hosts or get_known_hosts_path()
    try:
        if is_known_host(host, known_hosts):
            return True
    except (OSError, UnicodeDecodeError):
        return False

    result = run(["ssh-keyscan", "-T", str(timeout), "-t", KEYSCAN_TYPES, host],
                 timeout=timeout + SSH_TIMEOUT_BUFFER)
    entries = [line for line in result.stdout.splitlines() if line and not line.startswith("#")]
    if not entries:
        return False

    try:
        ensure_ssh_dir(known_hosts.parent)
        with known_hosts.open("a") as f:
            f.write("\n".join(entries) + "\n")
        known_hosts.chmod(0o600)
    except OSError:
        return False
    return True


def ssh_greeting(
    host: str,
    user: str = "git",
    key_path: Path | None = None,
    timeout: int = 10,
    env: dict[str, str] | None = None,
) -> CommandResult:
    """Open an authentication-only session (ssh -T) and capture the greeting.

    Args:
        host: Remote hostname
        user: Remote user
        key_path: Private key to authenticate with
        timeout: SSH connection timeout in seconds
        env: Extra environment (e.g. ssh-agent variables)

    Returns:
        CommandResult; hosts like GitHub exit non-zero even on success,
        so callers should inspect the output rather than the return code.
    """
    cmd = (
        ["ssh", "-o", "BatchMode=yes", "-o", f"ConnectTimeout={timeout}"]
        + identity_options(key_path)
        + ["-T", f"{user}@{host}"]
    )
    return run(cmd, timeout=timeout + SSH_TIMEOUT_BUFFER, env=env)
