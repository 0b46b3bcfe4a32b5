"""SSH key pair management."""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from nodeinit.core.errors import KeyGenError, KeyReadError
from nodeinit.utils.output import info, ok, warn
from nodeinit.utils.process import run
from nodeinit.utils.ssh import ensure_ssh_dir

# ssh-agent -s prints lines like: SSH_AUTH_SOCK=/tmp/ssh-XXX/agent.123; export SSH_AUTH_SOCK;
AGENT_VAR_PATTERN = re.compile(r"^(SSH_AUTH_SOCK|SSH_AGENT_PID)=([^;]+);", re.MULTILINE)


@dataclass
class KeyMaterial:
    """A key pair on disk."""

    private_path: Path
    public_path: Path
    created: bool = False
    agent_env: dict[str, str] = field(default_factory=dict)
    agent_started: bool = False


def public_key_path(path: Path) -> Path:
    """Path of the public key for a private key path."""
    return path.with_name(path.name + ".pub")


def read_public_key(path: Path) -> str:
    """Read a public key file.

    Raises:
        KeyReadError: If the file is missing or unreadable.
    """
    if not path.is_file():
        raise KeyReadError(f"Public key file not found at {path}")
    try:
        return path.read_text().strip()
    except OSError as e:
        raise KeyReadError(f"Cannot read public key {path}: {e}") from e


def key_body(public_key: str) -> str:
    """Key type and base64 blob, without the comment."""
    return " ".join(public_key.split()[:2])


def fingerprint(path: Path) -> str | None:
    """SHA256 fingerprint of a key file, or None if ssh-keygen can't read it."""
    result = run(["ssh-keygen", "-lf", str(path)])
    if not result.success:
        return None
    parts = result.stdout.split()
    return parts[1] if len(parts) > 1 else None


def parse_agent_env(output: str) -> dict[str, str]:
    """Extract SSH_AUTH_SOCK / SSH_AGENT_PID from ssh-agent -s output."""
    return dict(AGENT_VAR_PATTERN.findall(output))


def start_agent() -> dict[str, str]:
    """Start an ssh-agent and return its environment (empty on failure)."""
    result = run(["ssh-agent", "-s"], timeout=10)
    if not result.success:
        return {}
    return parse_agent_env(result.stdout)


def active_agent_env() -> dict[str, str]:
    """Environment of the agent this process already talks to, if any."""
    sock = os.environ.get("SSH_AUTH_SOCK")
    return {"SSH_AUTH_SOCK": sock} if sock else {}


def stop_agent(agent_env: dict[str, str]) -> bool:
    """Kill an agent started by start_agent."""
    if "SSH_AGENT_PID" not in agent_env:
        return False
    result = run(["ssh-agent", "-k"], timeout=10, env=agent_env)
    return result.success


def add_to_agent(path: Path, agent_env: dict[str, str]) -> bool:
    """Load a private key into the agent described by agent_env."""
    if "SSH_AUTH_SOCK" not in agent_env:
        return False
    result = run(["ssh-add", str(path)], timeout=10, env=agent_env)
    return result.success


def generate_key(path: Path, comment: str) -> None:
    """Generate an Ed25519 key pair with no passphrase.

    Raises:
        KeyGenError: If ssh-keygen fails.
    """
    result = run(
        ["ssh-keygen", "-q", "-t", "ed25519", "-N", "", "-C", comment, "-f", str(path)],
        timeout=60,
    )
    if not result.success or not path.exists():
        raise KeyGenError(f"ssh-keygen failed for {path}: {result.stderr.strip()}")
    path.chmod(0o600)


def ensure_key(path: Path, comment: str, force_overwrite: bool = False) -> KeyMaterial:
    """Make sure a key pair exists at path.

    Idempotent: an existing private key is reused unless force_overwrite
    is set. A newly generated key is loaded into the running ssh-agent,
    or into a new one (agent_started=True) when none is active; the caller
    stops the latter with stop_agent.

    Args:
        path: Private key path; the public key is path + ".pub"
        comment: Key comment (the identity email)
        force_overwrite: Regenerate even if a key exists

    Returns:
        The key material on disk.

    Raises:
        KeyGenError: If the directory can't be created or generation fails.
    """
    info(f"Setting up SSH key at {path}")
    pub_path = public_key_path(path)

    try:
        ensure_ssh_dir()
        ensure_ssh_dir(path.parent)
    except OSError as e:
        raise KeyGenError(f"Cannot create key directory {path.parent}: {e}") from e

    if path.exists():
        if not force_overwrite:
            info(f"Using existing SSH key at {path}")
            return KeyMaterial(private_path=path, public_path=pub_path)
        warn(f"Overwriting existing SSH key at {path}")

    info("Generating a new SSH key")
    # Generate beside the target so an existing pair survives a failed run
    tmp_path = path.with_name(path.name + ".new")
    tmp_pub = public_key_path(tmp_path)
    try:
        tmp_path.unlink(missing_ok=True)
        tmp_pub.unlink(missing_ok=True)
    except OSError as e:
        raise KeyGenError(f"Cannot clear {tmp_path}: {e}") from e

    generate_key(tmp_path, comment)
    try:
        os.replace(tmp_pub, pub_path)
        os.replace(tmp_path, path)
    except OSError as e:
        raise KeyGenError(f"Cannot move new key into place at {path}: {e}") from e

    agent_env = active_agent_env()
    agent_started = False
    if not agent_env:
        agent_env = start_agent()
        agent_started = "SSH_AGENT_PID" in agent_env
    if add_to_agent(path, agent_env):
        info("Key added to ssh-agent")
    else:
        warn("Could not add key to ssh-agent; connections will use the key file directly")

    ok("SSH key generated successfully")
    return KeyMaterial(
        private_path=path,
        public_path=pub_path,
        created=True,
        agent_env=agent_env,
        agent_started=agent_started,
    )
