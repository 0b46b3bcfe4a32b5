"""Error types raised by bootstrap stages."""


class NodeInitError(Exception):
    """Base class for fatal bootstrap errors."""

    exit_code = 1


class ConfigError(NodeInitError):
    """Required configuration is missing or malformed."""


class DependencyError(NodeInitError):
    """One or more required executables are not on PATH."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(f"Missing dependencies: {', '.join(self.missing)}")


class KeyGenError(NodeInitError):
    """SSH key generation failed."""


class KeyReadError(NodeInitError):
    """Public key file could not be read."""


class AuthRejected(NodeInitError):
    """The API rejected the access token (HTTP 401)."""


class RegistrationError(NodeInitError):
    """Key registration failed for a reason other than bad credentials."""


class TaskError(NodeInitError):
    """An extra provisioning task failed."""


class ProvisionError(NodeInitError):
    """Node preparation (environment snapshot, data directory) failed."""
