"""Bootstrap configuration: defaults, YAML file, environment, CLI overrides."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from nodeinit.core.errors import ConfigError
from nodeinit.utils.output import info, ok

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_GIT_HOST = "github.com"
DEFAULT_LOG_FILE = Path("/var/log/node-init/node-init.log")
DEFAULT_ENVIRONMENT_FILE = Path("/etc/environment")
DEFAULT_DATA_DIRECTORY = Path("/workspace")


def default_key_path() -> Path:
    """Default private key location."""
    return Path.home() / ".ssh" / "github_key"


@dataclass(frozen=True)
class NodeConfig:
    """Immutable bootstrap configuration, built once at startup."""

    github_username: str = ""
    github_email: str = ""
    github_token: str = field(default="", repr=False)
    force_overwrite: bool = False
    run_extra_tasks: bool = True
    ssh_key_path: Path = field(default_factory=default_key_path)
    data_directory: Path = DEFAULT_DATA_DIRECTORY
    dotfiles_repo_url: str | None = None
    project_repo_url: str | None = None
    api_url: str = DEFAULT_API_URL
    git_host: str = DEFAULT_GIT_HOST
    packages: tuple[str, ...] = ("neovim",)
    log_file: Path = DEFAULT_LOG_FILE
    environment_file: Path = DEFAULT_ENVIRONMENT_FILE
    http_timeout: float = 30.0
    ssh_timeout: int = 10

    @property
    def public_key_path(self) -> Path:
        """Public half of the key pair."""
        return self.ssh_key_path.with_name(self.ssh_key_path.name + ".pub")


# Environment variable -> NodeConfig field
ENV_VARS = {
    "GITHUB_USERNAME": "github_username",
    "GITHUB_EMAIL": "github_email",
    "GITHUB_TOKEN": "github_token",
    "FORCE_OVERWRITE": "force_overwrite",
    "RUN_ADDITIONAL_TASKS": "run_extra_tasks",
    "SSH_KEY_PATH": "ssh_key_path",
    "DATA_DIRECTORY": "data_directory",
    "DOTFILES_REPO_SSH_URL": "dotfiles_repo_url",
    "PROJECT_REPO_SSH_URL": "project_repo_url",
    "NODEINIT_API_URL": "api_url",
    "NODEINIT_GIT_HOST": "git_host",
    "NODEINIT_PACKAGES": "packages",
    "NODEINIT_LOG_FILE": "log_file",
    "NODEINIT_ENVIRONMENT_FILE": "environment_file",
    "NODEINIT_HTTP_TIMEOUT": "http_timeout",
    "NODEINIT_SSH_TIMEOUT": "ssh_timeout",
}

REQUIRED_FIELDS = {
    "github_username": "GITHUB_USERNAME",
    "github_email": "GITHUB_EMAIL",
    "github_token": "GITHUB_TOKEN",
}

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}

_BOOL_FIELDS = {"force_overwrite", "run_extra_tasks"}
_PATH_FIELDS = {"ssh_key_path", "data_directory", "log_file", "environment_file"}
_SCALARS = (str, int, float)


def parse_bool(name: str, value: Any) -> bool:
    """Parse a boolean setting from a string or bool."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigError(f"Invalid boolean for {name}: {value!r}")


def _coerce(name: str, value: Any) -> Any:
    """Convert a raw setting to the type of the NodeConfig field."""
    if name in _BOOL_FIELDS:
        return parse_bool(name, value)
    if name in _PATH_FIELDS:
        if not isinstance(value, (str, Path)) or not str(value):
            raise ConfigError(f"Invalid path for {name}: {value!r}")
        return Path(value).expanduser()
    if name == "packages":
        if isinstance(value, str):
            value = value.split(",")
        if not isinstance(value, (list, tuple)) or not all(isinstance(p, str) for p in value):
            raise ConfigError(f"Invalid package list for {name}: {value!r}")
        return tuple(p.strip() for p in value if p.strip())
    if name == "http_timeout":
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ConfigError(f"Invalid number for {name}: {value!r}") from None
    if name == "ssh_timeout":
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ConfigError(f"Invalid integer for {name}: {value!r}") from None
    if value is not None and (isinstance(value, bool) or not isinstance(value, _SCALARS)):
        raise ConfigError(f"Invalid value for {name}: {value!r}")
    if name in ("dotfiles_repo_url", "project_repo_url"):
        return str(value) if value else None
    return "" if value is None else str(value)


def load_config_file(path: Path) -> dict[str, Any]:
    """Load settings from a YAML file.

    Keys are NodeConfig field names; unknown keys are rejected.
    """
    try:
        data = yaml.safe_load(path.read_text())
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Malformed config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    known = {f.name for f in fields(NodeConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown settings in {path}: {', '.join(unknown)}")
    return data


def load_config(
    config_file: Path | None = None,
    environ: Mapping[str, str] | None = None,
    **overrides: Any,
) -> NodeConfig:
    """Build a NodeConfig.

    Precedence (lowest to highest): defaults, YAML file, environment
    variables, keyword overrides. Overrides set to None are ignored.
    Does not validate required fields; see validate_config.
    """
    environ = os.environ if environ is None else environ

    raw: dict[str, Any] = {}
    if config_file is not None:
        raw.update(load_config_file(config_file))

    for var, name in ENV_VARS.items():
        value = environ.get(var)
        if value is not None and value != "":
            raw[name] = value

    raw.update({k: v for k, v in overrides.items() if v is not None})

    return replace(NodeConfig(), **{k: _coerce(k, v) for k, v in raw.items()})


def validate_config(config: NodeConfig) -> None:
    """Check that identity and token are present.

    Raises:
        ConfigError: If any required value is empty.
    """
    info("Validating configuration")

    missing = [var for name, var in REQUIRED_FIELDS.items() if not getattr(config, name).strip()]
    if missing:
        raise ConfigError(
            f"Missing required configuration: {', '.join(missing)}. "
            "Please set GITHUB_USERNAME, GITHUB_EMAIL, and GITHUB_TOKEN"
        )

    ok("Configuration validated successfully")
