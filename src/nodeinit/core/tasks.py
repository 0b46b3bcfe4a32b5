"""Extra node setup tasks: packages, dotfiles, project checkout."""

import shutil
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from nodeinit.core.config import NodeConfig
from nodeinit.core.errors import TaskError
from nodeinit.utils.output import info, ok, warn
from nodeinit.utils.process import CommandError, run, run_sudo
from nodeinit.utils.ssh import git_ssh_command


@dataclass(frozen=True)
class TaskPaths:
    """Filesystem locations used by the tasks."""

    home: Path

    @property
    def config_dir(self) -> Path:
        return self.home / ".config"

    @property
    def dotfiles_dir(self) -> Path:
        return self.config_dir / "dotfiles"

    @property
    def nvim_dir(self) -> Path:
        return self.config_dir / "nvim"


def repo_dir_name(url: str) -> str:
    """Directory name git clone would pick for url.

    >>> repo_dir_name("git@github.com:me/project.git")
    'project'
    """
    name = url.rstrip("/").replace(":", "/").rsplit("/", 1)[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    return name


def install_packages(packages: tuple[str, ...]) -> None:
    """Install system packages with apt-get."""
    if not packages:
        info("No packages to install")
        return

    info(f"Installing {', '.join(packages)}")
    apt = ["env", "DEBIAN_FRONTEND=noninteractive", "apt-get"]
    try:
        run_sudo(apt + ["update"], check=True)
        run_sudo(apt + ["install", "-y"] + list(packages), check=True)
    except CommandError as e:
        raise TaskError(f"Package installation failed: {e}") from e
    ok("Packages installed")


def clone_repo(url: str | None, target: Path, env: dict[str, str] | None = None) -> bool:
    """Clone url into target unless target already exists.

    Returns:
        True if a clone was performed.
    """
    if target.exists():
        info(f"{target} already exists, skipping clone")
        return False
    if not url:
        warn(f"No repository URL configured for {target}, skipping clone")
        return False

    target.parent.mkdir(parents=True, exist_ok=True)
    try:
        run(["git", "clone", url, str(target)], check=True, env=env)
    except CommandError as e:
        raise TaskError(f"git clone {url} failed: {e}") from e
    ok(f"Cloned {url} into {target}")
    return True


def install_nvim_config(paths: TaskPaths) -> bool:
    """Move the nvim directory out of the dotfiles checkout.

    Returns:
        True if the directory was moved.
    """
    if paths.nvim_dir.exists():
        info(f"{paths.nvim_dir} already exists")
        return False

    source = paths.dotfiles_dir / "nvim"
    if not source.is_dir():
        raise TaskError(f"No nvim directory in {paths.dotfiles_dir}")
    try:
        shutil.move(str(source), str(paths.nvim_dir))
    except OSError as e:
        raise TaskError(f"Cannot move {source} to {paths.nvim_dir}: {e}") from e
    ok(f"Installed nvim config at {paths.nvim_dir}")
    return True


def build_tasks(
    config: NodeConfig,
    paths: TaskPaths,
    env: dict[str, str] | None = None,
) -> list[tuple[str, Callable[[], object]]]:
    """The ordered task list for this node."""
    git_env = dict(env or {})
    git_env["GIT_SSH_COMMAND"] = git_ssh_command(config.ssh_key_path)

    project_url = config.project_repo_url
    project_dir = paths.home / repo_dir_name(project_url) if project_url else None

    tasks: list[tuple[str, Callable[[], object]]] = [
        ("Installing packages", lambda: install_packages(config.packages)),
        ("Setting up neovim config",
         lambda: clone_repo(config.dotfiles_repo_url, paths.dotfiles_dir, git_env)),
    ]
    # nvim config comes out of the dotfiles checkout
    if config.dotfiles_repo_url or paths.dotfiles_dir.exists():
        tasks.append(("Installing nvim config", lambda: install_nvim_config(paths)))
    if project_dir is not None:
        tasks.append(("Cloning project repository",
                      lambda: clone_repo(project_url, project_dir, git_env)))
    else:
        tasks.append(("Cloning project repository",
                      lambda: warn("No project repository URL configured, skipping")))
    return tasks


def run_extra_tasks(
    config: NodeConfig,
    enabled: bool,
    *,
    home: Path | None = None,
    env: dict[str, str] | None = None,
) -> None:
    """Run the node's extra setup tasks in order.

    Each clone is skipped when its target directory exists, so a re-run
    after a partial failure picks up where it stopped.

    Raises:
        TaskError: On the first failing task.
    """
    if not enabled:
        info("Skipping additional tasks (RUN_ADDITIONAL_TASKS=false)")
        return

    info("Running additional initialization tasks")
    paths = TaskPaths(home=home or Path.home())
    try:
        paths.config_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise TaskError(f"Cannot create {paths.config_dir}: {e}") from e

    for description, task in build_tasks(config, paths, env):
        info(description)
        task()

    ok("Additional tasks completed")
