"""Main CLI application."""

from pathlib import Path

import typer

from nodeinit import __version__
from nodeinit.core import dependencies
from nodeinit.core.config import NodeConfig, load_config, validate_config
from nodeinit.core.errors import NodeInitError
from nodeinit.core.pipeline import run_bootstrap
from nodeinit.utils.output import error, ok, section, setup_logging, teardown_logging

app = typer.Typer(
    name="nodeinit",
    help="Bootstrap a fresh node: SSH key, GitHub registration, environment setup",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"nodeinit {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Bootstrap a fresh node: SSH key, GitHub registration, environment setup."""
    pass


def _load(config_file: Path | None, **overrides) -> NodeConfig:
    try:
        return load_config(config_file, **overrides)
    except NodeInitError as e:
        error(str(e))
        raise typer.Exit(e.exit_code) from None


@app.command()
def run(
    config_file: Path | None = typer.Option(
        None, "--config", "-c", help="YAML settings file", exists=True, dir_okay=False
    ),
    force_overwrite: bool = typer.Option(
        False, "--force-overwrite", help="Regenerate the SSH key even if one exists"
    ),
    no_tasks: bool = typer.Option(
        False, "--no-tasks", help="Skip extra setup tasks (packages, dotfiles, project)"
    ),
    key_path: Path | None = typer.Option(None, "--key-path", "-k", help="Private key path"),
    log_file: Path | None = typer.Option(None, "--log-file", help="Log file path"),
    env_snapshot: bool = typer.Option(
        True, "--env-snapshot/--no-env-snapshot", help="Write the environment to the system file"
    ),
) -> None:
    """Run the full node bootstrap.

    Safe to re-run: existing keys, a key already on GitHub, and existing
    checkouts are all reused.
    """
    config = _load(
        config_file,
        force_overwrite=True if force_overwrite else None,
        run_extra_tasks=False if no_tasks else None,
        ssh_key_path=key_path,
        log_file=log_file,
    )

    handler = setup_logging(config.log_file)
    try:
        section(f"Node Initialization v{__version__}")
        run_bootstrap(config, write_env_snapshot=env_snapshot)
    except NodeInitError as e:
        error(f"Node initialization failed: {e}")
        raise typer.Exit(e.exit_code) from None
    finally:
        teardown_logging(handler)


@app.command()
def check(
    config_file: Path | None = typer.Option(
        None, "--config", "-c", help="YAML settings file", exists=True, dir_okay=False
    ),
) -> None:
    """Validate configuration and dependencies without changing anything."""
    config = _load(config_file)

    section("Preflight Check")
    try:
        validate_config(config)
        dependencies.check_dependencies(dependencies.required_commands(config.run_extra_tasks))
    except NodeInitError as e:
        error(str(e))
        raise typer.Exit(e.exit_code) from None

    ok("Ready to bootstrap")


if __name__ == "__main__":
    app()
