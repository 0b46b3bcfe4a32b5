"""Bootstrap pipeline: runs every stage in order, stopping on the first fatal error."""

from dataclasses import dataclass

import httpx

from nodeinit.core import dependencies, environment, github, keys, probe, tasks
from nodeinit.core.config import NodeConfig, validate_config
from nodeinit.utils.output import info, ok


@dataclass
class BootstrapReport:
    """What a completed run did."""

    key: keys.KeyMaterial
    registration: github.RegistrationResult
    connected: bool


def run_bootstrap(
    config: NodeConfig,
    *,
    write_env_snapshot: bool = True,
    http_client: httpx.Client | None = None,
) -> BootstrapReport:
    """Provision this node.

    Validation and the dependency check run before any side effect.
    Stage errors (subclasses of NodeInitError) propagate unchanged; the
    connectivity probe and a 422 registration never stop the run.
    """
    info("Starting node initialization")
    validate_config(config)
    dependencies.check_dependencies(dependencies.required_commands(config.run_extra_tasks))

    if write_env_snapshot:
        environment.write_environment_snapshot(config.environment_file)
    environment.ensure_data_directory(config.data_directory)

    key = keys.ensure_key(config.ssh_key_path, config.github_email, config.force_overwrite)
    try:
        registration = github.register_key(
            key.public_path,
            config.github_token,
            api_url=config.api_url,
            timeout=config.http_timeout,
            client=http_client,
        )
        connected = probe.probe(
            config.git_host,
            key_path=key.private_path,
            timeout=config.ssh_timeout,
            env=key.agent_env or None,
        )

        tasks.run_extra_tasks(config, config.run_extra_tasks, env=key.agent_env or None)
    finally:
        if key.agent_started:
            keys.stop_agent(key.agent_env)

    ok("Node initialization completed successfully")
    return BootstrapReport(key=key, registration=registration, connected=connected)
