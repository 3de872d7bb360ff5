"""
Docker CLI driver.

This module implements the ContainerDriver interface by invoking the `docker`
command-line client. Listings are requested with custom --format templates and
parsed by the tabular record parser.
"""

import logging
from typing import List, Mapping, Optional

from orchestration.config import Settings
from orchestration.drivers.core.base import ContainerDriver
from orchestration.drivers.core.utils import (
    build_env,
    build_labels,
    memory_limit_bytes,
    resolve_timeout,
    split_volume,
    validate_filters,
)
from orchestration.drivers.docker_cli.parsers import (
    CONTAINER_FORMAT,
    NETWORK_FORMAT,
    STATS_FORMAT,
    format_filters,
    parse_containers,
    parse_networks,
    parse_stats,
)
from orchestration.drivers.docker_cli.runner import CommandResult, CommandRunner
from orchestration.exceptions import BackendError, CommandTimeoutError
from orchestration.models import Container, ExecResult, Filters, Network, RunOptions, Stats

logger = logging.getLogger(__name__)

# Exit code used by timeout(1)
TIMEOUT_EXIT_CODE = 124


def _env_args(variables: Optional[Mapping[str, str]]) -> List[str]:
    args: List[str] = []
    for key, value in build_env(variables).items():
        args.extend(["--env", f"{key}={value}"])
    return args


class DockerCLIDriver(ContainerDriver):
    """
    Docker implementation of the ContainerDriver interface over the CLI.

    Requires the docker client to be installed and allowed to reach the
    engine.

    Configuration:
        - Set ORCHESTRATION_DRIVER=docker-cli
        - ORCHESTRATION_DOCKER_BINARY overrides the executable
    """

    name = "docker-cli"

    def __init__(self, settings: Settings, runner: Optional[CommandRunner] = None) -> None:
        super().__init__(settings)
        self.runner = runner or CommandRunner()

    def _docker(
        self,
        *args: str,
        input: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        """
        Run a docker subcommand and check its exit code.

        Raises:
            CommandTimeoutError: On a timeout or exit code 124
            BackendError: On any other non-zero exit code
        """
        result = self.runner.run(
            [self.settings.docker_binary, *args], input=input, timeout=timeout
        )
        if result.exit_code == TIMEOUT_EXIT_CODE:
            raise CommandTimeoutError(timeout)
        if result.exit_code != 0:
            logger.error("docker %s exited with %d: %s", args[0], result.exit_code, result.stderr.strip())
            raise BackendError(result.stderr.strip(), exit_code=result.exit_code)
        return result

    def login(self) -> None:
        self._docker(
            "login",
            "--username",
            self.settings.username or "",
            "--password-stdin",
            input=self.settings.password or "",
        )
        logger.info("Authenticated against registry as %s", self.settings.username)

    def pull(self, image: str) -> bool:
        self._docker("pull", image)
        return True

    def list(self, filters: Filters = None) -> List[Container]:
        validated = validate_filters(filters)
        result = self._docker(
            "ps", "--all", "--no-trunc", "--format", CONTAINER_FORMAT, *format_filters(validated)
        )
        return parse_containers(result.stdout)

    def _run_args(self, image: str, name: str, options: RunOptions) -> List[str]:
        args = ["run", "-d"]
        if options.remove:
            args.append("--rm")
        if options.network:
            args.append(f"--network={options.network}")
        if options.entrypoint:
            args.append(f"--entrypoint={options.entrypoint}")
        if self.settings.cpus:
            args.append(f"--cpus={self.settings.cpus}")
        if self.settings.memory:
            args.append(f"--memory={memory_limit_bytes(self.settings.memory)}b")
        if self.settings.swap:
            args.append(f"--memory-swap={memory_limit_bytes(self.settings.swap)}b")
        args.append(f"--name={name}")

        for key, value in build_labels(self.settings, options.labels).items():
            args.extend(["--label", f"{key}={value}"])
        if options.mount_folder:
            args.extend(["--volume", f"{options.mount_folder}:/tmp:rw"])
        for volume in options.volumes:
            args.extend(["--volume", ":".join(split_volume(volume))])
        if options.workdir:
            args.extend(["--workdir", options.workdir])
        if options.hostname:
            args.extend(["--hostname", options.hostname])
        args.extend(_env_args(options.vars))

        args.append(image)
        args.extend(options.command)
        return args

    def run(self, image: str, name: str, options: Optional[RunOptions] = None) -> str:
        args = self._run_args(image, name, options or RunOptions())
        result = self._docker(*args, timeout=self.settings.run_timeout)

        # Pull progress may precede the id when the image was missing
        lines = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        if not lines:
            raise BackendError(f"docker run returned no container id: {result.stderr.strip()}")
        container_id = lines[-1]
        logger.debug("Started container %s (%s) from %s", name, container_id, image)
        return container_id

    def execute(
        self,
        name: str,
        command: List[str],
        vars: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = -1,
    ) -> ExecResult:
        result = self._docker(
            "exec", *_env_args(vars), name, *command, timeout=resolve_timeout(timeout)
        )
        return ExecResult(result.stdout, result.stderr)

    def remove(self, name: str, force: bool = False) -> bool:
        args = ["rm"]
        if force:
            args.append("--force")
        args.append(name)
        result = self._docker(*args)
        if name not in result.stdout:
            raise BackendError(result.stderr.strip() or f"Container {name} was not removed")
        return True

    def stats(self, container: Optional[str] = None, filters: Filters = None) -> List[Stats]:
        # docker stats cannot filter, so resolve the containers first
        if container is None:
            container_ids = [c.id for c in self.list(filters)]
        else:
            container_ids = [container]

        if not container_ids:
            return []

        result = self._docker(
            "stats", "--no-trunc", "--no-stream", "--format", STATS_FORMAT, *container_ids
        )
        return parse_stats(result.stdout)

    def create_network(self, name: str, internal: bool = False) -> bool:
        args = ["network", "create"]
        if internal:
            args.append("--internal")
        args.append(name)
        self._docker(*args)
        return True

    def remove_network(self, name: str) -> bool:
        self._docker("network", "rm", name)
        return True

    def connect_network(self, container: str, network: str) -> bool:
        self._docker("network", "connect", network, container)
        return True

    def disconnect_network(self, container: str, network: str, force: bool = False) -> bool:
        args = ["network", "disconnect"]
        if force:
            args.append("--force")
        args.extend([network, container])
        self._docker(*args)
        return True

    def list_networks(self) -> List[Network]:
        result = self._docker("network", "ls", "--no-trunc", "--format", NETWORK_FORMAT)
        return parse_networks(result.stdout)
