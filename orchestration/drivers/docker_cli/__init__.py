"""Docker CLI driver."""

from orchestration.drivers.docker_cli.driver import DockerCLIDriver
from orchestration.drivers.docker_cli.runner import CommandRunner

__all__ = [
    "DockerCLIDriver",
    "CommandRunner",
]
