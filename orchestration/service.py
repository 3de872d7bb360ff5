"""
Orchestration facade.

Callers use this class only; it delegates every operation to the driver that
was configured, so switching between the engine API and the CLI needs no
change in calling code.
"""

import logging
from typing import List, Mapping, Optional

from orchestration.config import Settings, load_settings
from orchestration.drivers.core.base import ContainerDriver
from orchestration.drivers.core.factory import create_driver
from orchestration.models import Container, ExecResult, Filters, Network, RunOptions, Stats

logger = logging.getLogger(__name__)


class Orchestration:
    """
    Unified container management entry point.

    Args:
        driver: Driver to delegate to. When omitted, one is created from
            `settings` (or from the environment when settings are omitted too).
        settings: Settings used to build the driver

    Example::

        with Orchestration(settings=Settings(driver="docker-api")) as orchestration:
            orchestration.pull("alpine:3.19")
            container_id = orchestration.run(
                "alpine:3.19", "worker", RunOptions(command=["sleep", "60"])
            )
            stdout, stderr = orchestration.execute("worker", ["echo", "hello"])
    """

    def __init__(
        self,
        driver: Optional[ContainerDriver] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        if driver is None:
            driver = create_driver(settings or load_settings())
            driver.initialize()
        self.driver = driver

    @property
    def settings(self) -> Settings:
        return self.driver.settings

    def pull(self, image: str) -> bool:
        logger.debug("Pulling image %s", image)
        return self.driver.pull(image)

    def list(self, filters: Filters = None) -> List[Container]:
        return self.driver.list(filters)

    def run(self, image: str, name: str, options: Optional[RunOptions] = None) -> str:
        logger.debug("Running container %s from %s", name, image)
        return self.driver.run(image, name, options)

    def execute(
        self,
        name: str,
        command: List[str],
        vars: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = -1,
    ) -> ExecResult:
        logger.debug("Executing in %s: %s", name, command[:1])
        return self.driver.execute(name, command, vars=vars, timeout=timeout)

    def execute_with_stdout(
        self,
        name: str,
        command: List[str],
        vars: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = -1,
    ) -> str:
        return self.driver.execute_with_stdout(name, command, vars=vars, timeout=timeout)

    def remove(self, name: str, force: bool = False) -> bool:
        logger.debug("Removing container %s (force=%s)", name, force)
        return self.driver.remove(name, force)

    def stats(self, container: Optional[str] = None, filters: Filters = None) -> List[Stats]:
        return self.driver.stats(container, filters)

    def create_network(self, name: str, internal: bool = False) -> bool:
        return self.driver.create_network(name, internal)

    def remove_network(self, name: str) -> bool:
        return self.driver.remove_network(name)

    def connect_network(self, container: str, network: str) -> bool:
        return self.driver.connect_network(container, network)

    def disconnect_network(self, container: str, network: str, force: bool = False) -> bool:
        return self.driver.disconnect_network(container, network, force)

    def list_networks(self) -> List[Network]:
        return self.driver.list_networks()

    def close(self) -> None:
        self.driver.close()

    def __enter__(self) -> "Orchestration":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
