"""
Driver factory for creating container backend drivers.

This module maps the configured driver name onto a driver class and builds
the driver with the immutable settings it will use for its whole life.
"""

import logging
from typing import Callable, Dict, Optional

from orchestration.config import Settings
from orchestration.drivers.core.base import ContainerDriver
from orchestration.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Driver registry mapping driver type to driver class factory
_DRIVER_REGISTRY: Dict[str, Callable[[Settings], ContainerDriver]] = {}


def _get_driver_registry() -> Dict[str, Callable[[Settings], ContainerDriver]]:
    """
    Lazily populate and return the driver registry.

    Uses lazy imports to avoid circular dependencies between the drivers and
    this module.
    """
    if not _DRIVER_REGISTRY:
        from orchestration.drivers.docker_api.driver import DockerAPIDriver
        from orchestration.drivers.docker_cli.driver import DockerCLIDriver

        _DRIVER_REGISTRY.update(
            {
                DockerAPIDriver.name: DockerAPIDriver,
                DockerCLIDriver.name: DockerCLIDriver,
            }
        )
    return _DRIVER_REGISTRY


def available_drivers() -> list:
    return sorted(_get_driver_registry())


def create_driver(settings: Settings, driver_type: Optional[str] = None) -> ContainerDriver:
    """
    Create a container driver instance.

    Args:
        settings: Settings handed to the driver
        driver_type: One of:
            - "docker-api": Docker engine API over its Unix socket
            - "docker-cli": Docker command-line client
            Defaults to settings.driver.

    Returns:
        A ContainerDriver instance

    Raises:
        ConfigurationError: If the driver type is not supported
    """
    driver_type = driver_type or settings.driver
    registry = _get_driver_registry()

    if driver_type not in registry:
        raise ConfigurationError(
            f"Unknown driver type: {driver_type}. "
            "Supported types: " + ", ".join(available_drivers())
        )

    driver = registry[driver_type](settings)
    logger.info("Container driver created: %s", driver_type)
    return driver
