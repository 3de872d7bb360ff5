"""
Container driver abstraction layer.

This module provides a pluggable driver architecture for container backends,
allowing the same operations to run over the Docker engine API or the Docker
command-line client.
"""

from orchestration.drivers.core.base import ContainerDriver
from orchestration.drivers.core.factory import available_drivers, create_driver

__all__ = [
    "ContainerDriver",
    "available_drivers",
    "create_driver",
]
