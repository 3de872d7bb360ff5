"""Core driver abstractions and factory utilities."""

from orchestration.drivers.core.base import ContainerDriver
from orchestration.drivers.core.factory import available_drivers, create_driver
from orchestration.drivers.core.utils import (
    build_env,
    build_labels,
    sanitize_env_key,
    validate_filters,
)

__all__ = [
    "ContainerDriver",
    "available_drivers",
    "create_driver",
    "build_env",
    "build_labels",
    "sanitize_env_key",
    "validate_filters",
]
