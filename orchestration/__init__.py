"""
Container orchestration over interchangeable Docker backends.

The Orchestration facade exposes one set of container lifecycle operations
backed either by the Docker engine API or by the Docker CLI.
"""

from orchestration.config import Settings
from orchestration.exceptions import (
    BackendError,
    CommandTimeoutError,
    ConfigurationError,
    OrchestrationError,
    ProtocolError,
    ValidationError,
)
from orchestration.models import Container, ExecResult, IOStats, Network, RunOptions, Stats
from orchestration.service import Orchestration

__all__ = [
    "Orchestration",
    "Settings",
    "Container",
    "Network",
    "Stats",
    "IOStats",
    "RunOptions",
    "ExecResult",
    "OrchestrationError",
    "BackendError",
    "CommandTimeoutError",
    "ConfigurationError",
    "ProtocolError",
    "ValidationError",
]
