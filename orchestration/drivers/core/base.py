"""
Abstract base class for container drivers.

This module defines the interface that all container drivers must implement,
enabling the same orchestration calls to run against the Docker engine API or
the Docker command-line client.
"""

from abc import ABC, abstractmethod
from typing import List, Mapping, Optional

from orchestration.config import Settings
from orchestration.models import Container, ExecResult, Filters, Network, RunOptions, Stats


class ContainerDriver(ABC):
    """
    Abstract base class for container backend drivers.

    Implementations receive an immutable Settings value at construction and
    never reassign it. Every method is a single blocking round trip to the
    backend.
    """

    #: Name the driver is registered under in the factory
    name: str = ""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def initialize(self) -> None:
        """
        Prepare the driver for use.

        The default implementation authenticates against the registry when
        credentials are configured.
        """
        if self.settings.has_credentials:
            self.login()

    def close(self) -> None:
        """Release resources held by the driver."""

    @abstractmethod
    def login(self) -> None:
        """
        Authenticate against the registry with the configured credentials.

        Raises:
            BackendError: If the backend rejects the credentials
        """

    @abstractmethod
    def pull(self, image: str) -> bool:
        """
        Pull an image.

        Returns:
            True on success

        Raises:
            BackendError: If the pull fails
        """

    @abstractmethod
    def list(self, filters: Filters = None) -> List[Container]:
        """
        List all containers, optionally narrowed by filters.

        A non-empty filter set that matches nothing yields an empty list.

        Raises:
            ValidationError: If a filter is malformed
            BackendError: If the backend fails
        """

    @abstractmethod
    def run(self, image: str, name: str, options: Optional[RunOptions] = None) -> str:
        """
        Create and start a container.

        Args:
            image: Image to run
            name: Container name
            options: Command, entrypoint, mounts, labels and other options

        Returns:
            The id of the started container

        Raises:
            BackendError: If creation or start fails
        """

    @abstractmethod
    def execute(
        self,
        name: str,
        command: List[str],
        vars: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = -1,
    ) -> ExecResult:
        """
        Execute a command in a running container.

        Args:
            name: Container name or id
            command: Command and arguments
            vars: Extra environment variables for the command
            timeout: Budget in seconds, a negative value or None for no limit

        Returns:
            Decoded stdout and stderr of the command

        Raises:
            CommandTimeoutError: If the budget is exceeded
            BackendError: If the command cannot be run or exits non-zero
        """

    def execute_with_stdout(
        self,
        name: str,
        command: List[str],
        vars: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = -1,
    ) -> str:
        """Execute a command and return only its stdout."""
        return self.execute(name, command, vars=vars, timeout=timeout).stdout

    @abstractmethod
    def remove(self, name: str, force: bool = False) -> bool:
        """
        Remove a container.

        Raises:
            BackendError: If the container cannot be removed
        """

    @abstractmethod
    def stats(self, container: Optional[str] = None, filters: Filters = None) -> List[Stats]:
        """
        Get resource usage of one container, or of all containers matching filters.

        Raises:
            BackendError: If the backend fails
            ProtocolError: If the backend output cannot be parsed
        """

    @abstractmethod
    def create_network(self, name: str, internal: bool = False) -> bool:
        """Create a network."""

    @abstractmethod
    def remove_network(self, name: str) -> bool:
        """Remove a network."""

    @abstractmethod
    def connect_network(self, container: str, network: str) -> bool:
        """Connect a container to a network."""

    @abstractmethod
    def disconnect_network(self, container: str, network: str, force: bool = False) -> bool:
        """Disconnect a container from a network."""

    @abstractmethod
    def list_networks(self) -> List[Network]:
        """List networks."""

    def __enter__(self) -> "ContainerDriver":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
