from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, NamedTuple, Optional


# Entities returned to callers. They are built only from backend output and
# are never mutated afterwards.


@dataclass(frozen=True)
class Container:
    """A container as reported by the backend."""

    name: str
    id: str
    status: str = ""
    labels: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "labels", MappingProxyType(dict(self.labels)))


@dataclass(frozen=True)
class Network:
    """A network as reported by the backend."""

    name: str
    id: str
    driver: str
    scope: str


@dataclass(frozen=True)
class IOStats:
    """A pair of byte counts: in/out, or used/limit depending on the metric."""

    inbound: float
    outbound: float


@dataclass(frozen=True)
class Stats:
    """
    Resource usage snapshot of a single container.

    cpu_usage is a fraction (0.125 means 12.5%) and can exceed 1.0 when several
    cores are busy. memory_usage_percent is a percentage of the memory limit
    (3.0 means 3%) and is 0 when the host platform does not report it.
    """

    container_id: str
    container_name: str
    cpu_usage: float
    memory_usage_percent: float
    disk_io: IOStats
    memory_io: IOStats
    network_io: IOStats


@dataclass(frozen=True)
class RunOptions:
    """Options for creating and starting a container."""

    command: List[str] = field(default_factory=list)
    entrypoint: str = ""
    workdir: str = ""
    volumes: List[str] = field(default_factory=list)
    vars: Dict[str, str] = field(default_factory=dict)
    mount_folder: str = ""
    labels: Dict[str, str] = field(default_factory=dict)
    hostname: str = ""
    remove: bool = False
    network: str = ""


class ExecResult(NamedTuple):
    """Decoded output of a command executed inside a container."""

    stdout: str
    stderr: str


Filters = Optional[Mapping[str, str]]
