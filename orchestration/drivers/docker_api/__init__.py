"""Docker engine API driver."""

from orchestration.drivers.docker_api.driver import DockerAPIDriver
from orchestration.drivers.docker_api.multiplex import FrameDemultiplexer

__all__ = [
    "DockerAPIDriver",
    "FrameDemultiplexer",
]
