"""
Docker engine API driver.

This module implements the ContainerDriver interface by talking HTTP to the
Docker engine over its Unix socket. Exec output is read from the streamed,
multiplexed exec-start endpoint and split by the FrameDemultiplexer.
"""

import base64
import json
import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx

from orchestration.config import Settings
from orchestration.drivers.core.base import ContainerDriver
from orchestration.drivers.core.utils import (
    build_env,
    build_labels,
    memory_limit_bytes,
    nano_cpus,
    resolve_timeout,
    split_volume,
    validate_filters,
)
from orchestration.drivers.docker_api.http_client import EngineHTTPClient
from orchestration.drivers.docker_api.multiplex import FrameDemultiplexer
from orchestration.exceptions import BackendError, CommandTimeoutError
from orchestration.models import (
    Container,
    ExecResult,
    Filters,
    IOStats,
    Network,
    RunOptions,
    Stats,
)

logger = logging.getLogger(__name__)

# Exit code used by timeout(1); treated as a timeout by both drivers
TIMEOUT_EXIT_CODE = 124


def _image_params(image: str) -> Dict[str, str]:
    """Split an image reference into the fromImage/tag query of the pull endpoint."""
    if "@" in image:
        return {"fromImage": image}
    repository, _, last = image.rpartition("/")
    if ":" in last:
        name, tag = last.split(":", 1)
        return {"fromImage": f"{repository}/{name}" if repository else name, "tag": tag}
    return {"fromImage": image, "tag": "latest"}


def _pull_error(body: str) -> Optional[str]:
    """Find an error reported inside the pull progress stream."""
    for line in body.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            event = json.loads(line)
        except ValueError:
            continue
        if isinstance(event, dict) and event.get("error"):
            return str(event["error"])
    return None


def _parse_container(entry: Dict[str, Any]) -> Optional[Container]:
    names = entry.get("Names") or []
    if not names or not entry.get("Id"):
        return None
    name = names[0]
    if name.startswith("/"):
        name = name[1:]
    return Container(
        name=name,
        id=entry["Id"],
        status=entry.get("Status", ""),
        labels=entry.get("Labels") or {},
    )


def _cpu_fraction(data: Dict[str, Any]) -> float:
    cpu = data.get("cpu_stats") or {}
    precpu = data.get("precpu_stats") or {}
    cpu_delta = (cpu.get("cpu_usage") or {}).get("total_usage", 0) - (
        precpu.get("cpu_usage") or {}
    ).get("total_usage", 0)
    system_delta = cpu.get("system_cpu_usage", 0) - precpu.get("system_cpu_usage", 0)
    online = cpu.get("online_cpus") or len(
        (cpu.get("cpu_usage") or {}).get("percpu_usage") or []
    ) or 1
    if cpu_delta <= 0 or system_delta <= 0:
        return 0.0
    return cpu_delta / system_delta * online


def _memory_io(data: Dict[str, Any]) -> IOStats:
    memory = data.get("memory_stats") or {}
    usage = memory.get("usage", 0)
    detail = memory.get("stats") or {}
    # Same cache accounting as `docker stats`
    cache = detail.get("inactive_file", detail.get("total_inactive_file", 0))
    if cache < usage:
        usage -= cache
    return IOStats(float(usage), float(memory.get("limit", 0)))


def _disk_io(data: Dict[str, Any]) -> IOStats:
    read = write = 0
    entries = (data.get("blkio_stats") or {}).get("io_service_bytes_recursive") or []
    for entry in entries:
        op = str(entry.get("op", "")).lower()
        if op == "read":
            read += entry.get("value", 0)
        elif op == "write":
            write += entry.get("value", 0)
    return IOStats(float(read), float(write))


def _network_io(data: Dict[str, Any]) -> IOStats:
    received = sent = 0
    for interface in (data.get("networks") or {}).values():
        received += interface.get("rx_bytes", 0)
        sent += interface.get("tx_bytes", 0)
    return IOStats(float(received), float(sent))


def parse_stats(data: Dict[str, Any]) -> Stats:
    """Convert an engine stats document into a Stats entity."""
    name = data.get("name", "")
    if name.startswith("/"):
        name = name[1:]
    memory_io = _memory_io(data)
    if memory_io.outbound > 0:
        memory_percent = memory_io.inbound / memory_io.outbound * 100
    else:
        memory_percent = 0.0
    return Stats(
        container_id=data.get("id", ""),
        container_name=name,
        cpu_usage=_cpu_fraction(data),
        memory_usage_percent=memory_percent,
        disk_io=_disk_io(data),
        memory_io=memory_io,
        network_io=_network_io(data),
    )


class DockerAPIDriver(ContainerDriver):
    """
    Docker implementation of the ContainerDriver interface over the engine API.

    Requires access to the Docker socket (typically /var/run/docker.sock).

    Configuration:
        - Set ORCHESTRATION_DRIVER=docker-api
        - ORCHESTRATION_DOCKER_SOCKET overrides the socket path
    """

    name = "docker-api"

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        super().__init__(settings)
        self.client = EngineHTTPClient(
            settings.docker_socket,
            timeout=settings.request_timeout,
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def _registry_auth(self) -> Dict[str, str]:
        if not self.settings.has_credentials:
            return {}
        auth = json.dumps(
            {"username": self.settings.username, "password": self.settings.password}
        )
        return {"X-Registry-Auth": base64.urlsafe_b64encode(auth.encode()).decode()}

    def login(self) -> None:
        self.client.request(
            "POST",
            "/auth",
            json={"username": self.settings.username, "password": self.settings.password},
        )
        logger.info("Authenticated against registry as %s", self.settings.username)

    def pull(self, image: str) -> bool:
        response = self.client.request(
            "POST",
            "/images/create",
            params=_image_params(image),
            headers=self._registry_auth(),
        )
        error = _pull_error(response.text)
        if error:
            logger.error("Failed to pull image %s: %s", image, error)
            raise BackendError(error, status_code=response.status_code)
        return True

    def list(self, filters: Filters = None) -> List[Container]:
        params: Dict[str, Any] = {"all": "true"}
        validated = validate_filters(filters)
        if validated:
            params["filters"] = json.dumps({key: [value] for key, value in validated.items()})

        response = self.client.request("GET", "/containers/json", expected=(200,), params=params)

        containers = []
        for entry in response.json():
            container = _parse_container(entry)
            if container is not None:
                containers.append(container)
        return containers

    def _create_body(self, image: str, options: RunOptions) -> Dict[str, Any]:
        binds = [":".join(split_volume(volume)) for volume in options.volumes]
        if options.mount_folder:
            binds.append(f"{options.mount_folder}:/tmp:rw")

        host_config: Dict[str, Any] = {"AutoRemove": options.remove}
        if binds:
            host_config["Binds"] = binds
        if options.network:
            host_config["NetworkMode"] = options.network
        if self.settings.cpus:
            host_config["NanoCpus"] = nano_cpus(self.settings.cpus)
        if self.settings.memory:
            host_config["Memory"] = memory_limit_bytes(self.settings.memory)
        if self.settings.swap:
            host_config["MemorySwap"] = memory_limit_bytes(self.settings.swap)

        body: Dict[str, Any] = {
            "Image": image,
            "Env": [f"{key}={value}" for key, value in build_env(options.vars).items()],
            "Labels": build_labels(self.settings, options.labels),
            "HostConfig": host_config,
        }
        if options.command:
            body["Cmd"] = list(options.command)
        if options.entrypoint:
            body["Entrypoint"] = [options.entrypoint]
        if options.workdir:
            body["WorkingDir"] = options.workdir
        if options.hostname:
            body["Hostname"] = options.hostname
        return body

    def run(self, image: str, name: str, options: Optional[RunOptions] = None) -> str:
        options = options or RunOptions()
        body = self._create_body(image, options)

        try:
            response = self.client.request(
                "POST", "/containers/create", expected=(201,), params={"name": name}, json=body
            )
        except BackendError as e:
            if e.status_code != 404 or "No such image" not in e.message:
                raise
            # Missing image: pull it like `docker run` does, then retry once
            logger.info("Image %s not found locally, pulling before run", image)
            self.pull(image)
            response = self.client.request(
                "POST", "/containers/create", expected=(201,), params={"name": name}, json=body
            )

        container_id = response.json()["Id"]
        self.client.request("POST", f"/containers/{container_id}/start", expected=(204,))
        logger.debug("Started container %s (%s) from %s", name, container_id, image)
        return container_id

    def execute(
        self,
        name: str,
        command: List[str],
        vars: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = -1,
    ) -> ExecResult:
        body = {
            "Env": [f"{key}={value}" for key, value in build_env(vars).items()],
            "Cmd": list(command),
            "AttachStdout": True,
            "AttachStderr": True,
            "Tty": False,
        }
        response = self.client.request(
            "POST", f"/containers/{name}/exec", expected=(201,), json=body
        )
        exec_id = response.json()["Id"]

        demux = FrameDemultiplexer()
        self.client.stream(
            "POST",
            f"/exec/{exec_id}/start",
            on_chunk=demux.feed,
            json={"Detach": False, "Tty": False},
            timeout=resolve_timeout(timeout),
        )
        stdout, stderr = demux.finish()
        result = ExecResult(
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
        )

        inspect = self.client.request("GET", f"/exec/{exec_id}/json", expected=(200,)).json()
        exit_code = inspect.get("ExitCode")
        if exit_code == TIMEOUT_EXIT_CODE:
            raise CommandTimeoutError(resolve_timeout(timeout))
        if exit_code:
            logger.error("Command in %s exited with %s", name, exit_code)
            raise BackendError(result.stderr, exit_code=exit_code)
        return result

    def remove(self, name: str, force: bool = False) -> bool:
        params = {"force": "true"} if force else None
        self.client.request("DELETE", f"/containers/{name}", expected=(204,), params=params)
        return True

    def stats(self, container: Optional[str] = None, filters: Filters = None) -> List[Stats]:
        if container is None:
            container_ids = [c.id for c in self.list(filters)]
        else:
            container_ids = [container]

        if not container_ids:
            return []

        results = []
        for container_id in container_ids:
            response = self.client.request(
                "GET",
                f"/containers/{container_id}/stats",
                expected=(200,),
                params={"stream": "false"},
            )
            results.append(parse_stats(response.json()))
        return results

    def create_network(self, name: str, internal: bool = False) -> bool:
        self.client.request(
            "POST",
            "/networks/create",
            expected=(201,),
            json={"Name": name, "Internal": internal, "CheckDuplicate": True},
        )
        return True

    def remove_network(self, name: str) -> bool:
        self.client.request("DELETE", f"/networks/{name}", expected=(204,))
        return True

    def connect_network(self, container: str, network: str) -> bool:
        self.client.request(
            "POST", f"/networks/{network}/connect", expected=(200,), json={"Container": container}
        )
        return True

    def disconnect_network(self, container: str, network: str, force: bool = False) -> bool:
        self.client.request(
            "POST",
            f"/networks/{network}/disconnect",
            expected=(200,),
            json={"Container": container, "Force": force},
        )
        return True

    def list_networks(self) -> List[Network]:
        response = self.client.request("GET", "/networks", expected=(200,))
        return [
            Network(
                name=entry.get("Name", ""),
                id=entry["Id"],
                driver=entry.get("Driver", ""),
                scope=entry.get("Scope", ""),
            )
            for entry in response.json()
            if entry.get("Id")
        ]
