from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Driver selection
    # Supported drivers:
    # - docker-api: talks HTTP to the engine over its Unix socket
    # - docker-cli: invokes the docker command-line client
    driver: Literal["docker-api", "docker-cli"] = Field(
        default="docker-cli", description="Container backend driver to use"
    )

    # Backend endpoints
    docker_socket: str = Field(
        default="/var/run/docker.sock", description="Path to the engine Unix socket"
    )
    docker_binary: str = Field(default="docker", description="Docker CLI executable")

    # Resource tagging
    namespace: str = Field(
        default="utopia", description="Prefix of the labels put on created containers"
    )

    # Resource limits applied to every container started by run()
    # Memory and swap are decimal megabytes (1 MB = 1,000,000 bytes)
    cpus: float = Field(default=0, ge=0, description="CPU limit, 0 for no limit")
    memory: int = Field(default=0, ge=0, description="Memory limit in MB, 0 for no limit")
    swap: int = Field(default=0, ge=0, description="Swap limit in MB, 0 for no limit")

    # Registry credentials
    username: Optional[str] = Field(default=None, description="Registry username")
    password: Optional[str] = Field(default=None, description="Registry password")

    # Timeouts in seconds
    request_timeout: float = Field(
        default=60.0, gt=0, description="Timeout of non-streamed engine requests"
    )
    run_timeout: float = Field(
        default=30.0, gt=0, description="Timeout of the docker run invocation"
    )

    model_config = SettingsConfigDict(
        env_prefix="ORCHESTRATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        frozen=True,
    )

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.password)


def load_settings(**overrides) -> Settings:
    """Build settings from the environment, with explicit overrides on top."""
    return Settings(**overrides)
