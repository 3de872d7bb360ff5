"""
Test configuration.

Common pytest fixtures and marker registration.
"""

import os

import pytest


# ============================================================================
# pytest marker registration
# ============================================================================

def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers", "integration: integration tests, need a reachable Docker engine"
    )
    config.addinivalue_line(
        "markers", "unit: unit tests, no external dependencies"
    )


# ============================================================================
# Common configuration
# ============================================================================

DOCKER_SOCKET = os.getenv("ORCHESTRATION_DOCKER_SOCKET", "/var/run/docker.sock")
TEST_IMAGE = os.getenv("ORCHESTRATION_TEST_IMAGE", "alpine:3.19")


# ============================================================================
# Common fixtures
# ============================================================================

@pytest.fixture
def settings():
    """Settings isolated from the environment and any .env file"""
    from orchestration.config import Settings

    return Settings(
        _env_file=None,
        driver="docker-cli",
        docker_socket=DOCKER_SOCKET,
        docker_binary="docker",
        namespace="test",
        cpus=1.5,
        memory=256,
        swap=512,
        username=None,
        password=None,
    )


# ============================================================================
# Docker/Integration fixtures
# ============================================================================

@pytest.fixture(scope="session")
def docker_client():
    """Docker SDK client, skips the test when no engine is reachable"""
    docker = pytest.importorskip("docker")

    try:
        client = docker.from_env()
        client.ping()
    except Exception as e:
        pytest.skip(f"Docker engine not reachable: {e}")

    yield client
    client.close()


@pytest.fixture(scope="session")
def test_image(docker_client):
    """Make sure the test image is present locally"""
    docker_client.images.pull(TEST_IMAGE)
    return TEST_IMAGE
