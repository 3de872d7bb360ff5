"""
HTTP client for the Docker engine API.

This module wraps an httpx client bound to the engine's Unix socket and maps
transport failures and unexpected status codes onto the orchestration error
types.
"""

import logging
import time
from typing import Any, Callable, Collection, Dict, Optional

import httpx

from orchestration.exceptions import BackendError, CommandTimeoutError

logger = logging.getLogger(__name__)

BASE_URL = "http://localhost"

GENERIC_ERROR = "internal backend error"


def error_message(response: httpx.Response) -> str:
    """Extract the engine's error message from a response body."""
    try:
        data = response.json()
    except ValueError:
        return GENERIC_ERROR
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return GENERIC_ERROR


class EngineHTTPClient:
    """
    Blocking HTTP/1.1 client talking to the engine over a Unix domain socket.

    Args:
        socket_path: Path of the engine socket
        timeout: Timeout in seconds for non-streamed requests
        transport: Optional transport override, used by tests
    """

    def __init__(
        self,
        socket_path: str,
        timeout: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.socket_path = socket_path
        self._client = httpx.Client(
            base_url=BASE_URL,
            transport=transport or httpx.HTTPTransport(uds=socket_path),
            timeout=httpx.Timeout(timeout),
        )

    def close(self) -> None:
        self._client.close()

    def request(
        self,
        method: str,
        path: str,
        expected: Collection[int] = (200, 204),
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """
        Send a request and check its status code.

        Raises:
            BackendError: If the engine is unreachable or answers with a status
                outside `expected`
        """
        logger.debug("Engine request: %s %s params=%s", method, path, params)
        try:
            response = self._client.request(
                method, path, params=params, json=json, headers=headers
            )
        except httpx.HTTPError as e:
            logger.error("Engine request %s %s failed: %s", method, path, e)
            raise BackendError(f"Failed to reach engine at {self.socket_path}: {e}") from e

        if response.status_code not in expected:
            message = error_message(response)
            logger.error(
                "Engine request %s %s returned %d: %s",
                method,
                path,
                response.status_code,
                message,
            )
            raise BackendError(message, status_code=response.status_code)

        return response

    def stream(
        self,
        method: str,
        path: str,
        on_chunk: Callable[[bytes], None],
        json: Any = None,
        timeout: Optional[float] = None,
        expected: Collection[int] = (200,),
    ) -> None:
        """
        Send a request and hand the raw response body to `on_chunk` as it arrives.

        Args:
            on_chunk: Called with every chunk of the body, in order
            timeout: Total budget in seconds for the whole exchange, None for no limit

        Raises:
            CommandTimeoutError: If the budget runs out before the body ends
            BackendError: If the engine is unreachable or answers with an
                unexpected status
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        request_timeout = httpx.Timeout(timeout) if timeout is not None else httpx.Timeout(None)

        logger.debug("Engine stream: %s %s timeout=%s", method, path, timeout)
        try:
            with self._client.stream(
                method, path, json=json, timeout=request_timeout
            ) as response:
                if response.status_code not in expected:
                    response.read()
                    message = error_message(response)
                    logger.error(
                        "Engine stream %s %s returned %d: %s",
                        method,
                        path,
                        response.status_code,
                        message,
                    )
                    raise BackendError(message, status_code=response.status_code)

                for chunk in response.iter_raw():
                    on_chunk(chunk)
                    if deadline is not None and time.monotonic() > deadline:
                        raise CommandTimeoutError(timeout)
        except httpx.TimeoutException as e:
            logger.warning("Engine stream %s %s timed out after %ss", method, path, timeout)
            raise CommandTimeoutError(timeout) from e
        except httpx.HTTPError as e:
            logger.error("Engine stream %s %s failed: %s", method, path, e)
            raise BackendError(f"Failed to reach engine at {self.socket_path}: {e}") from e
