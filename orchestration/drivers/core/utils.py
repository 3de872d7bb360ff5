"""
Shared utilities for container drivers.

This module holds the request-shaping rules that every driver must apply in
exactly the same way (environment variable keys, namespace labels, resource
limits, filters), so that the API and CLI drivers stay in parity.
"""

import logging
import re
import time
from decimal import Decimal
from typing import Dict, List, Mapping, Optional

from orchestration.config import Settings
from orchestration.exceptions import ValidationError

logger = logging.getLogger(__name__)

_ENV_KEY_INVALID = re.compile(r"[^A-Za-z0-9_]")

# Decimal megabytes, see Settings.memory
BYTES_PER_MB = 1_000_000

# `docker run --cpus` sets HostConfig.NanoCpus, in billionths of a CPU
NANO_CPUS = 10**9


def sanitize_env_key(key: str) -> str:
    """
    Normalize an environment variable name.

    Every character outside [A-Za-z0-9_] is removed. If the result starts with
    a digit it is prefixed with an underscore.

    Args:
        key: The requested variable name

    Returns:
        The sanitized variable name

    Raises:
        ValidationError: If nothing usable is left after sanitizing

    Examples:
        >>> sanitize_env_key("9FOO-BAR")
        '_9FOOBAR'
        >>> sanitize_env_key("my.var")
        'myvar'
    """
    sanitized = _ENV_KEY_INVALID.sub("", key)
    if not sanitized:
        raise ValidationError(f"Invalid environment variable name: '{key}'")
    if sanitized[0].isdigit():
        sanitized = "_" + sanitized
    return sanitized


def build_env(variables: Optional[Mapping[str, Optional[str]]]) -> Dict[str, str]:
    """
    Sanitize keys of an environment mapping.

    None values become empty strings. When two keys collapse onto the same
    sanitized name, the later one wins.
    """
    env: Dict[str, str] = {}
    for key, value in (variables or {}).items():
        sanitized = sanitize_env_key(key)
        if sanitized != key:
            logger.debug("Environment variable %r renamed to %r", key, sanitized)
        env[sanitized] = "" if value is None else str(value)
    return env


def build_labels(settings: Settings, labels: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    Merge caller labels with the namespace labels that tag runtime containers.

    The namespace labels are applied last so they cannot be overridden.
    """
    merged = {key: str(value) for key, value in (labels or {}).items()}
    merged[f"{settings.namespace}-type"] = "runtime"
    merged[f"{settings.namespace}-created"] = str(int(time.time()))
    return merged


def validate_filters(filters: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """
    Check a container filter mapping before it is sent to the backend.

    Raises:
        ValidationError: If a key or value is empty, or a key contains '='
    """
    validated: Dict[str, str] = {}
    for key, value in (filters or {}).items():
        if not isinstance(key, str) or not key or "=" in key:
            raise ValidationError(f"Invalid filter name: {key!r}")
        if value is None or str(value) == "":
            raise ValidationError(f"Filter '{key}' has an empty value")
        validated[key] = str(value)
    return validated


def memory_limit_bytes(megabytes: int) -> int:
    """Convert a limit in decimal megabytes to bytes."""
    return megabytes * BYTES_PER_MB


def nano_cpus(cpus: float) -> int:
    """
    Convert a CPU count to the NanoCpus value `docker run --cpus` would send.

    Examples:
        >>> nano_cpus(1.5)
        1500000000
    """
    return int(Decimal(str(cpus)) * NANO_CPUS)


def resolve_timeout(timeout: Optional[float]) -> Optional[float]:
    """Map the caller's timeout to seconds, None meaning no limit."""
    if timeout is None or timeout <= 0:
        return None
    return float(timeout)


def split_volume(volume: str) -> List[str]:
    """
    Split a volume spec into its host, container and optional mode parts.

    Raises:
        ValidationError: If the spec is not host:container[:mode]
    """
    parts = volume.split(":")
    if len(parts) not in (2, 3) or not all(parts):
        raise ValidationError(f"Invalid volume '{volume}', expected host:container[:mode]")
    return parts
