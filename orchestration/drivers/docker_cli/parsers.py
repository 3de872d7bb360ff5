"""
Parsers for the Docker CLI's custom --format output.

The CLI driver asks `docker ps`, `docker network ls` and `docker stats` for one
record per line, rendered as `&`-joined `key=value` fields, e.g.::

    id=4f2a...&name=/web&status=Up 2 minutes&labels=app=web,tier=front

Sizes are rendered by the CLI in human-readable form (`2.133MiB / 62.8GiB`)
and percentages with a trailing `%` sign.
"""

from decimal import Decimal, InvalidOperation
from typing import Dict, List, Mapping, Sequence, Union

from orchestration.exceptions import ProtocolError
from orchestration.models import Container, IOStats, Network, Stats

CONTAINER_FIELDS = ("id", "name", "status", "labels")
NETWORK_FIELDS = ("id", "name", "driver", "scope")
STATS_FIELDS = ("id", "name", "cpu", "memory", "diskIO", "memoryIO", "networkIO")

# Go template rendering the fields above, passed to --format
CONTAINER_FORMAT = "id={{.ID}}&name={{.Names}}&status={{.Status}}&labels={{.Labels}}"
NETWORK_FORMAT = "id={{.ID}}&name={{.Name}}&driver={{.Driver}}&scope={{.Scope}}"
STATS_FORMAT = (
    "id={{.ID}}&name={{.Name}}&cpu={{.CPUPerc}}&memory={{.MemPerc}}"
    "&diskIO={{.BlockIO}}&memoryIO={{.MemUsage}}&networkIO={{.NetIO}}"
)

# Decimal multipliers only: the CLI's binary suffixes map to the same
# multiplier as their decimal counterpart.
_UNIT_MULTIPLIERS = {
    "B": 1,
    "kB": 10**3,
    "KB": 10**3,
    "KiB": 10**3,
    "MB": 10**6,
    "MiB": 10**6,
    "GB": 10**9,
    "GiB": 10**9,
    "TB": 10**12,
    "TiB": 10**12,
}

# Longer suffixes first so that "MiB" is not matched as "B"
_UNITS_BY_LENGTH = sorted(_UNIT_MULTIPLIERS, key=len, reverse=True)

# Placeholders printed for metrics the host does not report
UNAVAILABLE = ("", "--")

LabelValue = Union[str, Sequence[str]]
Record = Dict[str, List[str]]


def parse_record(line: str, fields: Sequence[str]) -> Record:
    """
    Split one line into its fields.

    Each `&`-separated fragment is split on its first `=`. A fragment whose
    key is not one of `fields` is a literal `&` inside the previous value.
    A field that appears more than once keeps every occurrence, in order.

    Returns:
        Mapping of field name to the list of its value fragments
    """
    record: Record = {}
    current = None
    for fragment in line.split("&"):
        key, sep, value = fragment.partition("=")
        if sep and key in fields:
            record.setdefault(key, []).append(value)
            current = key
        elif current is not None:
            record[current][-1] += "&" + fragment
        else:
            raise ProtocolError(f"Unexpected field '{fragment}' in record: {line!r}")
    return record


def parse_records(output: str, fields: Sequence[str]) -> List[Record]:
    """
    Parse every non-blank line of `output`, in order.

    Raises:
        ProtocolError: If a record has no id
    """
    records = []
    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue
        record = parse_record(line, fields)
        if not _scalar(record, "id"):
            raise ProtocolError(f"Record without id: {line!r}")
        records.append(record)
    return records


def _scalar(record: Record, key: str) -> str:
    # Repeated scalar fields resolve last-wins
    values = record.get(key)
    return values[-1] if values else ""


def parse_labels(raw: LabelValue) -> Dict[str, str]:
    """
    Parse a comma-joined list of `key=value` label entries.

    Each entry is split on its first `=` only, so values may contain `=`.
    Entries without `=` are dropped. Duplicate keys resolve last-wins.

    A value that arrived in several fragments is joined before splitting.

    Examples:
        >>> parse_labels("k1=v1,k2=v2")
        {'k1': 'v1', 'k2': 'v2'}
        >>> parse_labels("k=v=w,broken")
        {'k': 'v=w'}
    """
    if not isinstance(raw, str):
        # TODO: drop once the upstream quoting artifact producing fragmented
        # label values is identified
        raw = "".join(raw)

    labels: Dict[str, str] = {}
    for entry in raw.split(","):
        key, sep, value = entry.partition("=")
        if not sep:
            continue
        labels[key] = value
    return labels


def parse_containers(output: str) -> List[Container]:
    """Parse `docker ps` output rendered with CONTAINER_FORMAT."""
    containers = []
    for record in parse_records(output, CONTAINER_FIELDS):
        name = _scalar(record, "name")
        if name.startswith("/"):
            name = name[1:]
        containers.append(
            Container(
                name=name,
                id=_scalar(record, "id"),
                status=_scalar(record, "status"),
                labels=parse_labels(record.get("labels", [])),
            )
        )
    return containers


def parse_networks(output: str) -> List[Network]:
    """Parse `docker network ls` output rendered with NETWORK_FORMAT."""
    return [
        Network(
            name=_scalar(record, "name"),
            id=_scalar(record, "id"),
            driver=_scalar(record, "driver"),
            scope=_scalar(record, "scope"),
        )
        for record in parse_records(output, NETWORK_FIELDS)
    ]


def parse_stats(output: str) -> List[Stats]:
    """Parse `docker stats` output rendered with STATS_FORMAT."""
    return [
        Stats(
            container_id=_scalar(record, "id"),
            container_name=_scalar(record, "name"),
            cpu_usage=parse_percentage(_scalar(record, "cpu")),
            memory_usage_percent=parse_percent(_scalar(record, "memory")),
            disk_io=parse_size_pair(_scalar(record, "diskIO")),
            memory_io=parse_size_pair(_scalar(record, "memoryIO")),
            network_io=parse_size_pair(_scalar(record, "networkIO")),
        )
        for record in parse_records(output, STATS_FIELDS)
    ]


def _number(text: str, original: str) -> Decimal:
    # Decimal keeps "2.133" * 10**6 exact before the final float conversion
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise ProtocolError(f"Invalid number in '{original}'") from None
    if not value.is_finite() or value < 0:
        raise ProtocolError(f"Invalid number in '{original}'")
    return value


def parse_size(size: str) -> float:
    """
    Parse a size such as '2.133MiB' into a number of bytes.

    A value without a known unit suffix is taken as bytes. The CLI prints
    '--' for metrics it cannot read, which counts as 0.

    Raises:
        ProtocolError: If the numeral cannot be parsed
    """
    text = size.strip()
    if text in UNAVAILABLE:
        return 0.0
    for unit in _UNITS_BY_LENGTH:
        if text.endswith(unit):
            return float(_number(text[: -len(unit)].strip(), size) * _UNIT_MULTIPLIERS[unit])
    return float(_number(text, size))


def parse_size_pair(pair: str) -> IOStats:
    """
    Parse an in/out size pair as printed by `docker stats`.

    Some platforms print a single size instead of a pair (Windows reports no
    memory limit), which is read as the inbound side with 0 outbound. A field
    the CLI could not read at all ('--') is a pair of zeros.

    Examples:
        >>> parse_size_pair("2.133MiB / 62.8GiB")
        IOStats(inbound=2133000.0, outbound=62800000000.0)
        >>> parse_size_pair("2.133MiB")
        IOStats(inbound=2133000.0, outbound=0.0)

    Raises:
        ProtocolError: If a side cannot be parsed
    """
    if pair.strip() in UNAVAILABLE:
        return IOStats(0.0, 0.0)
    inbound, sep, outbound = pair.partition(" / ")
    if not sep:
        return IOStats(parse_size(inbound), 0.0)
    return IOStats(parse_size(inbound), parse_size(outbound))


def _percent(percentage: str) -> Decimal:
    text = percentage.strip()
    if text.endswith("%"):
        text = text[:-1].strip()
    if text in UNAVAILABLE:
        return Decimal(0)
    return _number(text, percentage)


def parse_percentage(percentage: str) -> float:
    """
    Parse a percentage such as '12.50%' into a fraction.

    An empty value yields 0, as some platforms do not report every metric.

    Examples:
        >>> parse_percentage("12.50%")
        0.125
    """
    return float(_percent(percentage) / 100)


def parse_percent(percentage: str) -> float:
    """
    Parse a percentage such as '3.00%' into its numeric value, 3.0 here.

    Empty and '--' values yield 0 like parse_percentage.
    """
    return float(_percent(percentage))


def format_filters(filters: Mapping[str, str]) -> List[str]:
    """Render a filter mapping as repeated --filter arguments."""
    args: List[str] = []
    for key, value in filters.items():
        args.extend(["--filter", f"{key}={value}"])
    return args
