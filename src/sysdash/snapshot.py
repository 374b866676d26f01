"""Snapshot builder: turns raw provider readings into display-ready values."""

import math

from sysdash.errors import ProviderError
from sysdash.models import Snapshot
from sysdash.provider import MetricsProvider

BYTES_PER_GB = 1024**3

# Floats at or above this magnitude have no fractional part
_INTEGRAL_LIMIT = 2.0**52


def round2(value: float) -> float:
    """
    Round to 2 decimals, halves away from zero (0.125 -> 0.13).

    Non-finite values and values too large to carry hundredths are returned
    unchanged.
    """
    scaled = value * 100
    if not math.isfinite(scaled) or abs(scaled) >= _INTEGRAL_LIMIT:
        return value
    whole = math.trunc(scaled)
    if abs(scaled - whole) >= 0.5:
        whole += 1 if scaled > 0 else -1
    return whole / 100


def to_gb(num_bytes: int) -> float:
    """Convert bytes to gigabytes (1024**3), rounded to 2 decimals."""
    return round2(num_bytes / BYTES_PER_GB)


def format_uptime(seconds: int) -> str:
    """Format seconds as HH:MM:SS. Hours are unbounded, there is no day rollover."""
    if seconds < 0:
        raise ValueError(f"uptime cannot be negative: {seconds}")
    seconds = int(seconds)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def build_snapshot(provider: MetricsProvider, disk_path: str = "/") -> Snapshot:
    """
    Query every metric from the provider and assemble a Snapshot.

    Nothing is cached; each call re-queries the provider. The CPU query blocks
    for the provider's sampling window.

    Raises:
        ProviderError: If any query fails.
    """
    try:
        mem = provider.virtual_memory()
        cpus = provider.cpu_percent()
        temps = provider.temperatures()
        host = provider.host_info()
        disk = provider.disk_usage(disk_path)
    except ProviderError:
        raise
    except Exception as exc:
        raise ProviderError("provider", exc) from exc

    return Snapshot(
        total_disk_gb=to_gb(disk.total),
        used_disk_gb=to_gb(disk.used),
        disk_used_percent=round2(disk.percent),
        total_memory_gb=to_gb(mem.total),
        used_memory_gb=to_gb(mem.used),
        memory_used_percent=round2(mem.percent),
        cpu_loads=tuple(round2(load) for load in cpus),
        hostname=host.hostname,
        uptime=format_uptime(host.uptime_seconds),
        os_name=host.os_name,
        temperatures=tuple(temps),
    )
